"""Screenshot capture — readiness waits and manifest entries."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

from playwright.async_api import Page

from screenboard.models.config import ReadySpec, Screen, State, TimeoutReady, Viewport
from screenboard.models.manifest import ScreenManifestEntry
from screenboard.url_utils import file_safe_name

from .selectors import locator_for

logger = logging.getLogger(__name__)

READY_TIMEOUT_MS = 5000
SETTLE_DELAY_MS = 150
SCREENS_DIR = "screens"


async def settle() -> None:
    await asyncio.sleep(SETTLE_DELAY_MS / 1000)


async def wait_for_ready(page: Page, ready: Optional[ReadySpec]) -> None:
    """Apply a screen's ready condition after navigation."""
    if ready is None:
        return
    if isinstance(ready, TimeoutReady):
        await asyncio.sleep(ready.timeout_ms / 1000)
        return
    await locator_for(page, ready).wait_for(timeout=READY_TIMEOUT_MS)


async def capture_page(
    page: Page,
    screen: Screen,
    state: State,
    viewport: Viewport,
    out_dir: str | Path,
    variant_id: Optional[str] = None,
) -> ScreenManifestEntry:
    """Take a full-page screenshot of the current page and describe it."""
    base_id = f"{screen.id}-{variant_id}" if variant_id else screen.id
    entry_id = f"{base_id}-{state.id}-{viewport.id}"
    file_name = f"{file_safe_name(entry_id)}.png"
    screens_dir = Path(out_dir) / SCREENS_DIR
    screens_dir.mkdir(parents=True, exist_ok=True)

    url = page.url
    await page.screenshot(path=str(screens_dir / file_name), full_page=True)
    logger.debug("Captured %s -> %s", entry_id, file_name)

    return ScreenManifestEntry(
        id=entry_id,
        name=screen.name,
        url=url,
        image=f"{SCREENS_DIR}/{file_name}",
        width=viewport.width,
        height=viewport.height,
        viewport_id=viewport.id,
        state_id=state.id,
    )
