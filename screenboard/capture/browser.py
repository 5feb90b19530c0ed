"""Browser helpers."""

from __future__ import annotations

import inspect
import logging
from typing import Optional

from playwright.async_api import Browser, BrowserContext, Frame, Page, Playwright

from screenboard.models.config import State, Viewport

logger = logging.getLogger(__name__)


async def launch_browser(playwright: Playwright, headless: bool = True) -> Browser:
    """Launch Chromium."""
    logger.debug("Launching Chromium (headless=%s)", headless)
    return await playwright.chromium.launch(headless=headless)


async def create_context(
    browser: Browser,
    state: State,
    viewport: Optional[Viewport] = None,
) -> BrowserContext:
    """Create a browser context seeded with the state's storage state.

    Args:
        state: Supplies the Playwright storage state (a path to a JSON file
            with cookies + localStorage), if any.
        viewport: Initial viewport size. When omitted Playwright's default
            is used and callers resize the page later.
    """
    context_kwargs: dict = {"storage_state": state.storage_state}
    if viewport is not None:
        context_kwargs["viewport"] = {"width": viewport.width, "height": viewport.height}
    return await browser.new_context(**context_kwargs)


async def run_setup(state: State, page: Page) -> None:
    """Run a state's setup hook once; sync and async hooks are both accepted."""
    if state.setup is None:
        return
    logger.debug("Running setup for state '%s'", state.id)
    result = state.setup(page)
    if inspect.isawaitable(result):
        await result


def register_discovery(page: Page, discovered: list[str]) -> None:
    """Record every frame URL the page navigates to, excluding about: pages."""

    def _on_navigated(frame: Frame) -> None:
        url = frame.url
        if url and not url.startswith("about:") and url not in discovered:
            discovered.append(url)

    page.on("framenavigated", _on_navigated)


async def close_quietly(resource, label: str) -> None:
    """Close a browser, context or page, logging instead of raising."""
    if resource is None:
        return
    try:
        await resource.close()
    except Exception as e:
        logger.warning("Failed to close %s: %s", label, e)
