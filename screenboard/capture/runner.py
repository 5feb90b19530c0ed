"""Capture pipeline — walks the matrix and the flows with Playwright."""

from __future__ import annotations

import itertools
import logging
import time
from pathlib import Path
from typing import Optional

from playwright.async_api import Browser, async_playwright
from pydantic import BaseModel

from screenboard.models.config import ScreenboardConfig, normalize_config
from screenboard.models.manifest import Manifest, create_manifest
from screenboard.url_utils import resolve_url

from .app_server import app_process
from .browser import close_quietly, create_context, launch_browser, register_discovery, run_setup
from .flow import run_flow
from .matrix import MatrixCell, plan
from .screenshot import SCREENS_DIR, capture_page, settle, wait_for_ready

logger = logging.getLogger(__name__)


class CaptureOptions(BaseModel):
    base_url: Optional[str] = None
    headless: bool = True
    out_dir: Optional[str] = None
    debug: bool = False


class CaptureResult(BaseModel):
    manifest: Manifest
    out_dir: str


async def run_capture(
    config_input: ScreenboardConfig,
    options: Optional[CaptureOptions] = None,
) -> CaptureResult:
    """Capture every matrix cell and flow of a config into a manifest.

    The target app is made reachable before the browser starts. The browser
    and any spawned app process are released whether or not the run
    succeeds; the first error aborts the remaining work and propagates.
    """
    options = options or CaptureOptions()
    config = normalize_config(config_input)
    base_url = options.base_url or config.app.base_url
    out_dir = Path(options.out_dir or config.output.dir)
    progress = logger.info if options.debug else logger.debug

    start = time.time()
    cells = plan(config)
    logger.info("Capturing %d screen(s) and %d flow(s) into %s",
                len(cells), len(config.flows), out_dir)

    manifest = create_manifest(config, base_url)
    discovered: list[str] = []

    async with app_process(config.app, base_url):
        (out_dir / SCREENS_DIR).mkdir(parents=True, exist_ok=True)
        async with async_playwright() as p:
            browser = await launch_browser(p, headless=options.headless)
            try:
                await _capture_matrix(browser, cells, manifest, out_dir, base_url,
                                      discovered, progress)
                for flow in config.flows:
                    progress("flow %s", flow.name)
                    entry = await run_flow(browser, flow, config, manifest, out_dir,
                                           base_url=base_url, discovered=discovered)
                    manifest.flows.append(entry)
            finally:
                await close_quietly(browser, "browser")

    manifest.discovered_urls = list(dict.fromkeys(discovered))
    logger.info("Capture complete: %d screenshot(s), %d flow(s) in %.1fs",
                len(manifest.screens), len(manifest.flows), time.time() - start)
    return CaptureResult(manifest=manifest, out_dir=str(out_dir))


async def _capture_matrix(
    browser: Browser,
    cells: list[MatrixCell],
    manifest: Manifest,
    out_dir: Path,
    base_url: Optional[str],
    discovered: list[str],
    progress,
) -> None:
    """One context per state, one resize per viewport, one shot per cell."""
    for _, state_cells in itertools.groupby(cells, key=lambda c: c.state.id):
        state_cells = list(state_cells)
        state = state_cells[0].state
        context = await create_context(browser, state)
        try:
            page = await context.new_page()
            register_discovery(page, discovered)
            await run_setup(state, page)

            for _, viewport_cells in itertools.groupby(state_cells, key=lambda c: c.viewport.id):
                viewport_cells = list(viewport_cells)
                viewport = viewport_cells[0].viewport
                await page.set_viewport_size({"width": viewport.width, "height": viewport.height})

                for cell in viewport_cells:
                    target_url = resolve_url(base_url, cell.url)
                    progress("capture %s %s", cell.screen.name, target_url)
                    await page.goto(target_url, wait_until="networkidle")
                    await wait_for_ready(page, cell.screen.ready)
                    await settle()
                    entry = await capture_page(page, cell.screen, state, viewport, out_dir,
                                               variant_id=cell.variant_id)
                    manifest.screens.append(entry)
        finally:
            await close_quietly(context, f"context for state '{state.id}'")
