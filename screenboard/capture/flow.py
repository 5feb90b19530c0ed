"""Replay flows step by step, capturing where a flow asks for it."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

from playwright.async_api import Browser, Page

from screenboard.models.config import Flow, FlowStep, Screen, ScreenboardConfig
from screenboard.models.manifest import FlowManifestEntry, Manifest
from screenboard.url_utils import resolve_url

from .browser import close_quietly, create_context, register_discovery, run_setup
from .screenshot import READY_TIMEOUT_MS, capture_page
from .selectors import locator_for

logger = logging.getLogger(__name__)


async def run_step(page: Page, step: FlowStep, base_url: Optional[str] = None) -> None:
    """Execute one non-capture step on the page."""
    logger.debug("Running step: %s", step.to_json_dict())

    match step.type:
        case "goto":
            url = resolve_url(base_url, step.url)
            logger.debug("Navigating to %s...", url)
            await page.goto(url, wait_until="networkidle")

        case "click":
            await locator_for(page, step.selector).click()

        case "fill":
            await locator_for(page, step.selector).fill(step.value)

        case "press":
            await locator_for(page, step.selector).press(step.key)

        case "waitFor":
            if step.selector is not None:
                await locator_for(page, step.selector).wait_for(
                    timeout=step.timeout_ms or READY_TIMEOUT_MS)
            elif step.timeout_ms:
                await asyncio.sleep(step.timeout_ms / 1000)

        case "capture":
            raise ValueError("capture steps are handled by run_flow")

        case _:
            raise ValueError(f"Unknown step type: {step.type}")


async def run_flow(
    browser: Browser,
    flow: Flow,
    config: ScreenboardConfig,
    manifest: Manifest,
    out_dir: str | Path,
    base_url: Optional[str] = None,
    discovered: Optional[list[str]] = None,
) -> FlowManifestEntry:
    """Run a flow in its own context, appending capture steps to the manifest.

    The flow's state and viewport are looked up by id and fall back to the
    first declared entry. Capture entries carry the flow id and the capture
    step's zero-based position in ``flow.steps``.
    """
    state = config.find_state(flow.state)
    viewport = config.find_viewport(flow.viewport)
    logger.info("Running flow '%s' (%d steps, state=%s, viewport=%s)",
                flow.name, len(flow.steps), state.id, viewport.id)

    context = await create_context(browser, state, viewport)
    try:
        page = await context.new_page()
        if discovered is not None:
            register_discovery(page, discovered)
        await run_setup(state, page)

        captures = 0
        for index, step in enumerate(flow.steps):
            if step.type != "capture":
                await run_step(page, step, base_url)
                continue

            captures += 1
            screen = Screen(
                id=f"{flow.id}-step-{captures}",
                name=step.name or f"{flow.name} Step {captures}",
            )
            entry = await capture_page(page, screen, state, viewport, out_dir)
            entry.flow_id = flow.id
            entry.step_index = index
            manifest.screens.append(entry)
    finally:
        await close_quietly(context, "flow context")

    return FlowManifestEntry(id=flow.id, name=flow.name, steps=flow.steps)
