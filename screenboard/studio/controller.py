"""Studio session controller — one long-lived browser shared by API calls.

The controller moves between three states:

* Idle: no browser.
* Launched: browser open; a context and page exist once ``launch`` or
  ``capture`` has ensured one.
* Recording: Launched with an active recorder flow.

A browsing context is only recreated when the requested state id or
viewport id differs from the active one. Failed operations leave the
session as it was so the caller can retry.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from pydantic import BaseModel

from screenboard.capture.app_server import start_app, stop_app
from screenboard.capture.browser import (
    close_quietly,
    create_context,
    launch_browser,
    register_discovery,
    run_setup,
)
from screenboard.capture.screenshot import capture_page, settle
from screenboard.capture.selectors import count_matches
from screenboard.errors import NotLaunched
from screenboard.models.config import (
    Flow,
    Screen,
    ScreenboardConfig,
    SchemaModel,
    SelectorSpec,
    normalize_config,
)
from screenboard.models.manifest import ScreenManifestEntry
from screenboard.url_utils import resolve_url, slugify

from .recorder import LiveRecorder

logger = logging.getLogger(__name__)


class LaunchOptions(BaseModel):
    base_url: Optional[str] = None
    headless: Optional[bool] = None
    viewport_id: Optional[str] = None
    state_id: Optional[str] = None


class CaptureRequest(BaseModel):
    name: str
    url: Optional[str] = None
    viewport_id: Optional[str] = None
    state_id: Optional[str] = None


class StudioStatus(SchemaModel):
    connected: bool
    url: Optional[str] = None
    base_url: Optional[str] = None
    recording: Optional[bool] = None


class StudioCapture(SchemaModel):
    screen: Screen
    shot: ScreenManifestEntry


class StudioController:
    """Owns the interactive browser session and the live config."""

    def __init__(self, config: ScreenboardConfig):
        self._config = normalize_config(config)
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None
        self._recorder: Optional[LiveRecorder] = None
        self._child: Optional[asyncio.subprocess.Process] = None
        self._base_url: Optional[str] = None
        self._current_state_id: Optional[str] = None
        self._current_viewport_id: Optional[str] = None
        self._discovered: list[str] = []
        self._lock = asyncio.Lock()

    # -- live config -------------------------------------------------------

    @property
    def config(self) -> ScreenboardConfig:
        return self._config

    def update_config(self, next_config: ScreenboardConfig) -> None:
        """Replace the working config without touching the browser session."""
        self._config = normalize_config(next_config)

    def add_screen(self, screen: Screen) -> None:
        self._config.screens.append(screen)

    def add_flow(self, flow: Flow) -> None:
        self._config.flows.append(flow)

    # -- status ------------------------------------------------------------

    def status(self) -> StudioStatus:
        return StudioStatus(
            connected=self._page is not None,
            url=self._page.url if self._page is not None else None,
            base_url=self._base_url,
            recording=self._recorder is not None and self._recorder.recording,
        )

    @property
    def discovered_urls(self) -> list[str]:
        return list(self._discovered)

    # -- operations --------------------------------------------------------

    async def launch(self, options: Optional[LaunchOptions] = None) -> StudioStatus:
        """Start the app and browser if needed, then ensure a matching context."""
        options = options or LaunchOptions()
        async with self._lock:
            self._base_url = options.base_url or self._config.app.base_url

            if self._browser is None:
                self._child = await start_app(self._config.app, self._base_url)
                try:
                    self._playwright = await async_playwright().start()
                    headless = options.headless if options.headless is not None else False
                    self._browser = await launch_browser(self._playwright, headless=headless)
                except BaseException:
                    await self._shutdown()
                    raise
                logger.info("Studio browser launched")

            await self._ensure_context(options.state_id, options.viewport_id)

            if self._base_url:
                await self._page.goto(self._base_url, wait_until="domcontentloaded")
        return self.status()

    async def goto(self, url: str) -> None:
        async with self._lock:
            if self._page is None:
                raise NotLaunched()
            await self._page.goto(resolve_url(self._base_url, url), wait_until="networkidle")

    async def capture(self, request: CaptureRequest) -> StudioCapture:
        """Screenshot the current page and append it to the live config."""
        async with self._lock:
            if self._browser is None:
                raise NotLaunched()
            await self._ensure_context(request.state_id, request.viewport_id)

            if request.url:
                await self._page.goto(resolve_url(self._base_url, request.url),
                                      wait_until="networkidle")
                await settle()

            state = self._config.find_state(request.state_id)
            viewport = self._config.find_viewport(request.viewport_id)
            screen_id = slugify(request.name) or "screen"
            shot = await capture_page(
                self._page,
                Screen(id=screen_id, name=request.name),
                state,
                viewport,
                Path(self._config.output.dir),
            )
            screen = Screen(
                id=screen_id,
                name=request.name,
                url=shot.url,
                states=[state.id],
                viewports=[viewport.id],
            )
            self.add_screen(screen)
            logger.info("Captured '%s' at %s", request.name, shot.url)
            return StudioCapture(screen=screen, shot=shot)

    async def validate_selector(self, selector: SelectorSpec) -> int:
        async with self._lock:
            if self._page is None:
                raise NotLaunched()
            return await count_matches(self._page, selector)

    async def start_recording(self, name: str) -> Flow:
        async with self._lock:
            if self._page is None or self._recorder is None:
                raise NotLaunched()
            await self._recorder.install()
            return self._recorder.start(name)

    def stop_recording(self) -> Optional[Flow]:
        """Finish the active recording; the caller decides whether to keep it."""
        if self._recorder is None:
            return None
        return self._recorder.stop(self._current_state_id, self._current_viewport_id)

    async def close(self) -> None:
        """Tear down the session from any state and return to Idle."""
        async with self._lock:
            await self._shutdown()
        logger.info("Studio session closed")

    # -- internals ---------------------------------------------------------

    async def _ensure_context(self, state_id: Optional[str], viewport_id: Optional[str]) -> None:
        state = self._config.find_state(state_id)
        viewport = self._config.find_viewport(viewport_id)
        if (
            self._context is not None
            and self._current_state_id == state.id
            and self._current_viewport_id == viewport.id
        ):
            return

        logger.debug("Creating context for state=%s viewport=%s", state.id, viewport.id)
        await close_quietly(self._context, "studio context")
        self._context = None
        self._page = None

        self._context = await create_context(self._browser, state)
        self._page = await self._context.new_page()
        register_discovery(self._page, self._discovered)

        previous = self._recorder
        self._recorder = LiveRecorder(self._page)
        if previous is not None and previous.recording:
            self._recorder.adopt(previous)
            await self._recorder.install()

        await self._page.set_viewport_size({"width": viewport.width, "height": viewport.height})
        await run_setup(state, self._page)
        self._current_state_id = state.id
        self._current_viewport_id = viewport.id

    async def _shutdown(self) -> None:
        await close_quietly(self._context, "studio context")
        await close_quietly(self._browser, "studio browser")
        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.warning("Failed to stop Playwright: %s", e)
        await stop_app(self._child)

        self._playwright = None
        self._browser = None
        self._context = None
        self._page = None
        self._recorder = None
        self._child = None
        self._current_state_id = None
        self._current_viewport_id = None
