"""Live recorder — turns clicks and navigations in the page into flow steps."""

from __future__ import annotations

import logging
from typing import Optional

from playwright.async_api import Frame, Page
from pydantic import TypeAdapter, ValidationError

from screenboard.models.config import ClickStep, Flow, GotoStep, SelectorSpec
from screenboard.url_utils import slugify

logger = logging.getLogger(__name__)

BRIDGE_FUNCTION = "screenboardRecord"

# Runs in every document of the page. Child frames are skipped since steps
# replay against the main frame. The flag keeps one listener per document
# even when the script is both evaluated and registered as an init script.
_RECORDER_SCRIPT = """
(() => {
    if (window !== window.top) {
        return;
    }
    if (window.__screenboardRecorderInstalled) {
        return;
    }
    window.__screenboardRecorderInstalled = true;

    const getSelector = (el) => {
        const testId = el.getAttribute('data-testid');
        if (testId) return { testId };
        const role = el.getAttribute('role');
        const name = el.getAttribute('aria-label') || (el.textContent || '').trim();
        if (role) return name ? { role, name } : { role };
        const text = (el.textContent || '').trim();
        if (text && text.length < 80) return { text };
        if (el.id) return { css: `#${el.id}` };
        const className = (el.getAttribute('class') || '').split(' ').filter(Boolean)[0];
        if (className) return { css: `${el.tagName.toLowerCase()}.${className}` };
        return { css: el.tagName.toLowerCase() };
    };

    document.addEventListener('click', (event) => {
        const target = event.target;
        if (!target || !(target instanceof Element)) return;
        window.screenboardRecord({ type: 'click', selector: getSelector(target) });
    }, true);
})();
"""

_selector_adapter: TypeAdapter[SelectorSpec] = TypeAdapter(SelectorSpec)


class LiveRecorder:
    """Records interactions on one page.

    A recorder belongs to a single page; a new browsing context gets a new
    recorder. ``install`` is idempotent for the lifetime of the recorder.
    """

    def __init__(self, page: Page):
        self.page = page
        self.installed = False
        self.flow: Optional[Flow] = None
        self._last_nav_url: Optional[str] = None

    @property
    def recording(self) -> bool:
        return self.flow is not None

    async def install(self) -> None:
        """Expose the bridge function and attach the in-page click listener."""
        if self.installed:
            return
        await self.page.expose_function(BRIDGE_FUNCTION, self._on_record)
        await self.page.add_init_script(_RECORDER_SCRIPT)
        await self.page.evaluate(_RECORDER_SCRIPT)
        self.page.on("framenavigated", self._on_frame_navigated)
        self.installed = True
        logger.debug("Recorder installed on %s", self.page.url)

    def start(self, name: str) -> Flow:
        """Begin buffering steps into a new flow."""
        self.flow = Flow(id=slugify(name or "flow") or "flow", name=name, steps=[])
        self._last_nav_url = self.page.url
        logger.info("Recording flow '%s'", self.flow.name)
        return self.flow

    def stop(self, state_id: Optional[str] = None, viewport_id: Optional[str] = None) -> Optional[Flow]:
        """Finish the recording, stamped with the session's state and viewport."""
        flow = self.flow
        self.flow = None
        if flow is None:
            return None
        flow.state = state_id
        flow.viewport = viewport_id
        logger.info("Recorded flow '%s' with %d steps", flow.name, len(flow.steps))
        return flow

    def adopt(self, previous: "LiveRecorder") -> None:
        """Carry an in-progress recording over from a recorder being replaced."""
        self.flow = previous.flow
        self._last_nav_url = previous._last_nav_url

    def _on_record(self, payload: dict) -> None:
        if self.flow is None or not isinstance(payload, dict):
            return
        if payload.get("type") == "click" and payload.get("selector"):
            try:
                selector = _selector_adapter.validate_python(payload["selector"])
            except ValidationError as e:
                logger.warning("Ignoring click with unusable selector %s: %s", payload["selector"], e)
                return
            self.flow.steps.append(ClickStep(selector=selector))
        elif payload.get("type") == "goto" and payload.get("url"):
            self._append_goto(payload["url"])

    def _on_frame_navigated(self, frame: Frame) -> None:
        if self.flow is None or frame != self.page.main_frame:
            return
        self._append_goto(frame.url)

    def _append_goto(self, url: str) -> None:
        if not url or url == self._last_nav_url:
            return
        self._last_nav_url = url
        self.flow.steps.append(GotoStep(url=url))
