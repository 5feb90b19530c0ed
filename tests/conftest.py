"""Pytest configuration and shared fixtures."""

from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest

from screenboard.models.config import (
    AppConfig,
    CaptureStep,
    ClickStep,
    Flow,
    GotoStep,
    OutputConfig,
    Screen,
    ScreenboardConfig,
    State,
    TestIdSelector,
    Viewport,
)

PNG_BYTES = b"\x89PNG\r\n\x1a\n"


# ============================================================================
# Playwright doubles
# ============================================================================


async def _write_png(path: str, full_page: bool = True) -> bytes:
    Path(path).write_bytes(PNG_BYTES)
    return PNG_BYTES


def _mock_locator(count: int = 1) -> AsyncMock:
    """Create an AsyncMock locator (click/fill/press/wait_for/count are async)."""
    locator = AsyncMock()
    locator.count = AsyncMock(return_value=count)
    return locator


def _mock_page(url: str = "http://localhost:5173/", locator=None) -> AsyncMock:
    """Create an AsyncMock page whose screenshots land on disk."""
    page = AsyncMock()
    page.url = url
    page.on = Mock()  # Sync callback registration
    page.main_frame = Mock(url=url)
    page.screenshot = AsyncMock(side_effect=_write_png)

    locator = locator or _mock_locator()
    page.get_by_test_id = Mock(return_value=locator)
    page.get_by_role = Mock(return_value=locator)
    page.get_by_text = Mock(return_value=locator)
    page.locator = Mock(return_value=locator)
    return page


def _mock_context(page=None) -> AsyncMock:
    ctx = AsyncMock()
    ctx.new_page = AsyncMock(return_value=page or _mock_page())
    return ctx


def _mock_browser(*contexts) -> AsyncMock:
    """Create a browser that hands out the given contexts in order."""
    browser = AsyncMock()
    if contexts:
        browser.new_context = AsyncMock(side_effect=list(contexts))
    else:
        browser.new_context = AsyncMock(side_effect=lambda **_: _mock_context())
    return browser


def _mock_process(pid: int = 42, returncode=None) -> Mock:
    """Create a spawned-app process double; ``wait`` is async."""
    process = Mock(pid=pid, returncode=returncode)
    process.wait = AsyncMock(return_value=0)
    return process


def _handler_for(page: Mock, event: str):
    """Return the last callback registered with ``page.on(event, ...)``."""
    handlers = [c.args[1] for c in page.on.call_args_list if c.args[0] == event]
    assert handlers, f"no handler registered for {event}"
    return handlers[-1]


@pytest.fixture
def png_bytes() -> bytes:
    """Bytes every mocked screenshot writes."""
    return PNG_BYTES


@pytest.fixture
def make_locator():
    return _mock_locator


@pytest.fixture
def make_page():
    return _mock_page


@pytest.fixture
def make_context():
    return _mock_context


@pytest.fixture
def make_browser():
    return _mock_browser


@pytest.fixture
def make_process():
    return _mock_process


@pytest.fixture
def handler_for():
    return _handler_for


@pytest.fixture
def mock_page() -> AsyncMock:
    return _mock_page()


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def desktop() -> Viewport:
    return Viewport(id="desktop", name="Desktop", width=1280, height=720)


@pytest.fixture
def mobile() -> Viewport:
    return Viewport(id="mobile", name="Mobile", width=390, height=844)


@pytest.fixture
def default_state() -> State:
    return State(id="default", name="Default")


@pytest.fixture
def screenboard_config(desktop: Viewport, default_state: State, tmp_path: Path) -> ScreenboardConfig:
    """One viewport, one state, two screens."""
    return ScreenboardConfig(
        app=AppConfig(base_url="http://localhost:5173"),
        output=OutputConfig(dir=str(tmp_path / "board"), title="Demo"),
        viewports=[desktop],
        states=[default_state],
        screens=[
            Screen(id="home", name="Home", url="/"),
            Screen(id="pricing", name="Pricing", url="/pricing"),
        ],
    )


@pytest.fixture
def settings_flow() -> Flow:
    return Flow(
        id="save-settings",
        name="Save Settings",
        steps=[
            GotoStep(url="/settings"),
            ClickStep(selector=TestIdSelector(test_id="save-settings")),
            CaptureStep(name="Saved"),
        ],
    )
