"""Configuration models for viewports, states, screens and flows."""

from __future__ import annotations

from typing import Annotated, Any, Awaitable, Callable, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

DEFAULT_OUTPUT_DIR = "screenboard"


class SchemaModel(BaseModel):
    """Base for every serializable model: camelCase JSON keys, no unknown keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


PositiveInt = Annotated[int, Field(gt=0, strict=True)]


# ---------------------------------------------------------------------------
# Selectors
# ---------------------------------------------------------------------------


class TestIdSelector(SchemaModel):
    test_id: str


class RoleSelector(SchemaModel):
    role: str
    name: Optional[str] = None


class TextSelector(SchemaModel):
    text: str


class CssSelector(SchemaModel):
    css: str


SelectorSpec = Union[TestIdSelector, RoleSelector, TextSelector, CssSelector]


class TimeoutReady(SchemaModel):
    timeout_ms: PositiveInt


ReadySpec = Union[TestIdSelector, RoleSelector, TextSelector, CssSelector, TimeoutReady]


# ---------------------------------------------------------------------------
# Viewports, states, screens
# ---------------------------------------------------------------------------


class Viewport(SchemaModel):
    id: str
    name: str
    width: PositiveInt
    height: PositiveInt


class StateEntry(SchemaModel):
    """A state as it appears in JSON: no setup hook."""

    id: str
    name: str
    storage_state: Optional[str] = None


SetupHook = Callable[[Any], Optional[Awaitable[None]]]


class State(StateEntry):
    setup: Optional[SetupHook] = Field(default=None, exclude=True)


class Screen(SchemaModel):
    id: str
    name: str
    url: Optional[str] = None
    template: Optional[str] = None
    params: Optional[dict[str, list[str]]] = None
    ready: Optional[ReadySpec] = None
    states: Optional[list[str]] = None
    viewports: Optional[list[str]] = None

    @model_validator(mode="after")
    def _url_or_template(self) -> "Screen":
        if self.url is not None and self.template is not None:
            raise ValueError(f"screen '{self.id}' sets both url and template")
        return self


# ---------------------------------------------------------------------------
# Flows
# ---------------------------------------------------------------------------


class GotoStep(SchemaModel):
    type: Literal["goto"] = "goto"
    url: str


class ClickStep(SchemaModel):
    type: Literal["click"] = "click"
    selector: SelectorSpec


class FillStep(SchemaModel):
    type: Literal["fill"] = "fill"
    selector: SelectorSpec
    value: str


class PressStep(SchemaModel):
    type: Literal["press"] = "press"
    selector: SelectorSpec
    key: str


class WaitForStep(SchemaModel):
    type: Literal["waitFor"] = "waitFor"
    selector: Optional[SelectorSpec] = None
    timeout_ms: Optional[PositiveInt] = None


class CaptureStep(SchemaModel):
    type: Literal["capture"] = "capture"
    name: Optional[str] = None


FlowStep = Annotated[
    Union[GotoStep, ClickStep, FillStep, PressStep, WaitForStep, CaptureStep],
    Field(discriminator="type"),
]


class Flow(SchemaModel):
    id: str
    name: str
    viewport: Optional[str] = None
    state: Optional[str] = None
    steps: list[FlowStep]


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


class AppConfig(SchemaModel):
    base_url: Optional[str] = None
    command: Optional[str] = None
    cwd: Optional[str] = None


class OutputConfig(SchemaModel):
    dir: Optional[str] = None
    title: Optional[str] = None


DEFAULT_VIEWPORT = Viewport(id="desktop", name="Desktop", width=1280, height=720)
DEFAULT_STATE = State(id="default", name="Default")


class ScreenboardConfig(SchemaModel):
    app: AppConfig = Field(default_factory=AppConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    viewports: list[Viewport] = Field(default_factory=list)
    states: list[State] = Field(default_factory=list)
    screens: list[Screen] = Field(default_factory=list)
    flows: list[Flow] = Field(default_factory=list)

    def find_state(self, state_id: Optional[str]) -> State:
        """Look up a state by id, falling back to the first declared state."""
        for state in self.states:
            if state.id == state_id:
                return state
        return self.states[0] if self.states else DEFAULT_STATE

    def find_viewport(self, viewport_id: Optional[str]) -> Viewport:
        """Look up a viewport by id, falling back to the first declared viewport."""
        for viewport in self.viewports:
            if viewport.id == viewport_id:
                return viewport
        return self.viewports[0] if self.viewports else DEFAULT_VIEWPORT


class ScreenboardOverlay(SchemaModel):
    """JSON overlay (``screenboard.json``): every field optional, no hooks."""

    app: Optional[AppConfig] = None
    output: Optional[OutputConfig] = None
    viewports: Optional[list[Viewport]] = None
    states: Optional[list[StateEntry]] = None
    screens: Optional[list[Screen]] = None
    flows: Optional[list[Flow]] = None


def parse_overlay(data: Any) -> ScreenboardOverlay:
    """Validate a JSON overlay. Raises pydantic.ValidationError."""
    return ScreenboardOverlay.model_validate(data)


def _as_state(entry: StateEntry) -> State:
    if isinstance(entry, State):
        return entry
    return State.model_validate(entry.model_dump())


def merge_config(base: ScreenboardConfig, overlay: Optional[ScreenboardOverlay]) -> ScreenboardConfig:
    """Overlay a parsed JSON config onto a base config.

    ``app`` and ``output`` merge key by key; list fields are replaced
    wholesale when the overlay defines them.
    """
    if overlay is None:
        return base

    app = base.app
    if overlay.app is not None:
        app = base.app.model_copy(update=overlay.app.model_dump(exclude_unset=True))
    output = base.output
    if overlay.output is not None:
        output = base.output.model_copy(update=overlay.output.model_dump(exclude_unset=True))

    return ScreenboardConfig(
        app=app,
        output=output,
        viewports=overlay.viewports if overlay.viewports is not None else base.viewports,
        states=[_as_state(s) for s in overlay.states] if overlay.states is not None else base.states,
        screens=overlay.screens if overlay.screens is not None else base.screens,
        flows=overlay.flows if overlay.flows is not None else base.flows,
    )


def normalize_config(config: ScreenboardConfig) -> ScreenboardConfig:
    """Fill defaults: output dir, a default viewport and a default state."""
    return ScreenboardConfig(
        app=config.app.model_copy(),
        output=OutputConfig(
            dir=config.output.dir or DEFAULT_OUTPUT_DIR,
            title=config.output.title,
        ),
        viewports=list(config.viewports) or [DEFAULT_VIEWPORT],
        states=list(config.states) or [DEFAULT_STATE],
        screens=list(config.screens),
        flows=list(config.flows),
    )


def strip_setup(states: list[State]) -> list[StateEntry]:
    return [StateEntry.model_validate(state.model_dump()) for state in states]


def to_overlay(config: ScreenboardConfig) -> dict:
    """Serialize a config to its JSON form, dropping setup hooks."""
    return ScreenboardOverlay(
        app=config.app,
        output=config.output,
        viewports=config.viewports,
        states=strip_setup(config.states),
        screens=config.screens,
        flows=config.flows,
    ).to_json_dict()
