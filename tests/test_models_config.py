"""Tests for configuration models, parsing, merging and normalization."""

import pytest
from pydantic import ValidationError

from screenboard.models.config import (
    DEFAULT_OUTPUT_DIR,
    AppConfig,
    CssSelector,
    Flow,
    OutputConfig,
    RoleSelector,
    Screen,
    ScreenboardConfig,
    State,
    TestIdSelector,
    TimeoutReady,
    Viewport,
    WaitForStep,
    merge_config,
    normalize_config,
    parse_overlay,
    to_overlay,
)


class TestSelectorSpec:
    """Tests for the selector union."""

    def test_each_variant_parses(self):
        flow = Flow.model_validate({
            "id": "f",
            "name": "F",
            "steps": [
                {"type": "click", "selector": {"testId": "save"}},
                {"type": "click", "selector": {"role": "button", "name": "Save"}},
                {"type": "click", "selector": {"text": "Save"}},
                {"type": "click", "selector": {"css": "#save"}},
            ],
        })
        kinds = [type(step.selector).__name__ for step in flow.steps]
        assert kinds == ["TestIdSelector", "RoleSelector", "TextSelector", "CssSelector"]

    def test_role_name_is_optional(self):
        flow = Flow.model_validate({
            "id": "f", "name": "F",
            "steps": [{"type": "click", "selector": {"role": "dialog"}}],
        })
        assert flow.steps[0].selector == RoleSelector(role="dialog")

    def test_two_variants_rejected(self):
        with pytest.raises(ValidationError):
            parse_overlay({"flows": [{
                "id": "f", "name": "F",
                "steps": [{"type": "click", "selector": {"testId": "a", "css": ".a"}}],
            }]})

    def test_empty_selector_rejected(self):
        with pytest.raises(ValidationError):
            parse_overlay({"flows": [{
                "id": "f", "name": "F",
                "steps": [{"type": "click", "selector": {}}],
            }]})

    def test_serializes_with_camel_case(self):
        assert TestIdSelector(test_id="save").to_json_dict() == {"testId": "save"}


class TestScreen:
    """Tests for the Screen model."""

    def test_url_and_template_are_exclusive(self):
        with pytest.raises(ValidationError, match="both url and template"):
            Screen(id="s", name="S", url="/a", template="/b/:id")

    def test_ready_timeout(self):
        screen = Screen.model_validate({"id": "s", "name": "S", "ready": {"timeoutMs": 500}})
        assert screen.ready == TimeoutReady(timeout_ms=500)

    def test_ready_selector(self):
        screen = Screen.model_validate({"id": "s", "name": "S", "ready": {"css": "main"}})
        assert screen.ready == CssSelector(css="main")

    def test_ready_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            Screen.model_validate({"id": "s", "name": "S", "ready": {"timeoutMs": 0}})


class TestParseOverlay:
    """Tests for overlay validation."""

    def test_full_overlay(self):
        overlay = parse_overlay({
            "app": {"baseUrl": "http://localhost:3000"},
            "output": {"dir": "out", "title": "Board"},
            "viewports": [{"id": "mobile", "name": "Mobile", "width": 390, "height": 844}],
            "states": [{"id": "auth", "name": "Signed in", "storageState": "auth.json"}],
            "screens": [{"id": "item", "name": "Item", "template": "/item/:id",
                         "params": {"id": ["1", "2"]}, "states": ["auth"]}],
            "flows": [{"id": "f", "name": "F", "steps": [
                {"type": "goto", "url": "/"},
                {"type": "fill", "selector": {"testId": "q"}, "value": "shoes"},
                {"type": "press", "selector": {"testId": "q"}, "key": "Enter"},
                {"type": "waitFor", "timeoutMs": 250},
                {"type": "capture"},
            ]}],
        })
        assert overlay.app.base_url == "http://localhost:3000"
        assert overlay.states[0].storage_state == "auth.json"
        assert overlay.screens[0].params == {"id": ["1", "2"]}
        assert isinstance(overlay.flows[0].steps[3], WaitForStep)
        assert overlay.flows[0].steps[3].timeout_ms == 250

    def test_missing_fields_stay_undefined(self):
        overlay = parse_overlay({})
        assert overlay.viewports is None
        assert overlay.app is None

    def test_rejects_unknown_keys(self):
        with pytest.raises(ValidationError):
            parse_overlay({"viewport": []})

    def test_rejects_setup_hook_in_json(self):
        with pytest.raises(ValidationError):
            parse_overlay({"states": [{"id": "a", "name": "A", "setup": "login()"}]})

    def test_does_not_coerce_numbers(self):
        with pytest.raises(ValidationError):
            parse_overlay({"viewports": [{"id": "d", "name": "D", "width": "1280", "height": 720}]})

    def test_rejects_non_positive_size(self):
        with pytest.raises(ValidationError):
            parse_overlay({"viewports": [{"id": "d", "name": "D", "width": 0, "height": 720}]})

    def test_rejects_unknown_step_type(self):
        with pytest.raises(ValidationError):
            parse_overlay({"flows": [{"id": "f", "name": "F", "steps": [{"type": "hover"}]}]})


class TestMergeConfig:
    """Tests for merge_config precedence."""

    def _base(self) -> ScreenboardConfig:
        return ScreenboardConfig(
            app=AppConfig(base_url="http://base", command="npm run dev"),
            output=OutputConfig(dir="base-out", title="Base"),
            viewports=[Viewport(id="desktop", name="Desktop", width=1280, height=720)],
            states=[State(id="default", name="Default", setup=lambda page: None)],
            screens=[Screen(id="home", name="Home", url="/")],
        )

    def test_overlay_base_url_wins(self):
        merged = merge_config(self._base(), parse_overlay({"app": {"baseUrl": "http://overlay"}}))
        assert merged.app.base_url == "http://overlay"
        assert merged.app.command == "npm run dev"

    def test_output_merges_per_key(self):
        merged = merge_config(self._base(), parse_overlay({"output": {"title": "Overlay"}}))
        assert merged.output.title == "Overlay"
        assert merged.output.dir == "base-out"

    def test_overlay_viewports_replace_wholesale(self):
        merged = merge_config(self._base(), parse_overlay({
            "viewports": [{"id": "mobile", "name": "Mobile", "width": 390, "height": 844}],
        }))
        assert [v.id for v in merged.viewports] == ["mobile"]

    def test_base_kept_when_overlay_omits_field(self):
        base = self._base()
        merged = merge_config(base, parse_overlay({"app": {"baseUrl": "http://overlay"}}))
        assert merged.viewports == base.viewports
        assert merged.screens == base.screens
        assert merged.states[0].setup is base.states[0].setup

    def test_overlay_states_become_states(self):
        merged = merge_config(self._base(), parse_overlay({"states": [{"id": "auth", "name": "Auth"}]}))
        assert isinstance(merged.states[0], State)
        assert merged.states[0].setup is None

    def test_none_overlay_returns_base(self):
        base = self._base()
        assert merge_config(base, None) is base


class TestNormalizeConfig:
    """Tests for normalize_config defaults."""

    def test_fills_defaults(self):
        config = normalize_config(ScreenboardConfig())
        assert config.output.dir == DEFAULT_OUTPUT_DIR
        assert [v.id for v in config.viewports] == ["desktop"]
        assert (config.viewports[0].width, config.viewports[0].height) == (1280, 720)
        assert [s.id for s in config.states] == ["default"]
        assert config.screens == []
        assert config.flows == []

    def test_keeps_declared_values(self, screenboard_config):
        config = normalize_config(screenboard_config)
        assert config.output.dir == screenboard_config.output.dir
        assert [s.id for s in config.screens] == ["home", "pricing"]

    def test_lookup_falls_back_to_first(self, screenboard_config):
        assert screenboard_config.find_state("missing").id == "default"
        assert screenboard_config.find_viewport(None).id == "desktop"


class TestToOverlay:
    """Tests for serializing a config back to JSON."""

    def test_strips_setup_and_round_trips(self):
        config = ScreenboardConfig(
            states=[State(id="auth", name="Auth", storage_state="auth.json", setup=lambda page: None)],
            screens=[Screen(id="home", name="Home", url="/")],
        )
        data = to_overlay(config)
        assert data["states"] == [{"id": "auth", "name": "Auth", "storageState": "auth.json"}]
        assert parse_overlay(data).screens[0].id == "home"
