"""Studio HTTP API — exposes the session controller to the web UI.

Every mutating endpoint runs its operation in isolation: a failure is
reported as HTTP 500 with ``{"error": message}`` and the browser session
stays alive.
"""

from __future__ import annotations

import json
import logging
import webbrowser
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Optional

import uvicorn
from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, TypeAdapter
from pydantic.alias_generators import to_camel

from screenboard.models.config import (
    ScreenboardConfig,
    SelectorSpec,
    merge_config,
    normalize_config,
    parse_overlay,
    to_overlay,
)

from .controller import CaptureRequest, LaunchOptions, StudioController

logger = logging.getLogger(__name__)

OVERLAY_FILE = "screenboard.json"

_selector_adapter: TypeAdapter[SelectorSpec] = TypeAdapter(SelectorSpec)


class _Body(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LaunchBody(_Body):
    base_url: Optional[str] = None
    headless: Optional[bool] = None
    viewport_id: Optional[str] = None
    state_id: Optional[str] = None
    config: Optional[dict[str, Any]] = None


class GotoBody(_Body):
    url: str = "/"


class CaptureBody(_Body):
    name: str = "Untitled"
    url: Optional[str] = None
    viewport_id: Optional[str] = None
    state_id: Optional[str] = None
    config: Optional[dict[str, Any]] = None


class SelectorBody(_Body):
    selector: Any = None


class RecordStartBody(_Body):
    name: str = "Flow"


def _error(e: Exception) -> JSONResponse:
    logger.error("Studio operation failed: %s", e)
    return JSONResponse(status_code=500, content={"error": str(e)})


def create_app(controller: StudioController, overlay_path: str | Path = OVERLAY_FILE) -> FastAPI:
    """Build the studio API around a controller."""
    overlay_path = Path(overlay_path)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        await controller.close()

    app = FastAPI(title="screenboard studio", lifespan=lifespan)

    # Malformed bodies fail like any other operation.
    @app.exception_handler(RequestValidationError)
    async def invalid_body(_request: Request, exc: RequestValidationError):
        return _error(exc)

    router = APIRouter(prefix="/api")

    def apply_overlay(data: Optional[dict]) -> None:
        if data:
            controller.update_config(merge_config(controller.config, parse_overlay(data)))

    @router.get("/status")
    async def status():
        return controller.status().to_json_dict()

    @router.get("/config")
    async def get_config():
        return to_overlay(controller.config)

    @router.post("/launch")
    async def launch(body: Optional[LaunchBody] = None):
        body = body or LaunchBody()
        try:
            apply_overlay(body.config)
            result = await controller.launch(LaunchOptions(
                base_url=body.base_url,
                headless=body.headless,
                viewport_id=body.viewport_id,
                state_id=body.state_id,
            ))
            return result.to_json_dict()
        except Exception as e:
            return _error(e)

    @router.post("/goto")
    async def goto(body: Optional[GotoBody] = None):
        body = body or GotoBody()
        try:
            await controller.goto(body.url)
            return {"ok": True}
        except Exception as e:
            return _error(e)

    @router.post("/capture")
    async def capture(body: Optional[CaptureBody] = None):
        body = body or CaptureBody()
        try:
            apply_overlay(body.config)
            result = await controller.capture(CaptureRequest(
                name=body.name,
                url=body.url,
                viewport_id=body.viewport_id,
                state_id=body.state_id,
            ))
            return result.to_json_dict()
        except Exception as e:
            return _error(e)

    @router.post("/validateSelector")
    async def validate_selector(body: Optional[SelectorBody] = None):
        body = body or SelectorBody()
        try:
            selector = _selector_adapter.validate_python(body.selector)
            return {"count": await controller.validate_selector(selector)}
        except Exception as e:
            return _error(e)

    @router.post("/record/start")
    async def record_start(body: Optional[RecordStartBody] = None):
        body = body or RecordStartBody()
        try:
            await controller.start_recording(body.name)
            return {"ok": True}
        except Exception as e:
            return _error(e)

    @router.post("/record/stop")
    async def record_stop():
        try:
            flow = controller.stop_recording()
            if flow is None:
                return JSONResponse(content=None)
            controller.add_flow(flow)
            return flow.to_json_dict()
        except Exception as e:
            return _error(e)

    @router.post("/save")
    async def save(body: Optional[dict[str, Any]] = None):
        try:
            overlay = parse_overlay(body or {})
            overlay_path.write_text(json.dumps(overlay.to_json_dict(), indent=2), encoding="utf-8")
            controller.update_config(merge_config(controller.config, overlay))
            logger.info("Saved studio config to %s", overlay_path)
            return {"ok": True}
        except Exception as e:
            return _error(e)

    @router.post("/close")
    async def close():
        try:
            await controller.close()
            return {"ok": True}
        except Exception as e:
            return _error(e)

    app.include_router(router)
    return app


def run_studio_server(
    config: ScreenboardConfig,
    port: int,
    base_url: Optional[str] = None,
    out_dir: Optional[str] = None,
    open_browser: bool = False,
    overlay_path: str | Path = OVERLAY_FILE,
) -> None:
    """Serve the studio API until interrupted."""
    config = config.model_copy(update={
        "app": config.app.model_copy(update={"base_url": base_url or config.app.base_url}),
        "output": config.output.model_copy(update={"dir": out_dir or config.output.dir}),
    })
    controller = StudioController(normalize_config(config))
    app = create_app(controller, overlay_path)

    url = f"http://localhost:{port}"
    logger.info("Studio running at %s", url)
    if open_browser:
        webbrowser.open(url)
    uvicorn.run(app, host="127.0.0.1", port=port, log_level="warning")
