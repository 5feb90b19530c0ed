"""Manifest data structures produced by a capture run."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import Field

from .config import FlowStep, SchemaModel, ScreenboardConfig, StateEntry, Viewport, strip_setup

logger = logging.getLogger(__name__)

MANIFEST_FILE = "manifest.json"


class ScreenManifestEntry(SchemaModel):
    id: str
    name: str
    url: str
    image: str  # relative to the output dir: screens/<file>.png
    width: int
    height: int
    viewport_id: str
    state_id: str
    flow_id: Optional[str] = None
    step_index: Optional[int] = None


class FlowManifestEntry(SchemaModel):
    id: str
    name: str
    steps: list[FlowStep] = Field(default_factory=list)


class Manifest(SchemaModel):
    title: Optional[str] = None
    generated_at: str
    base_url: Optional[str] = None
    screens: list[ScreenManifestEntry] = Field(default_factory=list)
    flows: list[FlowManifestEntry] = Field(default_factory=list)
    viewports: list[Viewport] = Field(default_factory=list)
    states: list[StateEntry] = Field(default_factory=list)
    discovered_urls: list[str] = Field(default_factory=list)


def create_manifest(config: ScreenboardConfig, base_url: Optional[str] = None) -> Manifest:
    return Manifest(
        title=config.output.title,
        generated_at=datetime.now(timezone.utc).isoformat(),
        base_url=base_url,
        viewports=config.viewports,
        states=strip_setup(config.states),
    )


def write_manifest(out_dir: str | Path, manifest: Manifest) -> Path:
    """Write ``manifest.json`` atomically and return its path."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / MANIFEST_FILE

    fd, tmp_name = tempfile.mkstemp(dir=out_dir, prefix=".manifest-", suffix=".json")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(manifest.to_json_dict(), f, indent=2)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    logger.debug("Wrote manifest with %d screens to %s", len(manifest.screens), path)
    return path
