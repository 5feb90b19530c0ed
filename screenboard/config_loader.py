"""Load the base config file and merge the ``screenboard.json`` overlay over it."""

from __future__ import annotations

import importlib.util
import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from screenboard.models.config import ScreenboardConfig, merge_config, parse_overlay

logger = logging.getLogger(__name__)

CONFIG_CANDIDATES = ("screenboard.config.py", "screenboard.config.json")
OVERLAY_FILE = "screenboard.json"


class LoadedConfig(BaseModel):
    config: ScreenboardConfig
    config_path: Optional[Path] = None
    overlay_path: Optional[Path] = None

    @property
    def has_any(self) -> bool:
        return self.config_path is not None or self.overlay_path is not None


def find_default_config(cwd: Path) -> Optional[Path]:
    for candidate in CONFIG_CANDIDATES:
        path = cwd / candidate
        if path.exists():
            return path
    return None


def _load_python_config(path: Path) -> ScreenboardConfig:
    """Import a Python config module and read its ``config`` attribute.

    Python configs may attach ``setup`` hooks to states, which JSON cannot.
    """
    spec = importlib.util.spec_from_file_location("screenboard_user_config", path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot import config module: {path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    config = getattr(module, "config", None)
    if config is None:
        raise AttributeError(f"{path} does not define a module-level 'config'")
    if isinstance(config, ScreenboardConfig):
        return config
    return ScreenboardConfig.model_validate(config)


def _load_json_config(path: Path) -> ScreenboardConfig:
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    return merge_config(ScreenboardConfig(), parse_overlay(data))


def load_config(cwd: str | Path = ".", config_path: Optional[str | Path] = None) -> LoadedConfig:
    """Load the base config and merge ``screenboard.json`` over it.

    Raises:
        FileNotFoundError: if an explicit ``config_path`` does not exist.
        pydantic.ValidationError: if either file violates the config schema.
    """
    cwd = Path(cwd)
    if config_path is not None:
        resolved = cwd / config_path
        if not resolved.exists():
            raise FileNotFoundError(f"Config file not found: {resolved}")
    else:
        resolved = find_default_config(cwd)

    config = ScreenboardConfig()
    if resolved is not None:
        logger.debug("Loading config from %s", resolved)
        if resolved.suffix == ".py":
            config = _load_python_config(resolved)
        else:
            config = _load_json_config(resolved)

    overlay_path = cwd / OVERLAY_FILE
    if overlay_path.exists():
        logger.debug("Merging overlay %s", overlay_path)
        with open(overlay_path, encoding="utf-8") as f:
            config = merge_config(config, parse_overlay(json.load(f)))
    else:
        overlay_path = None

    return LoadedConfig(config=config, config_path=resolved, overlay_path=overlay_path)
