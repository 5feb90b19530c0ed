"""Expand a config into the ordered list of screenshots to take."""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import BaseModel

from screenboard.models.config import Screen, ScreenboardConfig, State, Viewport
from screenboard.url_utils import expand_template

logger = logging.getLogger(__name__)


class ScreenUrl(BaseModel):
    url: str
    variant_id: Optional[str] = None


class MatrixCell(BaseModel):
    """One capture to perform: a screen URL under a state and viewport."""

    state: State
    viewport: Viewport
    screen: Screen
    url: str
    variant_id: Optional[str] = None

    @property
    def base_id(self) -> str:
        if self.variant_id:
            return f"{self.screen.id}-{self.variant_id}"
        return self.screen.id


def resolve_screen_urls(screen: Screen) -> list[ScreenUrl]:
    """List the concrete URLs of a screen.

    Variant ids are only assigned when a template expands to more than
    one URL.
    """
    if screen.url:
        return [ScreenUrl(url=screen.url)]
    if screen.template:
        urls = expand_template(screen.template, screen.params)
        if len(urls) <= 1:
            return [ScreenUrl(url=urls[0] if urls else screen.template)]
        return [
            ScreenUrl(url=url, variant_id=f"variant-{index}")
            for index, url in enumerate(urls, 1)
        ]
    return [ScreenUrl(url="/")]


def matches_state(screen: Screen, state: State) -> bool:
    return not screen.states or state.id in screen.states


def matches_viewport(screen: Screen, viewport: Viewport) -> bool:
    return not screen.viewports or viewport.id in screen.viewports


def plan(config: ScreenboardConfig) -> list[MatrixCell]:
    """Expand a normalized config into the ordered list of captures.

    States are the outer loop, then viewports, then screens, then URL
    variants, so a run opens one context per state and resizes once per
    viewport.
    """
    cells: list[MatrixCell] = []
    for state in config.states:
        for viewport in config.viewports:
            for screen in config.screens:
                if not matches_state(screen, state) or not matches_viewport(screen, viewport):
                    continue
                for variant in resolve_screen_urls(screen):
                    cells.append(MatrixCell(
                        state=state,
                        viewport=viewport,
                        screen=screen,
                        url=variant.url,
                        variant_id=variant.variant_id,
                    ))
    logger.debug("Planned %d capture(s) across %d state(s) and %d viewport(s)",
                 len(cells), len(config.states), len(config.viewports))
    return cells
