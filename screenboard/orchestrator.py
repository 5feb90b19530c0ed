"""Build orchestrator — capture the board, then write its manifest."""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path

from screenboard.capture.runner import CaptureOptions, CaptureResult, run_capture
from screenboard.models.config import ScreenboardConfig
from screenboard.models.manifest import write_manifest

logger = logging.getLogger(__name__)


class Orchestrator:
    """Coordinates a batch build."""

    def __init__(self, config: ScreenboardConfig, options: CaptureOptions | None = None):
        self.config = config
        self.options = options or CaptureOptions()

    def run_build(self) -> dict:
        """Run the capture stage and write ``manifest.json``."""
        return asyncio.run(self._build())

    async def _build(self) -> dict:
        start = time.time()
        logger.info("=== Building board ===")

        logger.info("--- Stage 1: Capture ---")
        stage_start = time.time()
        result = await self._capture()
        logger.info("--- Stage 1 complete: %d screenshots in %.1fs ---",
                    len(result.manifest.screens), time.time() - stage_start)

        logger.info("--- Stage 2: Manifest ---")
        manifest_path = write_manifest(result.out_dir, result.manifest)

        duration = time.time() - start
        logger.info("=== Board built in %.1fs ===", duration)
        return {
            "out_dir": str(Path(result.out_dir).resolve()),
            "manifest": str(manifest_path),
            "duration": round(duration, 2),
            "screens": len(result.manifest.screens),
            "flows": len(result.manifest.flows),
            "discovered_urls": len(result.manifest.discovered_urls),
        }

    async def _capture(self) -> CaptureResult:
        return await run_capture(self.config, self.options)
