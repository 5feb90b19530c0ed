"""Target application lifecycle — spawning the dev server and waiting for it."""

from __future__ import annotations

import asyncio
import logging
import os
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx

from screenboard.errors import StartupTimeout
from screenboard.models.config import AppConfig

logger = logging.getLogger(__name__)

STARTUP_TIMEOUT_S = 60.0
POLL_INTERVAL_S = 1.0
STOP_TIMEOUT_S = 5.0


async def wait_for_url(
    url: str,
    timeout_s: Optional[float] = None,
    interval_s: Optional[float] = None,
) -> None:
    """Poll ``url`` with GET requests until it answers with a 2xx status.

    Raises:
        StartupTimeout: if no successful response arrives before the deadline.
    """
    timeout_s = STARTUP_TIMEOUT_S if timeout_s is None else timeout_s
    interval_s = POLL_INTERVAL_S if interval_s is None else interval_s
    deadline = time.monotonic() + timeout_s

    async with httpx.AsyncClient(follow_redirects=True) as client:
        while time.monotonic() < deadline:
            try:
                response = await client.get(url)
                if response.is_success:
                    logger.debug("%s is reachable (%d)", url, response.status_code)
                    return
            except httpx.HTTPError as e:
                logger.debug("Waiting for %s: %s", url, e)
            else:
                logger.debug("Waiting for %s: HTTP %d", url, response.status_code)
            await asyncio.sleep(interval_s)

    raise StartupTimeout(url, timeout_s)


async def start_app(app: AppConfig, base_url: Optional[str]) -> Optional[asyncio.subprocess.Process]:
    """Make sure the target app is reachable, spawning ``app.command`` if set.

    The command runs through the shell in ``app.cwd`` with the parent's
    environment and standard streams. If the app never becomes reachable the
    spawned process is terminated before the error propagates.
    """
    process = None
    if app.command:
        cwd = app.cwd or os.getcwd()
        logger.info("Starting app: %s (cwd=%s)", app.command, cwd)
        process = await asyncio.create_subprocess_shell(app.command, cwd=cwd, env=os.environ.copy())

    if base_url:
        try:
            await wait_for_url(base_url)
        except BaseException:
            await stop_app(process)
            raise
    return process


async def stop_app(process: Optional[asyncio.subprocess.Process]) -> None:
    """Send SIGTERM to a spawned app if it is still running and reap it.

    A child that ignores SIGTERM for ``STOP_TIMEOUT_S`` is killed.
    """
    if process is None or process.returncode is not None:
        return
    logger.info("Stopping app (pid=%s)", process.pid)
    try:
        process.terminate()
    except ProcessLookupError:
        logger.debug("App process %s already exited", process.pid)
        return
    try:
        await asyncio.wait_for(process.wait(), timeout=STOP_TIMEOUT_S)
    except asyncio.TimeoutError:
        logger.warning("App process %s ignored SIGTERM, killing it", process.pid)
        process.kill()
        await process.wait()


@asynccontextmanager
async def app_process(app: AppConfig, base_url: Optional[str]) -> AsyncIterator[Optional[asyncio.subprocess.Process]]:
    """Scope the target app to a block: started on entry, terminated on exit."""
    process = await start_app(app, base_url)
    try:
        yield process
    finally:
        await stop_app(process)
