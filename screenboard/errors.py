"""Exceptions raised by the capture pipeline and the studio session."""

from __future__ import annotations


class ScreenboardError(Exception):
    """Base class for screenboard errors."""


class StartupTimeout(ScreenboardError):
    """The target application never became reachable."""

    def __init__(self, url: str, timeout_s: float):
        super().__init__(f"Timed out after {timeout_s:g}s waiting for {url}")
        self.url = url
        self.timeout_s = timeout_s


class NotLaunched(ScreenboardError):
    """An interactive operation needs a browser session that does not exist."""

    def __init__(self, message: str = "Browser not launched"):
        super().__init__(message)
