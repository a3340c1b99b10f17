# screenshot_mcp/core/errors.py
from __future__ import annotations


class ScreenshotError(RuntimeError):
    """Base for every per-request failure reported as {success: false, error}."""


class ValidationError(ScreenshotError):
    """Missing or out-of-range request parameters (raised before any process is spawned)."""


class WindowNotFound(ScreenshotError):
    pass


class ScreenshotNotFound(ScreenshotError):
    pass


class CaptureEnvironmentError(ScreenshotError):
    """Wrong OS or missing Screen Recording / Accessibility permission."""


class CaptureError(ScreenshotError):
    """The platform capture tool failed or produced no image."""
