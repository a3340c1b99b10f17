# screenshot_mcp/capture/tool.py
from __future__ import annotations

"""Platform capture tools
------------------------
Thin wrappers that write a PNG of the screen / a window / a region to a
destination path. The macOS `screencapture` CLI is the primary tool; Pillow's
ImageGrab is a full-screen-only stand-in elsewhere.
"""

import sys
from pathlib import Path
from typing import Optional

from screenshot_mcp.core.errors import CaptureEnvironmentError, CaptureError
from screenshot_mcp.discovery.records import Bounds
from screenshot_mcp.utils.config import CaptureBackend, Settings, get_settings
from screenshot_mcp.utils.logger import get_logger
from screenshot_mcp.utils.shell import CommandRunner, run_command

log = get_logger(__name__)


class CaptureTool:
    name: str = "base"
    supports_window: bool = False
    supports_region: bool = False

    def capture_screen(self, dest: Path) -> None:
        raise NotImplementedError

    def capture_window(self, window_id: int, dest: Path) -> None:
        raise CaptureEnvironmentError(f"{self.name} cannot capture individual windows")

    def capture_region(self, region: Bounds, dest: Path) -> None:
        raise CaptureEnvironmentError(f"{self.name} cannot capture screen regions natively")


class ScreencaptureTool(CaptureTool):
    """macOS `screencapture` (-x silences the shutter sound)."""

    name = "screencapture"
    supports_window = True

    def __init__(self, settings: Optional[Settings] = None, runner: Optional[CommandRunner] = None) -> None:
        self.settings = settings or get_settings()
        self.runner: CommandRunner = runner or run_command
        self.supports_region = self.settings.NATIVE_REGION_CAPTURE

    def capture_screen(self, dest: Path) -> None:
        self._exec(["-x", str(dest)], dest)

    def capture_window(self, window_id: int, dest: Path) -> None:
        self._exec(["-x", "-l", str(int(window_id)), str(dest)], dest)

    def capture_region(self, region: Bounds, dest: Path) -> None:
        if not self.supports_region:
            return super().capture_region(region, dest)
        rect = f"{region.x},{region.y},{region.width},{region.height}"
        self._exec(["-x", f"-R{rect}", str(dest)], dest)

    def _exec(self, args, dest: Path) -> None:
        res = self.runner([self.settings.SCREENCAPTURE_BIN, *args], timeout=self.settings.CAPTURE_TIMEOUT_S)
        if res.missing:
            raise CaptureEnvironmentError(f"{self.settings.SCREENCAPTURE_BIN} not found (macOS only)")
        if not res.ok:
            raise CaptureError(f"Failed to capture using screencapture: {res.describe()}")
        # screencapture exits 0 without writing anything when Screen Recording is denied
        if not dest.exists() or dest.stat().st_size == 0:
            raise CaptureEnvironmentError(
                "screencapture produced no image; grant Screen Recording permission to the host app"
            )


class ImageGrabTool(CaptureTool):
    """Pillow ImageGrab; full screen only."""

    name = "imagegrab"

    def capture_screen(self, dest: Path) -> None:
        from PIL import ImageGrab

        try:
            im = ImageGrab.grab(all_screens=True)
        except OSError as e:
            raise CaptureEnvironmentError(f"ImageGrab unavailable: {e}") from e
        im.save(dest, format="PNG")


def select_capture_tool(settings: Optional[Settings] = None, runner: Optional[CommandRunner] = None) -> CaptureTool:
    s = settings or get_settings()
    backend = s.CAPTURE_BACKEND
    if backend == CaptureBackend.auto:
        backend = CaptureBackend.screencapture if sys.platform == "darwin" else CaptureBackend.imagegrab
    log.debug(f"capture backend: {backend.value}")
    if backend == CaptureBackend.screencapture:
        return ScreencaptureTool(s, runner)
    return ImageGrabTool()
