# screenshot_mcp/core/tools.py
from __future__ import annotations

"""Tool handlers
---------------
Request-level wrappers around the ScreenshotManager. Every handler returns a
plain dict: {"success": True, ...} or {"success": False, "error": <message>}.
Nothing raised here ever reaches the server loop.
"""

from typing import Any, Callable, Dict, Optional

from screenshot_mcp.capture.screenshot import CaptureOptions, ScreenshotManager
from screenshot_mcp.core.errors import ScreenshotError
from screenshot_mcp.utils.logger import get_logger, log_with_context

log = get_logger(__name__)


def _fail(message: str) -> Dict[str, Any]:
    return {"success": False, "error": message}


class ScreenshotTools:
    def __init__(self, manager: ScreenshotManager) -> None:
        self.manager = manager

    def _guard(self, tool: str, fn: Callable[[], Dict[str, Any]]) -> Dict[str, Any]:
        scoped = log_with_context(log, tool=tool)
        try:
            return fn()
        except ScreenshotError as e:
            scoped.warning(f"{tool} failed: {e}")
            return _fail(str(e))
        except Exception as e:
            scoped.exception(f"{tool} failed unexpectedly")
            return _fail(f"{tool} failed: {e}")

    def _options(self, format: Optional[str], quality: Optional[int], save_to_file: Optional[bool]) -> CaptureOptions:
        return CaptureOptions.build(format, quality, save_to_file, settings=self.manager.settings)

    # ---------- tools ----------

    def list_windows(self) -> Dict[str, Any]:
        def _do() -> Dict[str, Any]:
            result = self.manager.list_windows()
            return {
                "success": True,
                "windows": [w.to_public() for w in result.windows],
                "strategy": result.report.winner,
                "discovery": result.report.as_dict(),
            }

        return self._guard("list_windows", _do)

    def capture_full_screen(
        self,
        format: Optional[str] = None,
        quality: Optional[int] = None,
        save_to_file: Optional[bool] = None,
    ) -> Dict[str, Any]:
        def _do() -> Dict[str, Any]:
            rec = self.manager.capture_full_screen(self._options(format, quality, save_to_file))
            return {"success": True, "screenshot": rec.to_payload()}

        return self._guard("capture_full_screen", _do)

    def capture_window(
        self,
        window_title: Optional[str],
        format: Optional[str] = None,
        quality: Optional[int] = None,
        save_to_file: Optional[bool] = None,
    ) -> Dict[str, Any]:
        def _do() -> Dict[str, Any]:
            opts = self._options(format, quality, save_to_file)
            rec = self.manager.capture_window(window_title, opts)
            return {"success": True, "screenshot": rec.to_payload()}

        return self._guard("capture_window", _do)

    def capture_region(
        self,
        x: Optional[int] = None,
        y: Optional[int] = None,
        width: Optional[int] = None,
        height: Optional[int] = None,
        format: Optional[str] = None,
        quality: Optional[int] = None,
        save_to_file: Optional[bool] = None,
    ) -> Dict[str, Any]:
        def _do() -> Dict[str, Any]:
            opts = self._options(format, quality, save_to_file)
            rec = self.manager.capture_region(x, y, width, height, opts)
            return {"success": True, "screenshot": rec.to_payload()}

        return self._guard("capture_region", _do)

    def capture_application(
        self,
        app_type: Optional[str] = None,
        format: Optional[str] = None,
        quality: Optional[int] = None,
        save_to_file: Optional[bool] = None,
    ) -> Dict[str, Any]:
        def _do() -> Dict[str, Any]:
            opts = self._options(format, quality, save_to_file)
            rec = self.manager.capture_application(app_type, opts)
            return {"success": True, "screenshot": rec.to_payload()}

        return self._guard("capture_application", _do)
