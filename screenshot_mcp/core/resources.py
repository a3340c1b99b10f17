# screenshot_mcp/core/resources.py
from __future__ import annotations

import base64
from typing import Any, Dict, Optional

from screenshot_mcp.capture.history import HistoryStore
from screenshot_mcp.capture.metadata import ScreenshotRecord
from screenshot_mcp.core.errors import ScreenshotError, ScreenshotNotFound
from screenshot_mcp.utils.logger import get_logger

log = get_logger(__name__)


class ScreenshotResources:
    """Read-only accessors over the history ring (latest / history / history/{id})."""

    def __init__(self, history: HistoryStore, page_size: int = 10) -> None:
        self.history = history
        self.page_size = page_size

    def latest(self) -> Dict[str, Any]:
        rec = self.history.latest()
        if rec is None:
            return {"success": False, "error": "No screenshots available"}
        return self._full(rec)

    def list_history(self, limit: Optional[int] = None) -> Dict[str, Any]:
        items = self.history.list(limit if limit is not None else self.page_size)
        return {"success": True, "history": [r.summary() for r in items]}

    def by_id(self, screenshot_id: Optional[str]) -> Dict[str, Any]:
        if not screenshot_id:
            return {"success": False, "error": "Screenshot ID is required"}
        rec = self.history.get(screenshot_id)
        if rec is None:
            return {"success": False, "error": f'Screenshot with ID "{screenshot_id}" not found'}
        return self._full(rec)

    def _full(self, rec: ScreenshotRecord) -> Dict[str, Any]:
        try:
            data = _load_image(rec)
        except ScreenshotError as e:
            return {"success": False, "error": str(e)}
        payload = rec.summary()
        payload["base64"] = data
        return {"success": True, "screenshot": payload}


def _load_image(rec: ScreenshotRecord) -> str:
    """Saved captures are re-read from disk so an out-of-band delete is noticed."""
    if rec.file_path is None:
        return rec.base64
    if not rec.file_path.exists():
        raise ScreenshotNotFound("Screenshot file no longer exists")
    try:
        return base64.b64encode(rec.file_path.read_bytes()).decode("ascii")
    except OSError as e:
        log.warning(f"Failed to read {rec.file_path}: {e!r}")
        raise ScreenshotError(f"Failed to read screenshot file: {e}") from e
