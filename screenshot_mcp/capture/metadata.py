# screenshot_mcp/capture/metadata.py
from __future__ import annotations

"""Screenshot records and sidecars
---------------------------------
ScreenshotRecord is the immutable result of one successful capture. The
MetadataBuilder optionally writes <image>.json next to saved files and appends
every capture to captures.jsonl for later indexing.
"""

import base64
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from screenshot_mcp.utils.config import Paths, Settings, get_settings
from screenshot_mcp.utils.logger import get_logger

PREVIEW_CHARS = 100


@dataclass(frozen=True)
class ScreenshotRecord:
    id: str
    timestamp: str          # ISO-8601 UTC
    type: str               # "fullscreen" | "window" | "region"
    format: str             # "png" | "jpg"
    quality: int
    width: int
    height: int
    file_path: Optional[Path] = None
    window_title: Optional[str] = None
    window_id: Optional[str] = None
    region: Optional[Dict[str, int]] = None
    app_type: Optional[str] = None
    data: bytes = field(default=b"", repr=False)

    @property
    def base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def summary(self) -> Dict[str, Any]:
        """History listing shape."""
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "type": self.type,
            "filePath": str(self.file_path) if self.file_path else None,
            "width": self.width,
            "height": self.height,
            "format": self.format,
        }

    def to_payload(self, *, preview: bool = True) -> Dict[str, Any]:
        """Tool response shape; extras only appear for the capture types that have them."""
        d = self.summary()
        if self.window_title is not None:
            d["windowTitle"] = self.window_title
        if self.window_id is not None:
            d["windowId"] = self.window_id
        if self.region is not None:
            d["region"] = dict(self.region)
        if self.app_type is not None:
            d["appType"] = self.app_type
        if preview:
            d["base64Preview"] = self.base64[:PREVIEW_CHARS] + "..."
        return d

    def sidecar(self) -> Dict[str, Any]:
        d = self.to_payload(preview=False)
        d["quality"] = self.quality
        d["bytes"] = len(self.data)
        return d


class MetadataBuilder:
    """Writes per-capture sidecars and appends to the directory-wide JSONL stream."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.paths = Paths.from_settings(self.settings)
        self.log = get_logger(__name__)

    def write_sidecar(self, rec: ScreenshotRecord) -> Optional[Path]:
        """
        Write <image>.json next to the image. Skipped for in-memory captures.
        """
        if rec.file_path is None:
            return None
        sidecar = rec.file_path.with_suffix(rec.file_path.suffix + ".json")
        sidecar.write_text(json.dumps(rec.sidecar(), indent=2), encoding="utf-8")
        return sidecar

    def append_jsonl(self, rec: ScreenshotRecord) -> None:
        self.paths.captures_log.parent.mkdir(parents=True, exist_ok=True)
        with self.paths.captures_log.open("a", encoding="utf-8") as f:
            f.write(json.dumps(rec.sidecar(), ensure_ascii=False) + "\n")

    def record(self, rec: ScreenshotRecord) -> None:
        """Best effort: a failed sidecar never fails the capture."""
        if not self.settings.WRITE_SIDECARS:
            return
        try:
            self.write_sidecar(rec)
            self.append_jsonl(rec)
        except OSError as e:
            self.log.warning(f"Failed to write metadata for {rec.id}: {e!r}")
