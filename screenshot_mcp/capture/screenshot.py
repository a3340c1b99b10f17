# screenshot_mcp/capture/screenshot.py
from __future__ import annotations

"""Screenshot manager
--------------------
Captures the full screen, a discovered window, a region or a known game
application; re-encodes the image, persists it with a traceable filename and
records it in the history ring. This is also where a discovered window's
handle decides how the capture tool addresses it.
"""

import functools
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import pydantic
from pydantic import BaseModel, Field

from screenshot_mcp.capture.encoder import crop_region, encode_image
from screenshot_mcp.capture.history import HistoryStore, ScreenshotHistory
from screenshot_mcp.capture.metadata import MetadataBuilder, ScreenshotRecord
from screenshot_mcp.capture.tool import CaptureTool, select_capture_tool
from screenshot_mcp.core.errors import (
    CaptureEnvironmentError,
    CaptureError,
    ValidationError,
    WindowNotFound,
)
from screenshot_mcp.discovery.cascade import DiscoveryResult, WindowDiscovery
from screenshot_mcp.discovery.records import (
    ApplicationWindow,
    Bounds,
    NativeWindow,
    PlaceholderWindow,
    WindowRecord,
)
from screenshot_mcp.utils.config import ImageFormat, Settings, get_settings
from screenshot_mcp.utils.logger import get_logger
from screenshot_mcp.utils.timing import epoch_ms, measure


APP_TYPES = ("godot", "pygame", "any")


class CaptureOptions(BaseModel):
    format: ImageFormat = ImageFormat.png
    quality: int = Field(default=100, ge=1, le=100)
    save_to_file: bool = True

    @classmethod
    def build(
        cls,
        format: Optional[str] = None,
        quality: Optional[int] = None,
        save_to_file: Optional[bool] = None,
        *,
        settings: Optional[Settings] = None,
    ) -> "CaptureOptions":
        """Fill unset values from settings; any invalid value becomes a ValidationError."""
        s = settings or get_settings()
        try:
            return cls(
                format=format if format is not None else s.DEFAULT_FORMAT,
                quality=quality if quality is not None else s.DEFAULT_QUALITY,
                save_to_file=save_to_file if save_to_file is not None else s.SAVE_TO_FILE,
            )
        except pydantic.ValidationError as e:
            first = e.errors()[0]
            field_name = ".".join(str(p) for p in first.get("loc", ())) or "options"
            raise ValidationError(f"Invalid {field_name}: {first.get('msg')}") from e


@dataclass
class _Target:
    """What the capture is of; feeds both the filename and the record."""
    kind: str
    name_parts: Tuple[str, ...] = ()
    window_title: Optional[str] = None
    window_id: Optional[str] = None
    region: Optional[Bounds] = None
    app_type: Optional[str] = None


class ScreenshotManager:
    """
    Centralized capture helper.
    - Respects settings defaults (format/quality/save-to-file).
    - Produces unique, human-traceable file names.
    - Owns (or is handed) the discovery cascade, the capture tool and the history store.
    """

    def __init__(
        self,
        *,
        settings: Optional[Settings] = None,
        discovery: Optional[WindowDiscovery] = None,
        tool: Optional[CaptureTool] = None,
        history: Optional[HistoryStore] = None,
        metadata: Optional[MetadataBuilder] = None,
    ) -> None:
        self.settings: Settings = settings or get_settings()
        self.discovery = discovery or WindowDiscovery(settings=self.settings)
        self.tool = tool or select_capture_tool(self.settings)
        self.history: HistoryStore = history or ScreenshotHistory(self.settings.HISTORY_LIMIT)
        self.metadata = metadata or MetadataBuilder(self.settings)
        self.out_dir = self.settings.SCREENSHOT_DIR
        self.log = get_logger(__name__)

    # ----------- Discovery -----------

    def list_windows(self) -> DiscoveryResult:
        return self.discovery.discover()

    def find_window(self, title_fragment: str) -> WindowRecord:
        windows = self.discovery.discover_windows()
        for win in windows:
            if win.matches(title_fragment):
                return win
        raise WindowNotFound(f'Window with title "{title_fragment}" not found')

    # ----------- Public API -----------

    @measure("capture_full_screen")
    def capture_full_screen(self, options: CaptureOptions) -> ScreenshotRecord:
        return self._capture(_Target(kind="fullscreen"), options, self._grab_screen)

    @measure("capture_window")
    def capture_window(self, window_title: Optional[str], options: CaptureOptions) -> ScreenshotRecord:
        if not window_title or not str(window_title).strip():
            raise ValidationError("Window title is required")
        target = self.find_window(window_title)
        return self._capture_record(target, options, requested_title=window_title)

    @measure("capture_region")
    def capture_region(
        self,
        x: Optional[int],
        y: Optional[int],
        width: Optional[int],
        height: Optional[int],
        options: CaptureOptions,
    ) -> ScreenshotRecord:
        region = validate_region(x, y, width, height)
        if self.tool.supports_region:
            grab = functools.partial(self._grab_region_native, region)
        else:
            self.log.debug("native region capture unavailable; cropping a full-screen capture")
            grab = functools.partial(self._grab_region_cropped, region)
        target = _Target(
            kind="region",
            name_parts=(str(region.x), str(region.y), str(region.width), str(region.height)),
            region=region,
        )
        return self._capture(target, options, grab)

    @measure("capture_application")
    def capture_application(self, app_type: Optional[str], options: CaptureOptions) -> ScreenshotRecord:
        app_type = (app_type or "any").lower()
        if app_type not in APP_TYPES:
            raise ValidationError(f"appType must be one of {', '.join(APP_TYPES)}")
        windows = self.discovery.discover_windows()
        target = find_application_window(windows, app_type)
        if target is None:
            label = "Godot or PyGame" if app_type == "any" else app_type
            raise WindowNotFound(f"No {label} application found")
        return self._capture_record(target, options, requested_title=target.title, app_type=app_type)

    # ----------- Addressing -----------

    def _capture_record(
        self,
        win: WindowRecord,
        options: CaptureOptions,
        *,
        requested_title: str,
        app_type: Optional[str] = None,
    ) -> ScreenshotRecord:
        handle = win.handle
        if isinstance(handle, PlaceholderWindow):
            raise CaptureEnvironmentError(
                "No capturable windows were discovered "
                f"({handle.reason}). Grant Screen Recording and Accessibility "
                "permissions to the app running this server and try again."
            )
        if isinstance(handle, ApplicationWindow):
            # no window id to target: accept a degraded full-screen capture
            self.log.info(f"Using full screen capture for {handle.app_name}")
            grab: Callable[[Path], bytes] = self._grab_screen
        elif isinstance(handle, NativeWindow):
            if not self.tool.supports_window:
                raise CaptureEnvironmentError(f"{self.tool.name} cannot capture individual windows")
            self.log.info(f"Using window ID capture for {handle.window_id}")
            grab = functools.partial(self._grab_window, handle.window_id)
        else:
            raise CaptureError(f"Unsupported window handle: {handle!r}")

        target = _Target(
            kind="window",
            name_parts=(requested_title,),
            window_title=requested_title,
            window_id=win.id,
            app_type=app_type,
        )
        return self._capture(target, options, grab)

    # ----------- Grabbers (write to temp, return raw PNG bytes) -----------

    def _grab_screen(self, dest: Path) -> bytes:
        self.tool.capture_screen(dest)
        return _read(dest)

    def _grab_window(self, window_id: int, dest: Path) -> bytes:
        self.tool.capture_window(window_id, dest)
        return _read(dest)

    def _grab_region_native(self, region: Bounds, dest: Path) -> bytes:
        self.tool.capture_region(region, dest)
        return _read(dest)

    def _grab_region_cropped(self, region: Bounds, dest: Path) -> bytes:
        self.tool.capture_screen(dest)
        return crop_region(_read(dest), region)

    # ----------- Internals -----------

    def _capture(self, target: _Target, options: CaptureOptions, grab: Callable[[Path], bytes]) -> ScreenshotRecord:
        timestamp = self._ts()
        suffix = secrets.token_hex(3)
        temp_path = self._temp_path(suffix)
        try:
            raw = grab(temp_path)
        finally:
            self._cleanup(temp_path)

        try:
            encoded = encode_image(raw, options.format, options.quality)
        except OSError as e:
            raise CaptureError(f"Captured image could not be decoded: {e}") from e

        file_path: Optional[Path] = None
        if options.save_to_file:
            file_path = self._build_path(target, timestamp, suffix, encoded.extension)
            try:
                file_path.write_bytes(encoded.data)
            except OSError as e:
                raise CaptureError(f"Failed to save screenshot: {e}") from e

        rec = ScreenshotRecord(
            id=self._new_id(),
            timestamp=timestamp,
            type=target.kind,
            format=options.format.value,
            quality=options.quality,
            width=encoded.width,
            height=encoded.height,
            file_path=file_path,
            window_title=target.window_title,
            window_id=target.window_id,
            region=target.region.as_dict() if target.region else None,
            app_type=target.app_type,
            data=encoded.data,
        )
        self.history.append(rec)
        self.metadata.record(rec)
        self.log.info(f"Captured {rec.type} {rec.width}x{rec.height} -> {file_path or '<memory>'}")
        return rec

    def _temp_path(self, suffix: str) -> Path:
        self.out_dir.mkdir(parents=True, exist_ok=True)
        return self.out_dir / f"temp_{epoch_ms()}_{suffix}.png"

    def _cleanup(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            self.log.warning(f"Failed to remove temp file {path}: {e!r}")

    def _build_path(self, target: _Target, timestamp: str, suffix: str, ext: str) -> Path:
        stamp = timestamp.replace(":", "-").replace(".", "-")
        parts = [target.kind, *(_safe(p) for p in target.name_parts), stamp, suffix]
        out_path = self.out_dir / f"{'_'.join(parts)}.{ext}"
        out_path.parent.mkdir(parents=True, exist_ok=True)
        return out_path

    @staticmethod
    def _new_id() -> str:
        return f"ss_{epoch_ms()}_{secrets.token_hex(3)}"

    @staticmethod
    def _ts() -> str:
        return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# ---------- helpers ----------

def validate_region(x, y, width, height) -> Bounds:
    """All four coordinates are required; width/height must be positive."""
    values = {"x": x, "y": y, "width": width, "height": height}
    missing = [k for k, v in values.items() if v is None]
    if missing:
        raise ValidationError("Region coordinates (x, y, width, height) are required")
    try:
        ix, iy, iw, ih = (int(values[k]) for k in ("x", "y", "width", "height"))
    except (TypeError, ValueError) as e:
        raise ValidationError("Region coordinates must be integers") from e
    if iw <= 0 or ih <= 0:
        raise ValidationError("Region width and height must be positive")
    return Bounds(ix, iy, iw, ih)


def find_application_window(windows: List[WindowRecord], app_type: str) -> Optional[WindowRecord]:
    candidates = [w for w in windows if not w.is_placeholder and w.title]
    if app_type in ("godot", "any"):
        for w in candidates:
            if "Godot" in w.title or "Godot" in w.owner_name:
                return w
    if app_type in ("pygame", "any"):
        for w in candidates:
            if "pygame" in w.title or "PyGame" in w.title:
                return w
    return None


def _read(path: Path) -> bytes:
    try:
        data = path.read_bytes()
    except OSError as e:
        raise CaptureError(f"Failed to read captured image: {e}") from e
    if not data:
        raise CaptureError("Capture tool wrote an empty image")
    return data


def _safe(text: str, limit: int = 64) -> str:
    safe = "".join(ch if ch.isascii() and (ch.isalnum() or ch in ("-", "_")) else "_" for ch in text)
    return safe[:limit] or "untitled"
