import io
import logging
import re
from pathlib import Path

import pytest
from PIL import Image

from screenshot_mcp.capture.screenshot import CaptureOptions
from screenshot_mcp.core.errors import CaptureEnvironmentError, ValidationError, WindowNotFound
from screenshot_mcp.discovery.records import ApplicationWindow, NativeWindow, WindowRecord, sentinel_record


def native(i, title, owner="App"):
    return WindowRecord(NativeWindow(i), title, owner)


def opts(**kw):
    return CaptureOptions(**kw)


def files_in(settings):
    return sorted(p.name for p in settings.SCREENSHOT_DIR.iterdir())


def test_full_screen_saved_with_traceable_name(make_manager, settings):
    mgr = make_manager([])
    rec = mgr.capture_full_screen(opts())
    assert rec.type == "fullscreen"
    assert (rec.width, rec.height) == (1280, 800)
    assert rec.file_path.exists()
    assert re.fullmatch(r"fullscreen_\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2}-\d{3}Z_[0-9a-f]{6}\.png", rec.file_path.name)
    # temp file cleaned up
    assert not [n for n in files_in(settings) if n.startswith("temp_")]


def test_full_screen_in_memory_only(make_manager, settings):
    mgr = make_manager([])
    rec = mgr.capture_full_screen(opts(save_to_file=False))
    assert rec.file_path is None
    assert files_in(settings) == []
    assert Image.open(io.BytesIO(rec.data)).format == "PNG"


def test_jpg_encoding(make_manager):
    rec = make_manager([]).capture_full_screen(opts(format="jpg", quality=40))
    assert rec.format == "jpg"
    assert rec.file_path.suffix == ".jpg"
    assert Image.open(io.BytesIO(rec.data)).format == "JPEG"


def test_window_addressed_by_native_id(make_manager, fake_tool):
    mgr = make_manager([native(11, "Safari - Apple"), native(42, "Godot Engine - game", "Godot")])
    rec = mgr.capture_window("Godot", opts())
    assert rec.type == "window"
    assert rec.window_id == "42"
    assert rec.window_title == "Godot"
    assert (rec.width, rec.height) == (640, 480)
    assert fake_tool.calls[0][:2] == ("window", 42)
    assert rec.file_path.name.startswith("window_Godot_")


def test_application_pseudo_window_falls_back_to_full_screen(make_manager, fake_tool):
    mgr = make_manager([WindowRecord(ApplicationWindow("Safari", 3), "Safari Window", "Safari")])
    rec = mgr.capture_window("Safari", opts())
    assert rec.window_id == "app_3"
    assert fake_tool.calls[0][0] == "screen"
    assert (rec.width, rec.height) == (1280, 800)


def test_placeholder_window_is_environment_error(make_manager, fake_tool):
    mgr = make_manager([sentinel_record("no permission")])
    with pytest.raises(CaptureEnvironmentError) as exc:
        mgr.capture_window("Screenshot MCP", opts())
    assert "permission" in str(exc.value)
    assert fake_tool.calls == []


def test_window_not_found_spawns_nothing(make_manager, fake_tool, settings):
    mgr = make_manager([native(1, "Terminal")])
    with pytest.raises(WindowNotFound) as exc:
        mgr.capture_window("Photoshop", opts())
    assert 'Window with title "Photoshop" not found' in str(exc.value)
    assert fake_tool.calls == []
    assert files_in(settings) == []
    assert len(mgr.history) == 0


def test_window_title_required(make_manager):
    with pytest.raises(ValidationError):
        make_manager([]).capture_window("  ", opts())


def test_region_crop_fallback_exact_size(make_manager, fake_tool):
    mgr = make_manager([])
    assert not fake_tool.supports_region
    rec = mgr.capture_region(100, 100, 400, 300, opts())
    assert (rec.width, rec.height) == (400, 300)
    assert rec.region == {"x": 100, "y": 100, "width": 400, "height": 300}
    assert fake_tool.calls[0][0] == "screen"
    assert rec.file_path.name.startswith("region_100_100_400_300_")


def test_region_crop_past_screen_edge_keeps_size(make_manager):
    rec = make_manager([]).capture_region(1200, 700, 400, 300, opts())
    assert (rec.width, rec.height) == (400, 300)


def test_region_native_when_supported(make_manager, fake_tool):
    fake_tool.supports_region = True
    rec = make_manager([]).capture_region(0, 0, 200, 100, opts())
    assert fake_tool.calls[0][0] == "region"
    assert (rec.width, rec.height) == (200, 100)


@pytest.mark.parametrize(
    "args",
    [(None, 0, 10, 10), (0, None, 10, 10), (0, 0, None, 10), (0, 0, 10, None), (0, 0, 0, 10)],
)
def test_region_validation_before_capture(make_manager, fake_tool, args):
    with pytest.raises(ValidationError):
        make_manager([]).capture_region(*args, opts())
    assert fake_tool.calls == []


def test_capture_application_prefers_godot(make_manager, fake_tool):
    mgr = make_manager([native(1, "pygame window"), native(2, "My Game (DEBUG)", "Godot")])
    rec = mgr.capture_application("any", opts())
    assert rec.window_id == "2"
    assert rec.app_type == "any"


def test_capture_application_pygame(make_manager):
    mgr = make_manager([native(1, "Godot"), native(5, "pygame window")])
    rec = mgr.capture_application("pygame", opts())
    assert rec.window_id == "5"


def test_capture_application_none_found(make_manager):
    with pytest.raises(WindowNotFound) as exc:
        make_manager([native(1, "Terminal")]).capture_application("any", opts())
    assert "No Godot or PyGame application found" in str(exc.value)


def test_capture_application_rejects_unknown_type(make_manager):
    with pytest.raises(ValidationError):
        make_manager([]).capture_application("unity", opts())


def test_history_ring_evicts_oldest(make_manager):
    mgr = make_manager([], capacity=100)
    first = mgr.capture_full_screen(opts(save_to_file=False))
    for _ in range(100):
        mgr.capture_full_screen(opts(save_to_file=False))
    assert len(mgr.history) == 100
    assert mgr.history.get(first.id) is None


def test_ids_are_unique(make_manager):
    mgr = make_manager([])
    ids = {mgr.capture_full_screen(opts(save_to_file=False)).id for _ in range(20)}
    assert len(ids) == 20


def test_options_build_validation(settings):
    with pytest.raises(ValidationError):
        CaptureOptions.build("gif", settings=settings)
    with pytest.raises(ValidationError):
        CaptureOptions.build("png", 0, settings=settings)
    o = CaptureOptions.build(settings=settings)
    assert o.format.value == "png" and o.quality == 100 and o.save_to_file is True


def test_sidecars_written_when_enabled(make_manager, settings):
    settings.WRITE_SIDECARS = True
    mgr = make_manager([])
    rec = mgr.capture_full_screen(opts())
    sidecar = rec.file_path.with_suffix(rec.file_path.suffix + ".json")
    assert sidecar.exists()
    assert (settings.SCREENSHOT_DIR / "captures.jsonl").read_text().count("\n") == 1


def test_temp_cleanup_failure_does_not_fail_capture(make_manager, monkeypatch, caplog):
    real_unlink = Path.unlink

    def unlink(self, missing_ok=False):
        if self.name.startswith("temp_"):
            raise OSError("resource busy")
        return real_unlink(self, missing_ok=missing_ok)

    monkeypatch.setattr(Path, "unlink", unlink)
    mgr = make_manager([])
    with caplog.at_level(logging.WARNING):
        rec = mgr.capture_full_screen(opts())
    assert rec.file_path.exists()
    assert mgr.history.get(rec.id) is rec
    assert "Failed to remove temp file" in caplog.text
