import os
import tempfile

# Settings are read (and cached) at import time by the logger; keep test runs
# out of the working directory.
_TMP = tempfile.mkdtemp(prefix="screenshot-mcp-tests-")
os.environ.setdefault("SCREENSHOT_DIR", os.path.join(_TMP, "screenshots"))
os.environ.setdefault("LOG_LEVEL", "WARNING")

from pathlib import Path
from typing import List

import pytest

from screenshot_mcp.capture.history import ScreenshotHistory
from screenshot_mcp.capture.screenshot import ScreenshotManager
from screenshot_mcp.discovery.cascade import WindowDiscovery
from screenshot_mcp.discovery.records import WindowRecord
from screenshot_mcp.utils.config import Settings

from fakes import FakeCaptureTool, StaticStrategy


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    s = Settings(SCREENSHOT_DIR=tmp_path / "shots", FORCE_DISCOVERY=True, DISCOVERY_TIMEOUT_S=5)
    s.ensure_dirs()
    return s


@pytest.fixture
def fake_tool() -> FakeCaptureTool:
    return FakeCaptureTool()


@pytest.fixture
def make_manager(settings: Settings, fake_tool: FakeCaptureTool):
    def _make(windows: List[WindowRecord], *, capacity: int = 100) -> ScreenshotManager:
        discovery = WindowDiscovery([StaticStrategy("static", windows, settings)], settings=settings)
        return ScreenshotManager(
            settings=settings,
            discovery=discovery,
            tool=fake_tool,
            history=ScreenshotHistory(capacity),
        )

    return _make
