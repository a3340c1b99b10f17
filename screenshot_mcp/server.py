# screenshot_mcp/server.py
from __future__ import annotations

"""MCP server
------------
Registers the capture tools and history resources on a FastMCP app. The
handlers are thin: argument names follow the public (camelCase) contract and
everything is delegated to ScreenshotTools / ScreenshotResources.
"""

import json
from dataclasses import dataclass
from typing import Annotated, Any, Dict, Optional

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from screenshot_mcp.capture.screenshot import ScreenshotManager
from screenshot_mcp.core.resources import ScreenshotResources
from screenshot_mcp.core.tools import ScreenshotTools
from screenshot_mcp.utils.config import Settings, Transport, get_settings
from screenshot_mcp.utils.logger import bind, get_logger, unbind

log = get_logger(__name__)

INSTRUCTIONS = (
    "Screenshot capture for macOS. Call list_windows to see what can be captured, "
    "then capture_window with part of a window title. capture_full_screen, "
    "capture_region and capture_application cover the other cases. Past captures "
    "are readable as screenshot://latest, screenshot://history and "
    "screenshot://history/{id}."
)

Format = Annotated[Optional[str], Field(description="Image format: png or jpg")]
Quality = Annotated[Optional[int], Field(description="Image quality 1-100 (jpg only)")]
SaveToFile = Annotated[Optional[bool], Field(description="Whether to save the screenshot to a file")]


@dataclass
class ScreenshotService:
    manager: ScreenshotManager
    tools: ScreenshotTools
    resources: ScreenshotResources

    @classmethod
    def create(cls, manager: Optional[ScreenshotManager] = None, settings: Optional[Settings] = None) -> "ScreenshotService":
        s = settings or (manager.settings if manager else get_settings())
        mgr = manager or ScreenshotManager(settings=s)
        return cls(
            manager=mgr,
            tools=ScreenshotTools(mgr),
            resources=ScreenshotResources(mgr.history, page_size=s.HISTORY_PAGE_SIZE),
        )


def _json(payload: Dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False)


def build_server(service: Optional[ScreenshotService] = None, settings: Optional[Settings] = None) -> FastMCP:
    """
    Create the FastMCP app. The service is created on first use so that
    importing this module never touches the capture tool.
    """
    s = settings or get_settings()
    holder: Dict[str, ScreenshotService] = {}
    if service is not None:
        holder["svc"] = service

    def svc() -> ScreenshotService:
        if "svc" not in holder:
            holder["svc"] = ScreenshotService.create(settings=s)
        return holder["svc"]

    app = FastMCP(s.SERVER_NAME, instructions=INSTRUCTIONS)

    # ---------- tools ----------

    @app.tool()
    def list_windows() -> dict:
        """Lists all available windows that can be captured."""
        return svc().tools.list_windows()

    @app.tool()
    def capture_full_screen(format: Format = None, quality: Quality = None, saveToFile: SaveToFile = None) -> dict:  # noqa: N803
        """Captures the entire screen with format, quality, and storage options."""
        return svc().tools.capture_full_screen(format, quality, saveToFile)

    @app.tool()
    def capture_window(
        windowTitle: Annotated[str, Field(description="Title or partial title of the window to capture")],  # noqa: N803
        format: Format = None,
        quality: Quality = None,
        saveToFile: SaveToFile = None,  # noqa: N803
    ) -> dict:
        """Captures a specific window by title with customizable output settings."""
        return svc().tools.capture_window(windowTitle, format, quality, saveToFile)

    @app.tool()
    def capture_region(
        x: Annotated[Optional[int], Field(description="X-coordinate of the top-left corner")] = None,
        y: Annotated[Optional[int], Field(description="Y-coordinate of the top-left corner")] = None,
        width: Annotated[Optional[int], Field(description="Width of the region in pixels")] = None,
        height: Annotated[Optional[int], Field(description="Height of the region in pixels")] = None,
        format: Format = None,
        quality: Quality = None,
        saveToFile: SaveToFile = None,  # noqa: N803
    ) -> dict:
        """Captures a specific region of the screen defined by coordinates."""
        return svc().tools.capture_region(x, y, width, height, format, quality, saveToFile)

    @app.tool()
    def capture_application(
        appType: Annotated[Optional[str], Field(description="godot, pygame or any")] = None,  # noqa: N803
        format: Format = None,
        quality: Quality = None,
        saveToFile: SaveToFile = None,  # noqa: N803
    ) -> dict:
        """Automatically detects and captures Godot or PyGame applications."""
        return svc().tools.capture_application(appType, format, quality, saveToFile)

    # ---------- resources ----------

    @app.resource("screenshot://latest", mime_type="application/json")
    def latest_screenshot() -> str:
        """Gets the most recent screenshot."""
        return _json(svc().resources.latest())

    @app.resource("screenshot://history", mime_type="application/json")
    def screenshot_history() -> str:
        """Gets a list of recent screenshots with metadata."""
        return _json(svc().resources.list_history())

    @app.resource("screenshot://history/{screenshot_id}", mime_type="application/json")
    def screenshot_by_id(screenshot_id: str) -> str:
        """Gets a specific screenshot by ID."""
        return _json(svc().resources.by_id(screenshot_id))

    return app


def serve(transport: Optional[str] = None, settings: Optional[Settings] = None) -> None:
    s = settings or get_settings()
    mode = Transport(transport) if transport else s.MCP_TRANSPORT
    bind(transport=mode.value)
    app = build_server(settings=s)
    log.info(f"Starting {s.SERVER_NAME} ({mode.value}); screenshots -> {s.SCREENSHOT_DIR}")
    try:
        app.run(transport=mode.value)
    finally:
        unbind("transport")
