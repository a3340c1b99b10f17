"""
Capture package for the screenshot MCP server.
Handles the platform capture tool, image encoding, history and metadata.
"""

from .screenshot import CaptureOptions, ScreenshotManager
from .history import HistoryStore, ScreenshotHistory
from .metadata import MetadataBuilder, ScreenshotRecord

__all__ = [
    "CaptureOptions",
    "ScreenshotManager",
    "HistoryStore",
    "ScreenshotHistory",
    "MetadataBuilder",
    "ScreenshotRecord",
]
