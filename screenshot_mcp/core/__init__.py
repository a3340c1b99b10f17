"""
Core package for the screenshot MCP server.
Lightweight package init to avoid import cycles.

Consumers should import submodules directly, e.g.:
  from screenshot_mcp.core.errors import WindowNotFound
  from screenshot_mcp.core.tools import ScreenshotTools
  from screenshot_mcp.core.resources import ScreenshotResources
"""

__all__: list[str] = []
