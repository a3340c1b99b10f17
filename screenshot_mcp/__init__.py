"""
screenshot-mcp
--------------
Screen and window capture exposed as MCP tools and resources, with a
multi-strategy macOS window discovery cascade.
"""

__version__ = "1.0.0"
