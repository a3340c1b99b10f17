import asyncio

from screenshot_mcp.server import ScreenshotService, build_server


def test_tools_registered(make_manager, settings):
    app = build_server(ScreenshotService.create(manager=make_manager([])), settings=settings)
    tools = {t.name: t for t in asyncio.run(app.list_tools())}
    assert set(tools) == {
        "list_windows",
        "capture_full_screen",
        "capture_window",
        "capture_region",
        "capture_application",
    }
    props = tools["capture_window"].inputSchema["properties"]
    assert {"windowTitle", "format", "quality", "saveToFile"} <= set(props)
    assert tools["capture_window"].inputSchema["required"] == ["windowTitle"]


def test_resources_registered(make_manager, settings):
    app = build_server(ScreenshotService.create(manager=make_manager([])), settings=settings)
    uris = {str(r.uri).rstrip("/") for r in asyncio.run(app.list_resources())}
    assert {"screenshot://latest", "screenshot://history"} <= uris
    templates = {t.uriTemplate for t in asyncio.run(app.list_resource_templates())}
    assert "screenshot://history/{screenshot_id}" in templates
