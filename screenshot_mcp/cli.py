# screenshot_mcp/cli.py
from __future__ import annotations

"""Command-line interface
------------------------
Run the MCP server, or exercise discovery and capture directly from a
terminal (handy for debugging macOS permission problems).
"""

import json
import sys
from pathlib import Path
from typing import Optional

import click

from screenshot_mcp.utils.config import get_settings
from screenshot_mcp.utils.logger import set_log_level


# -------- helpers --------


def _echo_json(obj) -> None:
    click.echo(json.dumps(obj, indent=2, ensure_ascii=False, default=str))


def _service():
    # local import: building the service picks a capture backend
    from screenshot_mcp.server import ScreenshotService

    return ScreenshotService.create()


def _finish(result: dict) -> None:
    _echo_json(result)
    sys.exit(0 if result.get("success") else 1)


def capture_options(fn):
    fn = click.option("--format", "fmt", type=click.Choice(["png", "jpg"]), default=None, help="Image format")(fn)
    fn = click.option("--quality", type=int, default=None, help="Image quality 1-100 (jpg only)")(fn)
    fn = click.option("--save/--no-save", "save", default=None, help="Override SAVE_TO_FILE")(fn)
    return fn


# -------- CLI root --------


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Override LOG_LEVEL from settings",
)
@click.version_option(package_name="screenshot-mcp")
def cli(log_level: Optional[str]):
    _ = get_settings()
    if log_level:
        set_log_level(log_level.upper())


# -------- commands --------


@cli.command("config")
def cmd_config():
    """Print effective configuration (after .env & env vars)."""
    s = get_settings()
    data = {k: (str(v) if isinstance(v, Path) else getattr(v, "value", v)) for k, v in s.__dict__.items()}
    _echo_json(data)


@cli.command("serve")
@click.option(
    "--transport",
    type=click.Choice(["stdio", "sse", "streamable-http"]),
    default=None,
    help="Override MCP_TRANSPORT from settings",
)
def cmd_serve(transport: Optional[str]):
    """Run the MCP server."""
    from screenshot_mcp.server import serve

    serve(transport)


@cli.command("windows")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the raw list_windows result")
def cmd_windows(as_json: bool):
    """List capturable windows and show which discovery strategy found them."""
    result = _service().tools.list_windows()
    if as_json or not result.get("success"):
        _finish(result)
        return

    windows = result["windows"]
    click.echo(f"Found {len(windows)} window(s) via {result.get('strategy') or 'fallback'}:\n")
    for w in windows:
        click.echo(f" - [{w['id']}] {w['title']}  ({w['application']})")

    attempts = result["discovery"]["attempts"]
    if attempts:
        click.echo("\nStrategies tried:")
        for a in attempts:
            err = f"  ! {a['error']}" if a.get("error") else ""
            click.echo(f"   {a['strategy']}: {a['count']} in {a['elapsed_ms']} ms{err}")
    note = result["discovery"].get("note")
    if note:
        click.echo(f"\nNote: {note}")


@cli.group("capture")
def cmd_capture():
    """Take a screenshot and print the tool result as JSON."""


@cmd_capture.command("full")
@capture_options
def cmd_capture_full(fmt: Optional[str], quality: Optional[int], save: Optional[bool]):
    """Capture the entire screen."""
    _finish(_service().tools.capture_full_screen(fmt, quality, save))


@cmd_capture.command("window")
@click.argument("title")
@capture_options
def cmd_capture_window(title: str, fmt: Optional[str], quality: Optional[int], save: Optional[bool]):
    """Capture the first window whose title contains TITLE."""
    _finish(_service().tools.capture_window(title, fmt, quality, save))


@cmd_capture.command("region")
@click.argument("x", type=int)
@click.argument("y", type=int)
@click.argument("width", type=int)
@click.argument("height", type=int)
@capture_options
def cmd_capture_region(x: int, y: int, width: int, height: int, fmt: Optional[str], quality: Optional[int], save: Optional[bool]):
    """Capture a WIDTHxHEIGHT region whose top-left corner is X,Y."""
    _finish(_service().tools.capture_region(x, y, width, height, fmt, quality, save))


@cmd_capture.command("app")
@click.option("--app-type", type=click.Choice(["godot", "pygame", "any"]), default="any", show_default=True)
@capture_options
def cmd_capture_app(app_type: str, fmt: Optional[str], quality: Optional[int], save: Optional[bool]):
    """Find a running Godot or PyGame window and capture it."""
    _finish(_service().tools.capture_application(app_type, fmt, quality, save))


def main() -> None:
    cli(prog_name="screenshot-mcp")


if __name__ == "__main__":
    main()
