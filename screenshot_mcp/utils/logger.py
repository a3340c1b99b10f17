# screenshot_mcp/utils/logger.py
from __future__ import annotations

"""Logging setup
---------------
Console lines go through Rich on stderr; stdout belongs to the stdio MCP
transport. An optional rotating JSON file log carries the request context
(`transport`, `tool`, `strategy`) as top-level fields.

Log messages routinely embed window titles and osascript/swift stderr, so
Rich markup is never interpreted.
"""

import json
import logging
import threading
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, MutableMapping, Optional, Tuple

from rich.console import Console
from rich.logging import RichHandler

from screenshot_mcp.utils.config import LogLevel, Settings, get_settings


__all__ = [
    "CONTEXT_FIELDS",
    "JsonFormatter",
    "get_logger",
    "set_log_level",
    "bind",
    "unbind",
    "log_with_context",
]

# Context keys that are carried onto records; anything else passed to bind() is ignored.
CONTEXT_FIELDS: Tuple[str, ...] = ("transport", "tool", "strategy")

_config_lock = threading.Lock()
_configured = False
_bound: Dict[str, Any] = {}


class ContextAdapter(logging.LoggerAdapter):
    """Stamps process-wide context plus this adapter's own fields onto each record as `record.ctx`."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]):
        merged = {**_bound, **(self.extra or {})}
        extra = kwargs.setdefault("extra", {})
        extra["ctx"] = {k: merged[k] for k in CONTEXT_FIELDS if merged.get(k) is not None}
        return msg, kwargs


def _context_of(record: logging.LogRecord) -> Dict[str, Any]:
    ctx = getattr(record, "ctx", None)
    return ctx if isinstance(ctx, dict) else {}


class JsonFormatter(logging.Formatter):
    """One object per line: ts, level, logger, msg, then whichever context fields are set."""

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: Dict[str, Any] = {
            "ts": ts.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(_context_of(record))
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """Message, suffixed with the discovery strategy when one is in scope."""

    def format(self, record: logging.LogRecord) -> str:
        msg = super().format(record)
        strategy = _context_of(record).get("strategy")
        return f"{msg} ({strategy})" if strategy else msg


# ------------- Setup -------------

_LEVEL_MAP = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.CRITICAL: logging.CRITICAL,
}

# Chatty below WARNING; the mcp SDK logs every request at INFO.
_NOISY = ("asyncio", "httpx", "mcp", "PIL", "uvicorn")


def _console_handler(settings: Settings) -> logging.Handler:
    console = Console(stderr=True, color_system="auto" if settings.COLORIZED_OUTPUT else None)
    handler = RichHandler(
        console=console,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
        omit_repeated_times=False,
    )
    handler.setFormatter(ConsoleFormatter("%(message)s"))
    return handler


def _file_handler(settings: Settings) -> logging.Handler:
    settings.LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(settings.LOG_FILE),
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
        delay=True,
    )
    handler.setFormatter(JsonFormatter())
    return handler


def _ensure_configured() -> None:
    global _configured
    if _configured:
        return
    with _config_lock:
        if _configured:
            return
        settings = get_settings()
        level = _LEVEL_MAP.get(settings.LOG_LEVEL, logging.INFO)

        root = logging.getLogger()
        for h in list(root.handlers):
            root.removeHandler(h)
        root.setLevel(level)

        handlers = [_console_handler(settings)]
        if settings.LOG_TO_FILE:
            handlers.append(_file_handler(settings))
        for h in handlers:
            h.setLevel(level)
            root.addHandler(h)

        for name in _NOISY:
            logging.getLogger(name).setLevel(max(level, logging.WARNING))
        _configured = True


# ------------- Public API -------------

def get_logger(name: Optional[str] = None) -> ContextAdapter:
    _ensure_configured()
    return ContextAdapter(logging.getLogger(name or "screenshot_mcp"), {})


def set_log_level(level: LogLevel | str) -> None:
    """Change the root level and every attached handler (used by `--log-level`)."""
    _ensure_configured()
    name = level.value if isinstance(level, LogLevel) else str(level).upper()
    py_level = logging.getLevelName(name)
    if not isinstance(py_level, int):
        py_level = logging.INFO
    root = logging.getLogger()
    root.setLevel(py_level)
    for h in root.handlers:
        h.setLevel(py_level)


def bind(**fields: Any) -> None:
    """Set process-wide context, e.g. bind(transport="stdio") for the lifetime of `serve`."""
    _bound.update({k: v for k, v in fields.items() if k in CONTEXT_FIELDS})


def unbind(*keys: str) -> None:
    for k in keys:
        _bound.pop(k, None)


def log_with_context(logger: logging.LoggerAdapter, **fields: Any) -> ContextAdapter:
    """Scoped adapter: log_with_context(log, tool="capture_window")."""
    merged = dict(logger.extra or {})
    merged.update(fields)
    return ContextAdapter(logger.logger, merged)
