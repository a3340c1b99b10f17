# screenshot_mcp/discovery/strategies.py
from __future__ import annotations

"""Window discovery strategies
-----------------------------
Four independent ways of asking macOS which windows exist. Each wraps one OS
facility and returns normalized WindowRecords; any failure degrades to an
empty list (the process-list fallback degrades to the sentinel record).
"""

import os
import tempfile
from pathlib import Path
from typing import List, Optional

from screenshot_mcp.discovery.records import (
    WindowRecord,
    normalize,
    parse_accessibility_line,
    parse_numbered_entries,
    parse_process_list,
    parse_structured_line,
    sentinel_record,
)
from screenshot_mcp.utils.config import Settings, get_settings
from screenshot_mcp.utils.logger import get_logger, log_with_context
from screenshot_mcp.utils.shell import CommandRunner, run_command


# Queries CGWindowListCopyWindowInfo and prints id|owner|title|x|y|w|h per window.
SWIFT_WINDOW_LIST = r"""
import Cocoa

let options: CGWindowListOption = [.optionOnScreenOnly, .excludeDesktopElements]
guard let windowList = CGWindowListCopyWindowInfo(options, kCGNullWindowID) as? [[String: Any]] else {
    exit(1)
}

for window in windowList {
    guard let windowID = window[kCGWindowNumber as String] as? Int else { continue }
    let ownerName = window[kCGWindowOwnerName as String] as? String ?? "Unknown"
    let windowName = window[kCGWindowName as String] as? String ?? ""
    if windowName.isEmpty { continue }

    var x = 0, y = 0, width = 0, height = 0
    if let b = window[kCGWindowBounds as String] as? [String: Any] {
        x = Int(b["X"] as? CGFloat ?? 0)
        y = Int(b["Y"] as? CGFloat ?? 0)
        width = Int(b["Width"] as? CGFloat ?? 0)
        height = Int(b["Height"] as? CGFloat ?? 0)
    }
    print("\(windowID)|\(ownerName)|\(windowName)|\(x)|\(y)|\(width)|\(height)")
}
"""

# System Events walk over visible processes. Fields are pipe-delimited
# (id|app|title); a top-level failure comes back as "ERROR: <message>".
APPLESCRIPT_WINDOW_LIST = """
set output to ""
tell application "System Events"
    try
        set allApps to application processes whose visible is true
        repeat with currentApp in allApps
            set appName to name of currentApp
            try
                repeat with currentWindow in (windows of currentApp)
                    try
                        set windowName to name of currentWindow
                        set windowID to id of currentWindow
                        if windowName is not "" then
                            set output to output & (windowID as text) & "|" & appName & "|" & windowName & linefeed
                        end if
                    end try
                end repeat
            end try
        end repeat
    on error errMsg
        return "ERROR: " & errMsg
    end try
end tell
return output
"""

APPLESCRIPT_PROCESS_LIST = (
    'tell application "System Events" to get name of every process whose visible is true'
)

ERROR_SENTINEL = "ERROR:"


class DiscoveryStrategy:
    """
    Base contract: `discover()` returns a list of WindowRecord and never raises.
    Subclasses implement `_discover()` and may raise freely; the failure reason
    is kept on `last_error` for diagnostics.
    """

    name: str = "strategy"

    def __init__(self, *, settings: Optional[Settings] = None, runner: Optional[CommandRunner] = None) -> None:
        self.settings = settings or get_settings()
        self.runner: CommandRunner = runner or run_command
        self.last_error: Optional[str] = None
        self.log = log_with_context(get_logger(__name__), strategy=self.name)

    def discover(self) -> List[WindowRecord]:
        self.last_error = None
        try:
            return self._discover()
        except Exception as e:
            self.last_error = f"{type(e).__name__}: {e}"
            self.log.warning(f"{self.name} discovery failed: {e!r}")
            return []

    def _discover(self) -> List[WindowRecord]:
        raise NotImplementedError

    def _run(self, args: List[str]):
        return self.runner(args, timeout=self.settings.DISCOVERY_TIMEOUT_S)

    def _fail(self, reason: str) -> List[WindowRecord]:
        self.last_error = reason
        self.log.debug(f"{self.name}: {reason}")
        return []

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class CompositorQueryStrategy(DiscoveryStrategy):
    """
    Most accurate source: real window ids and geometry straight from the
    compositor. Needs a Swift toolchain and the Screen Recording permission
    (without it macOS hides window names, so the list comes back empty).
    """

    name = "structured-query"

    def _discover(self) -> List[WindowRecord]:
        fd, script_path = tempfile.mkstemp(prefix="list_windows_", suffix=".swift")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(SWIFT_WINDOW_LIST)
            res = self._run([self.settings.SWIFT_BIN, script_path])
        finally:
            _remove_quietly(Path(script_path), self.log)

        if not res.ok:
            return self._fail(res.describe())

        ignored = set(self.settings.IGNORED_WINDOW_OWNERS)
        records = []
        for line in res.stdout.splitlines():
            rec = parse_structured_line(line)
            if rec is None:
                if line.strip():
                    self.log.debug(f"dropping malformed line: {line!r}")
                continue
            if rec.owner_name in ignored:
                continue
            records.append(rec)
        return normalize(records)


class AccessibilityScriptStrategy(DiscoveryStrategy):
    """Window names and ids through System Events; no geometry."""

    name = "accessibility-script"

    def _discover(self) -> List[WindowRecord]:
        res = self._run([self.settings.OSASCRIPT_BIN, "-e", APPLESCRIPT_WINDOW_LIST])
        if not res.ok:
            return self._fail(res.describe())

        output = res.stdout.strip()
        if output.startswith(ERROR_SENTINEL):
            return self._fail(output)

        records = []
        for line in output.splitlines():
            rec = parse_accessibility_line(line)
            if rec is None:
                if line.strip():
                    self.log.debug(f"dropping malformed line: {line!r}")
                continue
            records.append(rec)
        return normalize(records)


class CaptureToolListStrategy(DiscoveryStrategy):
    """
    Scrapes `screencapture -l` list output from its diagnostic stream.
    Best effort: the output is undocumented and only known to print
    "<id>. <title>" lines on the macOS releases this was written against.
    """

    name = "capture-tool-list"

    def _discover(self) -> List[WindowRecord]:
        res = self._run([self.settings.SCREENCAPTURE_BIN, "-lc"])
        if res.missing or res.timed_out:
            return self._fail(res.describe())
        # exit status is not meaningful in list mode; only the text is
        records = parse_numbered_entries(res.stderr)
        if not records:
            return self._fail("no numbered window entries in screencapture output")
        return normalize(records)


class ProcessListStrategy(DiscoveryStrategy):
    """
    Last resort: one pseudo-window per visible application. Never empty; when
    even this fails the caller gets the sentinel record so it can tell the
    user to check permissions.
    """

    name = "process-list"

    def _discover(self) -> List[WindowRecord]:
        res = self._run([self.settings.OSASCRIPT_BIN, "-e", APPLESCRIPT_PROCESS_LIST])
        if not res.ok:
            self.last_error = res.describe()
            self.log.warning(f"listing applications failed: {self.last_error}")
            return [sentinel_record(self.last_error)]

        records = normalize(parse_process_list(res.stdout))
        if not records:
            self.last_error = "no visible application processes"
            return [sentinel_record(self.last_error)]
        return records

    def discover(self) -> List[WindowRecord]:
        records = super().discover()
        return records or [sentinel_record(self.last_error or "window discovery failed")]


def default_strategies(settings: Optional[Settings] = None, runner: Optional[CommandRunner] = None) -> List[DiscoveryStrategy]:
    """The fixed priority order: most accurate first, pseudo-windows last."""
    return [
        CompositorQueryStrategy(settings=settings, runner=runner),
        AccessibilityScriptStrategy(settings=settings, runner=runner),
        CaptureToolListStrategy(settings=settings, runner=runner),
        ProcessListStrategy(settings=settings, runner=runner),
    ]


def _remove_quietly(path: Path, log) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        log.warning(f"could not remove temp file {path}: {e!r}")
