# screenshot_mcp/utils/shell.py
from __future__ import annotations

"""External process helper
-------------------------
Every call out to screencapture / osascript / swift goes through here so the
callers only ever see a CommandResult, never a subprocess exception.
"""

import subprocess
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from screenshot_mcp.utils.logger import get_logger

log = get_logger(__name__)


@dataclass
class CommandResult:
    args: Sequence[str]
    code: int
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False
    missing: bool = False  # binary not found / not executable

    @property
    def ok(self) -> bool:
        return self.code == 0 and not self.timed_out and not self.missing

    def describe(self) -> str:
        """Short human-readable failure reason."""
        if self.missing:
            return f"{self.args[0]}: command not found"
        if self.timed_out:
            return f"{self.args[0]}: timed out"
        detail = (self.stderr or self.stdout).strip().splitlines()
        tail = detail[-1] if detail else ""
        return f"{self.args[0]} exited with {self.code}" + (f": {tail}" if tail else "")


# Signature every strategy / capture tool accepts, so tests can inject fakes.
CommandRunner = Callable[..., CommandResult]


def run_command(args: Sequence[str], *, timeout: Optional[float] = None) -> CommandResult:
    """Run `args` (no shell), capture text output, never raise on process failure."""
    argv = [str(a) for a in args]
    log.debug(f"exec: {' '.join(argv)}")
    try:
        proc = subprocess.run(argv, capture_output=True, text=True, timeout=timeout)
    except FileNotFoundError:
        return CommandResult(argv, 127, missing=True)
    except PermissionError:
        return CommandResult(argv, 126, missing=True)
    except subprocess.TimeoutExpired as e:
        out = e.stdout.decode(errors="replace") if isinstance(e.stdout, bytes) else (e.stdout or "")
        err = e.stderr.decode(errors="replace") if isinstance(e.stderr, bytes) else (e.stderr or "")
        log.warning(f"{argv[0]} did not finish within {timeout}s")
        return CommandResult(argv, -1, out, err, timed_out=True)
    return CommandResult(argv, proc.returncode, proc.stdout or "", proc.stderr or "")
