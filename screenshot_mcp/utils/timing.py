# screenshot_mcp/utils/timing.py
from __future__ import annotations

import functools
import time
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar, ParamSpec

from screenshot_mcp.utils.logger import get_logger

P = ParamSpec("P")
T = TypeVar("T")


def now_ms() -> int:
    """Monotonic time in milliseconds."""
    return time.monotonic_ns() // 1_000_000


def epoch_ms() -> int:
    """Wall-clock time in milliseconds (used for ids and temp names)."""
    return time.time_ns() // 1_000_000


# ---------------- Stopwatch ----------------

@dataclass
class Stopwatch:
    """Simple stopwatch usable as a context manager."""
    start_ms: Optional[int] = None

    def start(self) -> "Stopwatch":
        self.start_ms = now_ms()
        return self

    def elapsed_ms(self) -> int:
        if self.start_ms is None:
            return 0
        return max(0, now_ms() - self.start_ms)

    def __enter__(self) -> "Stopwatch":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        return None


# ---------------- measure decorator ----------------

def measure(label: str = "", level: str = "DEBUG") -> Callable[[Callable[P, T]], Callable[P, T]]:
    """
    Decorator to log the execution time of a function.
    Example:
        @measure("discover_windows")
        def discover(...): ...
    """
    level = level.upper()

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            log = get_logger(__name__)
            log_fn = getattr(log, level.lower(), log.info)
            with Stopwatch() as sw:
                try:
                    return func(*args, **kwargs)
                finally:
                    ms = sw.elapsed_ms()
                    human = f"{ms} ms" if ms < 1000 else f"{ms/1000:.3f} s"
                    name = label or func.__name__
                    log_fn(f"{name} took {human}")
        return wrapper
    return decorator
