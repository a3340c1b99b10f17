# screenshot_mcp/discovery/cascade.py
from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from screenshot_mcp.discovery.records import WindowRecord, sentinel_record
from screenshot_mcp.discovery.strategies import DiscoveryStrategy, default_strategies
from screenshot_mcp.utils.config import Settings, get_settings
from screenshot_mcp.utils.logger import get_logger
from screenshot_mcp.utils.shell import CommandRunner
from screenshot_mcp.utils.timing import Stopwatch, measure

log = get_logger(__name__)


@dataclass
class StrategyAttempt:
    name: str
    count: int
    elapsed_ms: int
    error: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {"strategy": self.name, "count": self.count, "elapsed_ms": self.elapsed_ms, "error": self.error}


@dataclass
class DiscoveryReport:
    """Which strategies ran, what each returned, and which one won."""
    attempts: List[StrategyAttempt] = field(default_factory=list)
    winner: Optional[str] = None
    note: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "winner": self.winner,
            "note": self.note,
            "attempts": [a.as_dict() for a in self.attempts],
        }


@dataclass
class DiscoveryResult:
    windows: List[WindowRecord]
    report: DiscoveryReport


class WindowDiscovery:
    """
    Ordered try-next-on-empty cascade over the discovery strategies:
      - Each strategy runs exactly once, sequentially, in priority order
      - The first non-empty result wins and is returned as-is (never merged)
      - If everything comes back empty, the result is the single sentinel record
    Nothing is cached; every call is a fresh snapshot.
    """

    def __init__(
        self,
        strategies: Optional[Sequence[DiscoveryStrategy]] = None,
        *,
        settings: Optional[Settings] = None,
        runner: Optional[CommandRunner] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.strategies: List[DiscoveryStrategy] = (
            list(strategies) if strategies is not None else default_strategies(self.settings, runner)
        )

    @property
    def platform_supported(self) -> bool:
        return sys.platform == "darwin" or self.settings.FORCE_DISCOVERY

    @measure("discover_windows")
    def discover(self) -> DiscoveryResult:
        report = DiscoveryReport()

        if not self.platform_supported:
            report.note = f"window discovery is only supported on macOS (running on {sys.platform})"
            log.warning(report.note)
            return DiscoveryResult([sentinel_record(report.note)], report)

        for strategy in self.strategies:
            with Stopwatch() as sw:
                windows = strategy.discover()
            report.attempts.append(
                StrategyAttempt(
                    name=strategy.name,
                    count=len(windows),
                    elapsed_ms=sw.elapsed_ms(),
                    error=getattr(strategy, "last_error", None),
                )
            )
            if windows:
                report.winner = strategy.name
                log.info(f"Found {len(windows)} window(s) using {strategy.name}")
                return DiscoveryResult(list(windows), report)
            log.debug(f"{strategy.name} found nothing; trying next strategy")

        report.note = "all discovery strategies returned nothing"
        log.warning(report.note)
        return DiscoveryResult([sentinel_record(report.note)], report)

    def discover_windows(self) -> List[WindowRecord]:
        return self.discover().windows
