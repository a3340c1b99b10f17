# screenshot_mcp/capture/history.py
from __future__ import annotations

import threading
from collections import deque
from typing import Deque, List, Optional, Protocol

from screenshot_mcp.capture.metadata import ScreenshotRecord


class HistoryStore(Protocol):
    def append(self, record: ScreenshotRecord) -> None: ...

    def get(self, screenshot_id: str) -> Optional[ScreenshotRecord]: ...

    def list(self, limit: Optional[int] = None) -> List[ScreenshotRecord]: ...

    def latest(self) -> Optional[ScreenshotRecord]: ...


class ScreenshotHistory:
    """
    Bounded in-memory ring of captures (oldest evicted first).
    Append-and-evict happens under one lock so concurrent callers never
    observe more than `capacity` entries.
    """

    def __init__(self, capacity: int = 100) -> None:
        if capacity < 1:
            raise ValueError("history capacity must be >= 1")
        self.capacity = capacity
        self._items: Deque[ScreenshotRecord] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def append(self, record: ScreenshotRecord) -> None:
        with self._lock:
            self._items.append(record)

    def get(self, screenshot_id: str) -> Optional[ScreenshotRecord]:
        with self._lock:
            for rec in self._items:
                if rec.id == screenshot_id:
                    return rec
        return None

    def list(self, limit: Optional[int] = None) -> List[ScreenshotRecord]:
        """Newest first."""
        with self._lock:
            items = list(reversed(self._items))
        return items if limit is None else items[: max(0, limit)]

    def latest(self) -> Optional[ScreenshotRecord]:
        with self._lock:
            return self._items[-1] if self._items else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
