# screenshot_mcp/discovery/records.py
from __future__ import annotations

"""Window records
----------------
The normalized shape every discovery strategy produces, plus the line parsers
that turn each OS facility's text output into records. Parsers drop a bad
line and keep going; they never raise.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Union

APP_ID_PREFIX = "app_"
PLACEHOLDER_ID = "dummy_0"
PLACEHOLDER_TITLE = "Screenshot MCP (permission issue)"
PLACEHOLDER_OWNER = "System"

# "<integer>. <title>" as printed by `screencapture -l` list mode
_NUMBERED_ENTRY = re.compile(r"^\s*(\d+)\.\s+(.+?)\s*$", re.MULTILINE)


@dataclass(frozen=True)
class Bounds:
    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0

    @classmethod
    def zero(cls) -> "Bounds":
        return cls(0, 0, 0, 0)

    def as_dict(self) -> Dict[str, int]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


# ---------- Window handle variants ----------

@dataclass(frozen=True)
class NativeWindow:
    """A compositor window id; addressable with `screencapture -l <id>`."""
    window_id: int
    bounds: Bounds = field(default_factory=Bounds.zero)

    @property
    def token(self) -> str:
        return str(self.window_id)


@dataclass(frozen=True)
class ApplicationWindow:
    """Whole-application pseudo-window; only full-screen capture can reach it."""
    app_name: str
    ordinal: int

    @property
    def token(self) -> str:
        return f"{APP_ID_PREFIX}{self.ordinal}"


@dataclass(frozen=True)
class PlaceholderWindow:
    """Sentinel: discovery failed entirely (usually permissions)."""
    reason: str = "window discovery failed"

    @property
    def token(self) -> str:
        return PLACEHOLDER_ID


WindowHandle = Union[NativeWindow, ApplicationWindow, PlaceholderWindow]


@dataclass(frozen=True)
class WindowRecord:
    handle: WindowHandle
    title: str
    owner_name: str

    @property
    def id(self) -> str:
        return self.handle.token

    @property
    def bounds(self) -> Bounds:
        if isinstance(self.handle, NativeWindow):
            return self.handle.bounds
        return Bounds.zero()

    @property
    def is_placeholder(self) -> bool:
        return isinstance(self.handle, PlaceholderWindow)

    def matches(self, fragment: str) -> bool:
        """Case-sensitive substring match against the title."""
        return bool(self.title) and fragment in self.title

    def to_public(self) -> Dict[str, str]:
        """Shape exposed by the list_windows tool (geometry intentionally omitted)."""
        return {"id": self.id, "title": self.title, "application": self.owner_name}


def sentinel_record(reason: str = "window discovery failed") -> WindowRecord:
    return WindowRecord(handle=PlaceholderWindow(reason), title=PLACEHOLDER_TITLE, owner_name=PLACEHOLDER_OWNER)


# ---------- Parsers ----------

def _to_int(value: str) -> int:
    # Swift prints Int(...) but tolerate "12.0" style values
    return int(float(value.strip()))


def parse_structured_line(line: str) -> Optional[WindowRecord]:
    """
    Parse `id|owner|title|x|y|width|height` from the compositor helper.
    The title may contain pipes, so split two fields off the left and four off the right.
    """
    line = line.strip()
    if not line:
        return None
    head = line.split("|", 2)
    if len(head) != 3:
        return None
    raw_id, owner, rest = head
    tail = rest.rsplit("|", 4)
    if len(tail) != 5:
        return None
    title = tail[0].strip()
    if not title:
        return None
    try:
        window_id = int(raw_id.strip())
        x, y, w, h = (_to_int(v) for v in tail[1:])
    except ValueError:
        return None
    return WindowRecord(
        handle=NativeWindow(window_id, Bounds(x, y, w, h)),
        title=title,
        owner_name=owner.strip() or "Unknown",
    )


def parse_accessibility_line(line: str) -> Optional[WindowRecord]:
    """
    Parse `id|owner|title` from the System Events script. Geometry is not
    available that way, so bounds are zeroed.
    """
    line = line.strip()
    if not line:
        return None
    parts = line.split("|", 2)
    if len(parts) != 3:
        return None
    raw_id, owner, title = (p.strip() for p in parts)
    if not raw_id.isdigit() or not title:
        return None
    return WindowRecord(
        handle=NativeWindow(int(raw_id), Bounds.zero()),
        title=title,
        owner_name=owner or "Unknown",
    )


def parse_numbered_entries(text: str) -> List[WindowRecord]:
    """
    Scrape `<integer>. <title>` entries out of free-form diagnostic text.
    Owner is a guess: the first whitespace-delimited token of the title.
    """
    records: List[WindowRecord] = []
    for m in _NUMBERED_ENTRY.finditer(text or ""):
        raw_id, title = m.group(1), m.group(2).strip()
        if not title:
            continue
        records.append(
            WindowRecord(
                handle=NativeWindow(int(raw_id), Bounds.zero()),
                title=title,
                owner_name=title.split()[0],
            )
        )
    return records


def parse_process_list(text: str) -> List[WindowRecord]:
    """
    `name of every process whose visible is true` prints "Finder, Safari, ...".
    One pseudo-window per process, id `app_<ordinal>`.
    """
    text = (text or "").strip()
    if not text:
        return []
    records: List[WindowRecord] = []
    for i, name in enumerate(text.split(",")):
        name = name.strip()
        if not name:
            continue
        records.append(
            WindowRecord(handle=ApplicationWindow(name, i), title=f"{name} Window", owner_name=name)
        )
    return records


def normalize(records: Iterable[Optional[WindowRecord]]) -> List[WindowRecord]:
    """
    Final pass every strategy runs: drop Nones, untitled non-placeholder
    records and repeated ids (ids are unique within one result).
    """
    seen: set[str] = set()
    out: List[WindowRecord] = []
    for rec in records:
        if rec is None:
            continue
        if not rec.title and not rec.is_placeholder:
            continue
        if rec.id in seen:
            continue
        seen.add(rec.id)
        out.append(rec)
    return out
