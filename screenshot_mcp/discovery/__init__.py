"""
Discovery package
-----------------
Finds capturable windows by cascading over several macOS facilities,
most accurate first, and normalizes what each one reports.
"""

from .records import (
    ApplicationWindow,
    Bounds,
    NativeWindow,
    PlaceholderWindow,
    WindowHandle,
    WindowRecord,
    sentinel_record,
)
from .strategies import (
    AccessibilityScriptStrategy,
    CaptureToolListStrategy,
    CompositorQueryStrategy,
    DiscoveryStrategy,
    ProcessListStrategy,
    default_strategies,
)
from .cascade import DiscoveryReport, DiscoveryResult, WindowDiscovery

__all__ = [
    "ApplicationWindow",
    "Bounds",
    "NativeWindow",
    "PlaceholderWindow",
    "WindowHandle",
    "WindowRecord",
    "sentinel_record",
    "AccessibilityScriptStrategy",
    "CaptureToolListStrategy",
    "CompositorQueryStrategy",
    "DiscoveryStrategy",
    "ProcessListStrategy",
    "default_strategies",
    "DiscoveryReport",
    "DiscoveryResult",
    "WindowDiscovery",
]
