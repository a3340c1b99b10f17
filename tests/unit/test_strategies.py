from pathlib import Path

from screenshot_mcp.discovery.strategies import (
    AccessibilityScriptStrategy,
    CaptureToolListStrategy,
    CompositorQueryStrategy,
    ProcessListStrategy,
    default_strategies,
)
from screenshot_mcp.utils.shell import CommandResult

from fakes import FakeRunner


def ok(stdout="", stderr="", code=0):
    return CommandResult([], code, stdout, stderr)


def test_compositor_query_parses_and_filters(settings):
    out = (
        "101|Safari|Apple|0|25|1440|875\n"
        "102|Dock|Dock|0|0|1440|900\n"
        "not a window line\n"
        "103|Godot|Godot Engine|100|100|800|600\n"
    )
    runner = FakeRunner({"swift": ok(out)})
    strat = CompositorQueryStrategy(settings=settings, runner=runner)
    recs = strat.discover()
    assert [r.id for r in recs] == ["101", "103"]
    assert recs[1].bounds.width == 800
    assert strat.last_error is None


def test_compositor_query_removes_temp_script(settings):
    runner = FakeRunner({"swift": ok("1|A|B|0|0|1|1\n")})
    CompositorQueryStrategy(settings=settings, runner=runner).discover()
    script = Path(runner.calls[0][1])
    assert script.suffix == ".swift"
    assert not script.exists()


def test_compositor_query_failure_is_empty(settings):
    runner = FakeRunner({"swift": ok(stderr="error: no such module 'Cocoa'", code=1)})
    strat = CompositorQueryStrategy(settings=settings, runner=runner)
    assert strat.discover() == []
    assert "exited with 1" in strat.last_error


def test_missing_binary_is_empty(settings):
    strat = CompositorQueryStrategy(settings=settings, runner=FakeRunner())
    assert strat.discover() == []
    assert "not found" in strat.last_error


def test_accessibility_drops_bad_line_keeps_neighbours(settings):
    out = "1|Safari|First\nthis line is broken\n2|Notes|Second\n"
    runner = FakeRunner({"osascript": ok(out)})
    recs = AccessibilityScriptStrategy(settings=settings, runner=runner).discover()
    assert [(r.id, r.title) for r in recs] == [("1", "First"), ("2", "Second")]


def test_accessibility_error_sentinel_is_failure(settings):
    runner = FakeRunner({"osascript": ok("ERROR: System Events got an error: not allowed assistive access.")})
    strat = AccessibilityScriptStrategy(settings=settings, runner=runner)
    assert strat.discover() == []
    assert strat.last_error.startswith("ERROR:")


def test_accessibility_passes_script_as_argument(settings):
    runner = FakeRunner({"osascript": ok("")})
    AccessibilityScriptStrategy(settings=settings, runner=runner).discover()
    argv = runner.calls[0]
    assert argv[0] == "osascript" and argv[1] == "-e"
    assert "System Events" in argv[2]


def test_capture_tool_list_reads_stderr(settings):
    runner = FakeRunner({"screencapture": ok(stderr="12. Safari Apple\n13. Terminal\n", code=1)})
    recs = CaptureToolListStrategy(settings=settings, runner=runner).discover()
    assert [r.id for r in recs] == ["12", "13"]
    assert recs[0].owner_name == "Safari"


def test_capture_tool_list_nothing_to_scrape(settings):
    runner = FakeRunner({"screencapture": ok(stderr="usage: screencapture [-icMPmwsWxSCUtoa]", code=1)})
    assert CaptureToolListStrategy(settings=settings, runner=runner).discover() == []


def test_process_list_pseudo_windows(settings):
    runner = FakeRunner({"osascript": ok("Finder, Safari\n")})
    recs = ProcessListStrategy(settings=settings, runner=runner).discover()
    assert [r.id for r in recs] == ["app_0", "app_1"]


def test_process_list_failure_yields_single_sentinel(settings):
    runner = FakeRunner({"osascript": ok(stderr="execution error", code=1)})
    recs = ProcessListStrategy(settings=settings, runner=runner).discover()
    assert len(recs) == 1
    assert recs[0].is_placeholder


def test_strategy_exceptions_are_contained(settings):
    def boom(args, *, timeout=None):
        raise RuntimeError("runner exploded")

    strat = AccessibilityScriptStrategy(settings=settings, runner=boom)
    assert strat.discover() == []
    assert "runner exploded" in strat.last_error


def test_timeout_passed_to_runner(settings):
    seen = {}

    def runner(args, *, timeout=None):
        seen["timeout"] = timeout
        return CommandResult(list(args), -1, timed_out=True)

    strat = AccessibilityScriptStrategy(settings=settings, runner=runner)
    assert strat.discover() == []
    assert seen["timeout"] == settings.DISCOVERY_TIMEOUT_S
    assert "timed out" in strat.last_error


def test_default_order(settings):
    names = [s.name for s in default_strategies(settings, FakeRunner())]
    assert names == ["structured-query", "accessibility-script", "capture-tool-list", "process-list"]
