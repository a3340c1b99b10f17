import threading

import pytest

from screenshot_mcp.capture.history import ScreenshotHistory
from screenshot_mcp.capture.metadata import ScreenshotRecord


def record(i):
    return ScreenshotRecord(
        id=f"ss_{i}",
        timestamp="2026-01-01T00:00:00.000Z",
        type="fullscreen",
        format="png",
        quality=100,
        width=1,
        height=1,
    )


def append_concurrently(hist, records, workers=8):
    barrier = threading.Barrier(workers)

    def run(chunk):
        barrier.wait()
        for r in chunk:
            hist.append(r)

    threads = [threading.Thread(target=run, args=(records[i::workers],)) for i in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()


def test_concurrent_appends_never_exceed_capacity():
    hist = ScreenshotHistory(50)
    records = [record(i) for i in range(800)]
    append_concurrently(hist, records)
    ids = [r.id for r in hist.list()]
    assert len(hist) == 50
    assert len(ids) == len(set(ids))
    assert set(ids) <= {r.id for r in records}


def test_concurrent_appends_lose_nothing_below_capacity():
    hist = ScreenshotHistory(1000)
    records = [record(i) for i in range(400)]
    append_concurrently(hist, records)
    assert sorted(r.id for r in hist.list()) == sorted(r.id for r in records)
    assert all(hist.get(r.id) is r for r in records)


def test_list_is_newest_first_and_limited():
    hist = ScreenshotHistory(3)
    for i in range(5):
        hist.append(record(i))
    assert [r.id for r in hist.list()] == ["ss_4", "ss_3", "ss_2"]
    assert [r.id for r in hist.list(1)] == ["ss_4"]
    assert hist.latest().id == "ss_4"
    assert hist.get("ss_0") is None


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        ScreenshotHistory(0)
