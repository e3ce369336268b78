#!filepath: tests/runtime/test_event_loop.py
from __future__ import annotations

import signal
from typing import Iterator, List

import pytest

from containerd_metrics.ingest.base import EventSource
from containerd_metrics.runtime.event_loop import run_event_loop
from containerd_metrics.runtime.stop import StopToken, install_signal_handlers
from containerd_metrics.utils.errors import IngestError


class ListSource(EventSource):
    def __init__(self, lines: List[str], fail_at_end: bool = False):
        super().__init__()
        self._lines = lines
        self.fail_at_end = fail_at_end

    def lines(self) -> Iterator[str]:
        yield from self._lines
        if self.fail_at_end:
            raise IngestError("subscription lost")


def test_loop_handles_every_event(recorder, reporter, ctr_line):
    source = ListSource(
        [
            ctr_line("/snapshot/prepare", {"key": "a"}),
            ctr_line("/snapshot/commit", {"key": "a", "name": "L0"}),
            ctr_line("/snapshot/prepare", {"key": "c", "parent": "L0"}),
            "broken line",
            ctr_line("/containers/create", {"id": "c", "image": "r/p/t"}),
        ]
    )

    handled = run_event_loop(source=source, recorder=recorder)

    assert handled == 4
    assert source.malformed == 1
    assert [l.layer_id for l in reporter.timelines[0].timeline.layers] == ["L0"]


def test_loop_stops_when_token_set(recorder, ctr_line):
    stop = StopToken()
    lines = [ctr_line("/snapshot/prepare", {"key": str(i)}) for i in range(5)]

    class StoppingSource(ListSource):
        def lines(self):
            for i, line in enumerate(self._lines):
                if i == 2:
                    stop.set()
                yield line

    handled = run_event_loop(source=StoppingSource(lines), recorder=recorder, stop=stop)

    assert handled == 2
    assert recorder.store.pending_count == 2


def test_ingest_error_propagates(recorder, ctr_line):
    source = ListSource([ctr_line("/snapshot/prepare", {"key": "a"})], fail_at_end=True)

    with pytest.raises(IngestError):
        run_event_loop(source=source, recorder=recorder)

    # 已处理的事件状态保留
    assert recorder.store.lookup_start("a") is not None


def test_stop_token_callbacks():
    stop = StopToken()
    calls = []
    stop.on_stop(lambda: calls.append("a"))

    stop.set()
    stop.set()
    stop.on_stop(lambda: calls.append("late"))

    assert stop.is_set()
    assert stop.wait(0) is True
    assert calls == ["a", "late"]


def test_signal_handler_sets_token():
    stop = StopToken()
    restore = install_signal_handlers(stop, signals=(signal.SIGUSR1,))
    try:
        signal.raise_signal(signal.SIGUSR1)
    finally:
        restore()

    assert stop.is_set()
