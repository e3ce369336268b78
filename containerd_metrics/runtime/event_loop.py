from __future__ import annotations

from typing import Optional

from containerd_metrics.correlation.recorder import EventRecorder
from containerd_metrics.ingest.base import EventSource
from containerd_metrics.runtime.stop import StopToken


def run_event_loop(
    *,
    source: EventSource,
    recorder: EventRecorder,
    stop: Optional[StopToken] = None,
) -> int:
    """
    Single consumer loop. Each event is handled to completion before the
    next one is read; IngestError from the source propagates.

    Returns the number of events handled.
    """
    handled = 0
    for envelope in source.events():
        if stop is not None and stop.is_set():
            break

        recorder.handle(envelope)
        handled += 1

    return handled
