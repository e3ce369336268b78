#!filepath: containerd_metrics/workflows/export.py
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from containerd_metrics.config.app_config import AppConfig
from containerd_metrics.config.report_config import ReportConfig
from containerd_metrics.correlation.clock import EventTimeClock
from containerd_metrics.correlation.recorder import EventRecorder
from containerd_metrics.correlation.store import CorrelationStore
from containerd_metrics.ingest.base import EventSource
from containerd_metrics.ingest.ctr_source import CtrEventSource
from containerd_metrics.ingest.file_source import FileEventSource
from containerd_metrics.observability.metrics import MetricRecorder
from containerd_metrics.report.base import CompositeReporter, Reporter
from containerd_metrics.report.jsonl_reporter import JsonLinesReporter
from containerd_metrics.report.log_reporter import LogReporter
from containerd_metrics.report.timeline_reporter import TimelineTableReporter
from containerd_metrics.runtime.event_loop import run_event_loop
from containerd_metrics.runtime.stop import StopToken
from containerd_metrics.utils.errors import IngestError
from containerd_metrics.utils.logger import logs
from containerd_metrics.utils.retry import Retry


@dataclass
class Correlator:
    """
    一次运行期间唯一的状态持有者：store 在多次重连之间保留。
    """

    store: CorrelationStore
    recorder: EventRecorder
    reporter: Reporter
    metrics: MetricRecorder

    def close(self) -> None:
        self.reporter.close()
        self.metrics.gauge("store.pending", self.store.pending_count)
        self.metrics.gauge("store.completed", self.store.completed_count)
        self.metrics.log_summary()


@dataclass(frozen=True)
class RunSummary:
    handled: int
    reported: int
    malformed: int


def build_reporter(cfg: ReportConfig) -> Reporter:
    reporters: List[Reporter] = []
    if cfg.log:
        reporters.append(LogReporter())
    if cfg.table:
        reporters.append(TimelineTableReporter())
    if cfg.jsonl_path:
        reporters.append(JsonLinesReporter(cfg.jsonl_path))
    return CompositeReporter(reporters)


def build_correlator(
    cfg: AppConfig,
    clock: Optional[Callable[[], float]] = None,
    reporter: Optional[Reporter] = None,
    event_time: Optional[bool] = None,
) -> Correlator:
    """
    event_time=None 时由 correlation.clock 决定；显式传入 clock 时忽略两者。
    """
    corr = cfg.correlation
    if event_time is None:
        event_time = corr.clock == "event"

    event_clock = None
    if clock is None:
        if event_time:
            event_clock = EventTimeClock()
            clock = event_clock
        else:
            clock = time.perf_counter

    store = CorrelationStore(
        clock=clock,
        pending_ttl=corr.pending_ttl,
        completed_ttl=corr.completed_ttl,
        drop_start_on_commit=corr.drop_start_on_commit,
    )
    metrics = MetricRecorder()
    reporter = reporter or build_reporter(cfg.report)
    recorder = EventRecorder(
        store=store,
        reporter=reporter,
        metrics=metrics,
        sweep_interval=corr.sweep_interval,
        event_clock=event_clock,
    )
    return Correlator(store=store, recorder=recorder, reporter=reporter, metrics=metrics)


# --------------------------------------------------
# export：实时订阅 containerd
# --------------------------------------------------
@logs.catch(msg="export stopped with error")
def run_export(
    cfg: AppConfig,
    stop: StopToken,
    source_factory: Optional[Callable[[], EventSource]] = None,
    correlator: Optional[Correlator] = None,
) -> RunSummary:
    """
    Subscribe → correlate → report until stop is set.

    ingest.reconnect_attempts bounds consecutive failed subscriptions.
    A subscription that delivered events before dropping starts a new
    outage with a fresh budget; once a budget is used up IngestError
    propagates.
    """
    ing = cfg.ingest
    correlator = correlator or build_correlator(cfg)
    event_time = correlator.recorder.event_clock is not None

    if source_factory is None:
        def source_factory() -> EventSource:
            return CtrEventSource(
                socket=ing.socket,
                namespace=ing.namespace,
                ctr_binary=ing.ctr_binary,
                filter_namespace=ing.filter_namespace,
                require_timestamp=event_time,
            )

    handled = 0
    malformed = 0

    def _subscribe() -> bool:
        """Returns True when a subscription that had delivered events dropped."""
        nonlocal handled, malformed
        if stop.is_set():
            return False

        source = source_factory()
        stop.on_stop(source.close)
        try:
            run_event_loop(source=source, recorder=correlator.recorder, stop=stop)
        except IngestError as e:
            if not source.consumed or stop.is_set():
                raise
            logs.warning(f"[Export] subscription dropped after {source.consumed} events: {e}. resubscribing")
            return True
        finally:
            handled += source.consumed
            malformed += source.malformed
            source.close()
        return False

    try:
        while Retry.run(
            _subscribe,
            exceptions=(IngestError,),
            max_attempts=ing.reconnect_attempts,
            delay=ing.reconnect_delay,
        ):
            time.sleep(ing.reconnect_delay)
    finally:
        correlator.close()

    return RunSummary(
        handled=handled,
        reported=correlator.metrics.get("container.reported"),
        malformed=malformed,
    )


# --------------------------------------------------
# replay：离线回放 ctr events 输出
# --------------------------------------------------
def run_replay(
    cfg: AppConfig,
    path: str,
    stop: Optional[StopToken] = None,
    correlator: Optional[Correlator] = None,
) -> RunSummary:
    # 回放时本地时钟只反映读取间隔，耗时按事件时间戳计算
    correlator = correlator or build_correlator(cfg, event_time=True)
    namespace = cfg.ingest.namespace if cfg.ingest.filter_namespace else None
    source = FileEventSource(
        path,
        namespace=namespace,
        require_timestamp=correlator.recorder.event_clock is not None,
    )

    try:
        handled = run_event_loop(source=source, recorder=correlator.recorder, stop=stop)
    finally:
        correlator.close()

    return RunSummary(
        handled=handled,
        reported=correlator.metrics.get("container.reported"),
        malformed=source.malformed,
    )
