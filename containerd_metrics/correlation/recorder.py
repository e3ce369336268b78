# containerd_metrics/correlation/recorder.py
from __future__ import annotations

from typing import Optional

from containerd_metrics.correlation.clock import EventTimeClock
from containerd_metrics.correlation.models import ChainResult
from containerd_metrics.correlation.reconstructor import LayerChainReconstructor
from containerd_metrics.correlation.store import CorrelationStore
from containerd_metrics.events.types import (
    ContainerCreate,
    Envelope,
    EventKind,
    SnapshotCommit,
    SnapshotPrepare,
)
from containerd_metrics.observability.metrics import MetricRecorder
from containerd_metrics.report.base import Reporter
from containerd_metrics.utils.logger import logs


class EventRecorder:
    """
    EventRecorder（事件分类 + 记录）

    职责：
      - 按 EventKind 分派：prepare → store.record_start
                           commit  → store.record_completion
                           container create → reconstructor → reporter
                           snapshot remove / image delete → reporter 透传
      - 其他事件忽略
      - 周期性触发 store.sweep（sweep_interval 为 None 时不清理）

    handle() 对单个事件是原子的：返回前完成 store 更新、链重建与上报。
    """

    def __init__(
        self,
        store: CorrelationStore,
        reporter: Reporter,
        reconstructor: Optional[LayerChainReconstructor] = None,
        metrics: Optional[MetricRecorder] = None,
        sweep_interval: Optional[float] = None,
        event_clock: Optional[EventTimeClock] = None,
    ):
        self.store = store
        self.event_clock = event_clock
        self.reporter = reporter
        self.reconstructor = reconstructor or LayerChainReconstructor(store)
        self.metrics = metrics or MetricRecorder()
        self.sweep_interval = sweep_interval
        self._last_sweep = store.now()

    # --------------------------------------------------
    def handle(self, envelope: Envelope) -> Optional[ChainResult]:
        """
        Returns the ChainResult when a container-created event produced a
        timeline, otherwise None.
        """
        if self.event_clock is not None:
            self.event_clock.observe(envelope.timestamp)

        self.metrics.incr(f"events.{envelope.kind.value}")
        self._maybe_sweep()

        kind = envelope.kind
        payload = envelope.payload

        if kind is EventKind.PREPARATION_STARTED and isinstance(payload, SnapshotPrepare):
            self._on_prepare(payload)
        elif kind is EventKind.PREPARATION_COMMITTED and isinstance(payload, SnapshotCommit):
            self._on_commit(payload)
        elif kind is EventKind.CONTAINER_CREATED and isinstance(payload, ContainerCreate):
            return self._on_container_create(payload)
        elif kind in (EventKind.SNAPSHOT_REMOVED, EventKind.IMAGE_DELETED):
            self.reporter.report_passthrough(envelope)
        else:
            logs.bind(topic=envelope.topic).debug("ignoring event")

        return None

    # --------------------------------------------------
    def _on_prepare(self, evt: SnapshotPrepare) -> None:
        result = self.store.record_start(evt.key, evt.parent)
        if result.replaced:
            self.metrics.incr("prepare.replaced")
            logs.bind(key=evt.key).warning("overwriting in-flight preparation with the same key")
        logs.bind(obj=result.record).debug("prep")

    def _on_commit(self, evt: SnapshotCommit) -> None:
        completed = self.store.record_completion(evt.key, evt.name)
        if completed is None:
            self.metrics.incr("commit.without_prep")
            logs.bind(key=evt.key, name=evt.name).debug("found commit without prep")
            return
        logs.bind(obj=completed).debug("commit")

    def _on_container_create(self, evt: ContainerCreate) -> Optional[ChainResult]:
        result = self.reconstructor.reconstruct(evt.id, evt.image)
        if result is None:
            self.metrics.incr("container.without_prep")
            return None

        if result.cycle_detected:
            self.metrics.incr("chain.cycle")
        elif result.dangling_parent:
            self.metrics.incr("chain.partial")

        self.metrics.incr("container.reported")
        self.reporter.report_timeline(result)
        return result

    # --------------------------------------------------
    def _maybe_sweep(self) -> None:
        if self.sweep_interval is None:
            return

        now = self.store.now()
        if now - self._last_sweep < self.sweep_interval:
            return

        self._last_sweep = now
        swept = self.store.sweep(now)
        self.metrics.gauge("store.pending", self.store.pending_count)
        self.metrics.gauge("store.completed", self.store.completed_count)
        if swept.total:
            self.metrics.incr("store.evicted", swept.total)
            logs.bind(
                pending=swept.pending_evicted,
                completed=swept.completed_evicted,
            ).debug("evicted stale correlation records")
