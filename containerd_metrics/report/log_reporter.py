# containerd_metrics/report/log_reporter.py
from __future__ import annotations

from containerd_metrics.correlation.models import ChainResult
from containerd_metrics.events.types import Envelope, EventKind
from containerd_metrics.report.base import Reporter
from containerd_metrics.utils.logger import logs

_PASSTHROUGH_MESSAGES = {
    EventKind.SNAPSHOT_REMOVED: "snapshot remove",
    EventKind.IMAGE_DELETED: "image delete",
}


class LogReporter(Reporter):
    """One structured INFO line per record."""

    def report_timeline(self, result: ChainResult) -> None:
        logs.bind(
            instanceId=result.label,
            image=result.timeline.to_dict(),
            id=result.container_id,
            initialPrep=result.initial_parent,
        ).info("image pulled")

    def report_passthrough(self, envelope: Envelope) -> None:
        msg = _PASSTHROUGH_MESSAGES.get(envelope.kind, envelope.topic)
        logs.bind(obj=envelope.fields(), namespace=envelope.namespace).info(msg)
