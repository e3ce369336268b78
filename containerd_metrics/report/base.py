# containerd_metrics/report/base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, List

from containerd_metrics.correlation.models import ChainResult
from containerd_metrics.events.types import Envelope


class Reporter(ABC):
    """
    Reporter (push-only)

    职责：
      - 接收重建好的 layer timeline / 透传的信息类事件
      - 同步调用，不返回任何结果
    """

    @abstractmethod
    def report_timeline(self, result: ChainResult) -> None:
        ...

    @abstractmethod
    def report_passthrough(self, envelope: Envelope) -> None:
        ...

    def close(self) -> None:
        pass


class CompositeReporter(Reporter):
    """Fan-out to several reporters in order."""

    def __init__(self, reporters: Iterable[Reporter]):
        self.reporters: List[Reporter] = list(reporters)

    def report_timeline(self, result: ChainResult) -> None:
        for r in self.reporters:
            r.report_timeline(result)

    def report_passthrough(self, envelope: Envelope) -> None:
        for r in self.reporters:
            r.report_passthrough(envelope)

    def close(self) -> None:
        for r in self.reporters:
            r.close()
