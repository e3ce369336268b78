# tests/conftest.py
from __future__ import annotations

import json
from typing import List

import pytest
from loguru import logger

from containerd_metrics.correlation.models import ChainResult
from containerd_metrics.correlation.recorder import EventRecorder
from containerd_metrics.correlation.store import CorrelationStore
from containerd_metrics.events.types import (
    ContainerCreate,
    Envelope,
    EventKind,
    ImageDelete,
    SnapshotCommit,
    SnapshotPrepare,
    SnapshotRemove,
)
from containerd_metrics.report.base import Reporter


@pytest.fixture(autouse=True)
def disable_file_logger():
    logger.remove()
    logger.add(lambda msg: None)
    yield


@pytest.fixture
def captured_logs():
    """
    临时 sink 捕获 loguru 输出（message + extra）
    """
    captured: List[str] = []
    sink_id = logger.add(lambda msg: captured.append(str(msg)), format="{level} | {message} | {extra}", level="DEBUG")
    yield captured
    logger.remove(sink_id)


# =============================================================================
# Fake clock / reporter
# =============================================================================

class FakeClock:
    def __init__(self, t: float = 100.0):
        self.t = t

    def advance(self, seconds: float) -> None:
        self.t += seconds

    def __call__(self) -> float:
        return self.t


class RecordingReporter(Reporter):
    def __init__(self):
        self.timelines: List[ChainResult] = []
        self.passthrough: List[Envelope] = []
        self.closed = False

    def report_timeline(self, result: ChainResult) -> None:
        self.timelines.append(result)

    def report_passthrough(self, envelope: Envelope) -> None:
        self.passthrough.append(envelope)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_clock():
    return FakeClock


@pytest.fixture
def make_reporter():
    return RecordingReporter


@pytest.fixture
def store(clock) -> CorrelationStore:
    return CorrelationStore(clock=clock)


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def recorder(store, reporter) -> EventRecorder:
    return EventRecorder(store=store, reporter=reporter)


# =============================================================================
# Event builders
# =============================================================================

class Events:
    """Envelope 构造器，省去 payload 模板代码。"""

    @staticmethod
    def prepare(key: str, parent: str = "") -> Envelope:
        return Envelope(
            topic="/snapshot/prepare",
            kind=EventKind.PREPARATION_STARTED,
            payload=SnapshotPrepare(key=key, parent=parent),
        )

    @staticmethod
    def commit(key: str, name: str) -> Envelope:
        return Envelope(
            topic="/snapshot/commit",
            kind=EventKind.PREPARATION_COMMITTED,
            payload=SnapshotCommit(key=key, name=name),
        )

    @staticmethod
    def create(container_id: str, image: str) -> Envelope:
        return Envelope(
            topic="/containers/create",
            kind=EventKind.CONTAINER_CREATED,
            payload=ContainerCreate(id=container_id, image=image),
        )

    @staticmethod
    def remove(key: str) -> Envelope:
        return Envelope(
            topic="/snapshot/remove",
            kind=EventKind.SNAPSHOT_REMOVED,
            payload=SnapshotRemove(key=key),
        )

    @staticmethod
    def image_delete(name: str) -> Envelope:
        return Envelope(
            topic="/images/delete",
            kind=EventKind.IMAGE_DELETED,
            payload=ImageDelete(name=name),
        )


@pytest.fixture
def events() -> type:
    return Events


@pytest.fixture
def ctr_line():
    """
    构造一行 ``ctr events`` 输出：
        ctr_line("/snapshot/prepare", {"key": "a"}, second=1)
    """

    def _make(topic: str, payload: dict, second: int = 0, namespace: str = "k8s.io") -> str:
        ts = f"2024-03-01 10:00:{second:02d}.000000000 +0000 UTC"
        return f"{ts} {namespace} {topic} {json.dumps(payload)}"

    return _make
