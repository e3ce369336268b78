# containerd_metrics/report/jsonl_reporter.py
from __future__ import annotations

import json
from pathlib import Path
from typing import IO, Optional

from containerd_metrics.correlation.models import ChainResult
from containerd_metrics.events.types import Envelope
from containerd_metrics.report.base import Reporter


class JsonLinesReporter(Reporter):
    """
    Append one JSON object per record to a file.

        {"type": "image_pulled", "id": ..., "image": ..., "layers": [...]}
        {"type": "event", "topic": "/images/delete", "payload": {...}}
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._fh: Optional[IO[str]] = self.path.open("a", encoding="utf-8")

    def _write(self, obj: dict) -> None:
        if self._fh is None:
            raise ValueError(f"[JsonLinesReporter] {self.path} already closed")
        self._fh.write(json.dumps(obj, ensure_ascii=False) + "\n")
        self._fh.flush()

    def report_timeline(self, result: ChainResult) -> None:
        record = {"type": "image_pulled"}
        record.update(result.to_dict())
        self._write(record)

    def report_passthrough(self, envelope: Envelope) -> None:
        self._write(
            {
                "type": "event",
                "kind": envelope.kind.value,
                "topic": envelope.topic,
                "namespace": envelope.namespace,
                "timestamp": envelope.timestamp.isoformat() if envelope.timestamp else None,
                "payload": envelope.fields(),
            }
        )

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None
