# containerd_metrics/ingest/file_source.py
from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterator, Optional

from containerd_metrics.ingest.base import EventSource
from containerd_metrics.utils.errors import IngestError


class FileEventSource(EventSource):
    """
    Replay captured ``ctr events`` output.

    path == "-" reads stdin, so a live stream can be piped in:
        ctr events | containerd-metrics replay -
    """

    def __init__(self, path: str | Path, namespace: Optional[str] = None, require_timestamp: bool = False):
        super().__init__(namespace=namespace, require_timestamp=require_timestamp)
        self.path = str(path)

    def lines(self) -> Iterator[str]:
        if self.path == "-":
            yield from sys.stdin
            return

        p = Path(self.path)
        if not p.is_file():
            raise IngestError(f"event file not found: {p}")

        with p.open("r", encoding="utf-8", errors="replace") as f:
            yield from f
