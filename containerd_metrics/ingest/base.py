# containerd_metrics/ingest/base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterator, Optional

from containerd_metrics.events.decoder import decode_line
from containerd_metrics.events.types import Envelope
from containerd_metrics.utils.errors import MalformedEventError
from containerd_metrics.utils.logger import logs


class EventSource(ABC):
    """
    EventSource（Ingest Adapter）

    职责：
      - lines()  : 子类负责 I/O，逐行产出 ``ctr events`` 格式文本
      - events() : 解码 + 过滤；坏行记 warning 并跳过，不中断流
      - 传输层失败以 IngestError 抛出（fatal）

    require_timestamp=True 时，时间戳无法解析的行也按坏行处理
    （按事件时间计时的场景，没有时间戳就无法计算耗时）。
    """

    def __init__(self, namespace: Optional[str] = None, require_timestamp: bool = False):
        # namespace 非空时只保留该 namespace 的事件
        self.namespace = namespace
        self.require_timestamp = require_timestamp
        self.malformed = 0
        self.consumed = 0

    @abstractmethod
    def lines(self) -> Iterator[str]:
        ...

    def events(self) -> Iterator[Envelope]:
        for line in self.lines():
            text = line.strip()
            if not text or text.startswith("#"):
                continue

            try:
                envelope = decode_line(text)
                if self.require_timestamp and envelope.timestamp is None:
                    raise MalformedEventError("unparsable timestamp", raw=text)
            except MalformedEventError as e:
                self.malformed += 1
                logs.bind(line=e.raw).warning(f"skipping event: {e}")
                continue

            if self.namespace and envelope.namespace != self.namespace:
                continue

            yield envelope
            # 消费方回来取下一条时，上一条已处理完
            self.consumed += 1

    def close(self) -> None:
        pass
