# containerd_metrics/correlation/clock.py
from __future__ import annotations

from datetime import datetime
from typing import Optional


class EventTimeClock:
    """
    由事件时间戳驱动的时钟（秒）。

    - observe() 只前进不后退，乱序事件不会产生负耗时
    - 无时间戳的事件沿用上一次的时间
    """

    def __init__(self, start: float = 0.0):
        self._now = start

    def observe(self, ts: Optional[datetime]) -> None:
        if ts is None:
            return
        self._now = max(self._now, ts.timestamp())

    def __call__(self) -> float:
        return self._now
