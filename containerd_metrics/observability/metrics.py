#!filepath: containerd_metrics/observability/metrics.py
from dataclasses import dataclass, field
from typing import Dict

from containerd_metrics.utils.logger import logs


@dataclass
class MetricRecorder:
    """
    进程内计数器（不导出任何 wire format）

    - incr(name)   : 事件计数（prepare / commit / orphan commit ...）
    - gauge(name)  : 瞬时值（store 大小）
    - log_summary(): 退出时打印一次
    """

    enabled: bool = True
    counters: Dict[str, int] = field(default_factory=dict)
    gauges: Dict[str, float] = field(default_factory=dict)

    def incr(self, name: str, value: int = 1):
        if not self.enabled:
            return
        self.counters[name] = self.counters.get(name, 0) + value

    def gauge(self, name: str, value: float):
        if not self.enabled:
            return
        self.gauges[name] = value

    def get(self, name: str) -> int:
        return self.counters.get(name, 0)

    def log_summary(self):
        if not self.enabled:
            return
        for name in sorted(self.counters):
            logs.info(f"[Metric] {name} = {self.counters[name]}")
        for name in sorted(self.gauges):
            logs.info(f"[Metric] {name} = {self.gauges[name]}")
