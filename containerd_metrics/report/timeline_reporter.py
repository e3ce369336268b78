#!filepath: containerd_metrics/report/timeline_reporter.py
from containerd_metrics.correlation.models import ChainResult
from containerd_metrics.events.types import Envelope
from containerd_metrics.report.base import Reporter
from containerd_metrics.utils.logger import logs


class TimelineTableReporter(Reporter):
    """
    Layer Timeline 报告：
    - layer → 准备耗时秒数（base layer 在前）
    """

    def report_timeline(self, result: ChainResult) -> None:
        timeline = result.timeline
        logs.info(f"[Timeline] ===== {timeline.image_reference} ({result.container_id}) =====")

        for layer in timeline.layers:
            layer_str = _short(layer.layer_id)
            logs.info(f"[Timeline] {layer_str:<30} {layer.duration:>8.3f}s")

        logs.info(f"[Timeline] Total{'':<27} {timeline.total_preparation_duration:>8.3f}s")
        logs.info("[Timeline] ===========================================")

    def report_passthrough(self, envelope: Envelope) -> None:
        pass


def _short(layer_id: str, width: int = 30) -> str:
    # sha256:abcdef... 太长，保留尾部
    if len(layer_id) <= width:
        return layer_id
    return "..." + layer_id[-(width - 3):]
