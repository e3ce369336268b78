# containerd_metrics/correlation/reconstructor.py
from __future__ import annotations

from typing import List, Optional, Set

from containerd_metrics.correlation.models import ChainResult, ImageTimeline, LayerTiming
from containerd_metrics.correlation.store import CorrelationStore
from containerd_metrics.utils.logger import logs


def extract_label(image_reference: str) -> str:
    """
    registry/repository/tag 三段式引用 → 第三段；否则返回空串。
    纯展示用途。
    """
    segs = image_reference.split("/")
    if len(segs) == 3:
        return segs[2]
    return ""


class LayerChainReconstructor:
    """
    LayerChainReconstructor

    职责：
      - 从 container 自己的 rootfs prepare 出发，沿 parent_name 逆向遍历 completed layer
      - 结果反转为时间顺序（base layer 在前）
      - container 自身的 rootfs prepare 不计入 layers

    只读 store，不修改任何状态。
    """

    def __init__(self, store: CorrelationStore):
        self.store = store

    def reconstruct(self, container_id: str, image_reference: str) -> Optional[ChainResult]:
        initial = self.store.lookup_start(container_id)
        if initial is None:
            logs.bind(id=container_id, image=image_reference).debug("image without prep")
            return None

        layers: List[LayerTiming] = []
        total = 0.0
        visited: Set[str] = set()
        cycle_detected = False

        current = initial.parent_key
        found = self.store.lookup_by_name(current)
        while found is not None:
            if found.name in visited:
                cycle_detected = True
                logs.bind(id=container_id, name=found.name).warning(
                    "parent chain revisits a layer, truncating walk"
                )
                break

            visited.add(found.name)
            layers.append(LayerTiming(layer_id=found.name, duration=found.duration))
            total += found.duration

            current = found.parent_name
            found = self.store.lookup_by_name(current)

        dangling = None
        if not cycle_detected and current:
            # 链条在一个从未 commit 过的 name 处中断（观察窗口之前，或已被清理）
            dangling = current
            logs.bind(id=container_id, parent=current).debug("layer chain ends at unknown parent")

        layers.reverse()

        return ChainResult(
            container_id=container_id,
            label=extract_label(image_reference),
            initial_parent=initial.parent_key,
            timeline=ImageTimeline(
                image_reference=image_reference,
                layers=layers,
                total_preparation_duration=total,
            ),
            cycle_detected=cycle_detected,
            dangling_parent=dangling,
        )
