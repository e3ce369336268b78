# containerd_metrics/correlation/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


# -------------------------
# Store records
# -------------------------
@dataclass(frozen=True)
class PreparationRecord:
    """A snapshot prepare that has started but not (yet) committed."""

    key: str
    start_time: float
    parent_key: str = ""


@dataclass(frozen=True)
class CompletedPreparation:
    """
    A committed layer.

    parent_name is the prepare's parent key, which containerd expresses in
    the committed-name space, so it can be resolved with lookup_by_name.
    """

    key: str
    name: str
    parent_name: str
    duration: float
    completed_at: float


@dataclass(frozen=True)
class StartResult:
    record: PreparationRecord
    replaced: bool = False


@dataclass(frozen=True)
class SweepResult:
    pending_evicted: int = 0
    completed_evicted: int = 0

    @property
    def total(self) -> int:
        return self.pending_evicted + self.completed_evicted


# -------------------------
# Reconstruction output
# -------------------------
@dataclass(frozen=True)
class LayerTiming:
    layer_id: str
    duration: float


@dataclass(frozen=True)
class ImageTimeline:
    """
    ImageTimeline（派生结果，不入 store）

    layers 按时间顺序：最早准备的 base layer 在前。
    """

    image_reference: str
    layers: List[LayerTiming] = field(default_factory=list)
    total_preparation_duration: float = 0.0

    def to_dict(self) -> dict:
        return {
            "image": self.image_reference,
            "total_prep_seconds": self.total_preparation_duration,
            "layers": [
                {"id": layer.layer_id, "prep_seconds": layer.duration}
                for layer in self.layers
            ],
        }


@dataclass(frozen=True)
class ChainResult:
    """Everything handed to the reporter for one container-created event."""

    container_id: str
    label: str
    initial_parent: str
    timeline: ImageTimeline
    cycle_detected: bool = False
    dangling_parent: Optional[str] = None

    def to_dict(self) -> dict:
        out = {
            "id": self.container_id,
            "instanceId": self.label,
            "initialPrep": self.initial_parent,
        }
        out.update(self.timeline.to_dict())
        if self.cycle_detected:
            out["cycle_detected"] = True
        return out
