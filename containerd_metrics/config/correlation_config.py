# containerd_metrics/config/correlation_config.py
from typing import Literal, Optional

from pydantic import BaseModel, Field


class CorrelationConfig(BaseModel):
    """
    In-memory retention of correlation records.

    pending_ttl   : seconds an unmatched prepare stays in flight (None = forever)
    completed_ttl : seconds a committed layer stays resolvable by name (None = forever)
    sweep_interval: minimum seconds between two eviction sweeps
    clock         : "processing" = local monotonic clock when the event is handled
                    "event"      = timestamp containerd stamped on the event
    """

    pending_ttl: Optional[float] = Field(default=3600.0, gt=0)
    completed_ttl: Optional[float] = Field(default=86400.0, gt=0)
    sweep_interval: float = Field(default=60.0, ge=0)
    drop_start_on_commit: bool = False
    clock: Literal["processing", "event"] = "processing"
