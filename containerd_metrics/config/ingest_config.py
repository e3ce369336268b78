# containerd_metrics/config/ingest_config.py
from typing import Optional

from pydantic import BaseModel, Field


class IngestConfig(BaseModel):
    socket: str = "/run/containerd/containerd.sock"
    namespace: Optional[str] = "k8s.io"
    ctr_binary: str = "ctr"
    # True: 只处理 namespace 对应的事件；False: 订阅到的全部事件
    filter_namespace: bool = False

    # 订阅断开后的重连策略（状态保留在 store 中）
    reconnect_attempts: int = Field(default=3, ge=1)
    reconnect_delay: float = Field(default=1.0, ge=0)
