# containerd_metrics/events/types.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict


class EventKind(str, Enum):
    PREPARATION_STARTED = "preparation-started"
    PREPARATION_COMMITTED = "preparation-committed"
    SNAPSHOT_REMOVED = "snapshot-removed"
    IMAGE_DELETED = "image-deleted"
    CONTAINER_CREATED = "container-created"
    OTHER = "other"


# -------------------------
# Payloads（containerd api/events 的 JSON 形式）
# -------------------------
class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class SnapshotPrepare(_Payload):
    key: str
    parent: str = ""
    snapshotter: str = ""


class SnapshotCommit(_Payload):
    key: str
    name: str
    snapshotter: str = ""


class SnapshotRemove(_Payload):
    key: str
    snapshotter: str = ""


class ImageDelete(_Payload):
    name: str


class ContainerCreate(_Payload):
    id: str
    image: str = ""


Payload = Union[SnapshotPrepare, SnapshotCommit, SnapshotRemove, ImageDelete, ContainerCreate]

TOPIC_KINDS: Dict[str, EventKind] = {
    "/snapshot/prepare": EventKind.PREPARATION_STARTED,
    "/snapshot/commit": EventKind.PREPARATION_COMMITTED,
    "/snapshot/remove": EventKind.SNAPSHOT_REMOVED,
    "/images/delete": EventKind.IMAGE_DELETED,
    "/containers/create": EventKind.CONTAINER_CREATED,
}

KIND_PAYLOADS: Dict[EventKind, type] = {
    EventKind.PREPARATION_STARTED: SnapshotPrepare,
    EventKind.PREPARATION_COMMITTED: SnapshotCommit,
    EventKind.SNAPSHOT_REMOVED: SnapshotRemove,
    EventKind.IMAGE_DELETED: ImageDelete,
    EventKind.CONTAINER_CREATED: ContainerCreate,
}


@dataclass(frozen=True)
class Envelope:
    """
    一条已解码的 runtime 事件。

    kind == OTHER 时 payload 为原始 dict（不做校验）。
    """

    topic: str
    kind: EventKind
    payload: Union[Payload, Dict[str, Any]]
    namespace: str = ""
    timestamp: Optional[datetime] = None

    def fields(self) -> Dict[str, Any]:
        if isinstance(self.payload, BaseModel):
            return self.payload.model_dump()
        return dict(self.payload)
