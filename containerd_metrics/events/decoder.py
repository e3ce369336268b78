# containerd_metrics/events/decoder.py
from __future__ import annotations

import json
import re
from datetime import datetime
from typing import Optional

from pydantic import ValidationError

from containerd_metrics.events.types import (
    KIND_PAYLOADS,
    TOPIC_KINDS,
    Envelope,
    EventKind,
)
from containerd_metrics.utils.errors import MalformedEventError

# 2024-03-01 10:00:00.123456789 +0000 UTC
_TS_RE = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2}) (?P<time>\d{2}:\d{2}:\d{2})(?:\.(?P<frac>\d+))? (?P<offset>[+-]\d{4})"
)


def parse_timestamp(text: str) -> Optional[datetime]:
    """
    Parse the Go ``time.Time.String()`` prefix that ``ctr events`` prints.
    Fractions are cut to microseconds. Returns None when unparsable.
    """
    m = _TS_RE.match(text)
    if m is None:
        return None

    frac = (m.group("frac") or "0")[:6].ljust(6, "0")
    try:
        return datetime.strptime(
            f"{m.group('date')} {m.group('time')}.{frac} {m.group('offset')}",
            "%Y-%m-%d %H:%M:%S.%f %z",
        )
    except ValueError:
        return None


def decode_payload(topic: str, payload: dict, namespace: str = "", timestamp: Optional[datetime] = None) -> Envelope:
    kind = TOPIC_KINDS.get(topic, EventKind.OTHER)
    model = KIND_PAYLOADS.get(kind)

    if model is None:
        return Envelope(topic=topic, kind=kind, payload=payload, namespace=namespace, timestamp=timestamp)

    try:
        decoded = model.model_validate(payload)
    except ValidationError as e:
        raise MalformedEventError(f"invalid {topic} payload: {e.error_count()} error(s)", raw=json.dumps(payload)) from e

    return Envelope(topic=topic, kind=kind, payload=decoded, namespace=namespace, timestamp=timestamp)


def decode_line(line: str) -> Envelope:
    """
    解码一行 ``ctr events`` 输出：

        <date> <time> <offset> <zone> <namespace> <topic> <json>

    Raises
    ------
    MalformedEventError
        行结构不完整、JSON 非法、或 payload 缺少必需字段
    """
    raw = line.strip()
    head, sep, body = raw.partition(" {")
    if not sep:
        raise MalformedEventError("missing JSON payload", raw=raw)

    tokens = head.split()
    if len(tokens) < 2 or not tokens[-1].startswith("/"):
        raise MalformedEventError("missing namespace/topic", raw=raw)

    topic = tokens[-1]
    namespace = tokens[-2]
    timestamp = parse_timestamp(" ".join(tokens[:-2]))

    try:
        payload = json.loads("{" + body)
    except json.JSONDecodeError as e:
        raise MalformedEventError(f"invalid JSON: {e.msg}", raw=raw) from e

    if not isinstance(payload, dict):
        raise MalformedEventError("payload is not an object", raw=raw)

    return decode_payload(topic, payload, namespace=namespace, timestamp=timestamp)
