# containerd_metrics/correlation/store.py
from __future__ import annotations

import time
from typing import Callable, Dict, Optional

from containerd_metrics.correlation.models import (
    CompletedPreparation,
    PreparationRecord,
    StartResult,
    SweepResult,
)


class CorrelationStore:
    """
    CorrelationStore

    职责：
      - 持有三个映射：in-flight prepare（by key）、completed（by key / by name）
      - 只做 insert / lookup / eviction，不打日志，不做分类
      - 无锁：只允许被单一消费循环访问

    Parameters
    ----------
    clock : callable
        单调时钟（秒），测试中可注入假时钟
    pending_ttl : float | None
        in-flight 记录最大存活秒数，None 表示永久保留
    completed_ttl : float | None
        completed 记录按 name 可查询的最大秒数，None 表示永久保留
    drop_start_on_commit : bool
        匹配成功后是否移除 in-flight 记录
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.perf_counter,
        pending_ttl: Optional[float] = None,
        completed_ttl: Optional[float] = None,
        drop_start_on_commit: bool = False,
    ):
        self._clock = clock
        self.pending_ttl = pending_ttl
        self.completed_ttl = completed_ttl
        self.drop_start_on_commit = drop_start_on_commit

        self._pending: Dict[str, PreparationRecord] = {}
        self._completed_by_key: Dict[str, CompletedPreparation] = {}
        self._completed_by_name: Dict[str, CompletedPreparation] = {}

    def now(self) -> float:
        return self._clock()

    # --------------------------------------------------
    # write
    # --------------------------------------------------
    def record_start(self, key: str, parent_key: str = "") -> StartResult:
        # last writer wins
        replaced = key in self._pending
        record = PreparationRecord(key=key, start_time=self._clock(), parent_key=parent_key)
        self._pending[key] = record
        return StartResult(record=record, replaced=replaced)

    def record_completion(self, key: str, name: str) -> Optional[CompletedPreparation]:
        prep = self._pending.get(key)
        if prep is None:
            return None

        now = self._clock()
        completed = CompletedPreparation(
            key=key,
            name=name,
            parent_name=prep.parent_key,
            duration=now - prep.start_time,
            completed_at=now,
        )
        self._completed_by_key[key] = completed
        self._completed_by_name[name] = completed

        if self.drop_start_on_commit:
            del self._pending[key]

        return completed

    # --------------------------------------------------
    # read
    # --------------------------------------------------
    def lookup_start(self, key: str) -> Optional[PreparationRecord]:
        return self._pending.get(key)

    def lookup_by_name(self, name: str) -> Optional[CompletedPreparation]:
        if not name:
            return None
        return self._completed_by_name.get(name)

    def lookup_by_key(self, key: str) -> Optional[CompletedPreparation]:
        return self._completed_by_key.get(key)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def completed_count(self) -> int:
        return len(self._completed_by_name)

    # --------------------------------------------------
    # eviction
    # --------------------------------------------------
    def sweep(self, now: Optional[float] = None) -> SweepResult:
        """
        Drop records older than their ttl.

        Both completed indexes are swept on their own; completed_evicted
        counts distinct records removed.
        """
        if now is None:
            now = self._clock()

        pending_evicted = 0
        if self.pending_ttl is not None:
            stale = [
                key for key, rec in self._pending.items()
                if now - rec.start_time > self.pending_ttl
            ]
            for key in stale:
                del self._pending[key]
            pending_evicted = len(stale)

        completed_evicted = 0
        if self.completed_ttl is not None:
            evicted_ids = set()
            for index in (self._completed_by_key, self._completed_by_name):
                stale_completed = [
                    (ident, c) for ident, c in index.items()
                    if now - c.completed_at > self.completed_ttl
                ]
                for ident, c in stale_completed:
                    del index[ident]
                    evicted_ids.add(id(c))
            completed_evicted = len(evicted_ids)

        return SweepResult(pending_evicted=pending_evicted, completed_evicted=completed_evicted)

    def clear(self) -> None:
        self._pending.clear()
        self._completed_by_key.clear()
        self._completed_by_name.clear()
