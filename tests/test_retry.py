#!filepath: tests/test_retry.py
import pytest

from containerd_metrics import retry
from containerd_metrics.utils.errors import IngestError


def test_retry_success_without_retry():
    """重试未触发：第一次运行成功"""
    call_count = {"n": 0}

    @retry.decorator(max_attempts=3)
    def func():
        call_count["n"] += 1
        return "ok"

    assert func() == "ok"
    assert call_count["n"] == 1


def test_retry_success_after_failures(monkeypatch):
    """订阅失败 2 次后成功"""
    monkeypatch.setattr("time.sleep", lambda t: None)
    call_count = {"n": 0}

    @retry.decorator(max_attempts=5, delay=0.01, backoff=1)
    def func():
        call_count["n"] += 1
        if call_count["n"] < 3:
            raise IngestError("socket gone")
        return "success"

    assert func() == "success"
    assert call_count["n"] == 3


def test_retry_raises_after_max_attempts(monkeypatch):
    monkeypatch.setattr("time.sleep", lambda t: None)
    call_count = {"n": 0}

    @retry.decorator(max_attempts=3, delay=0.01)
    def func():
        call_count["n"] += 1
        raise IngestError("socket gone")

    with pytest.raises(IngestError):
        func()

    assert call_count["n"] == 3


def test_retry_does_not_catch_other_exceptions():
    """默认只重试 IngestError，其他异常直接抛出"""
    call_count = {"n": 0}

    @retry.decorator(max_attempts=3)
    def func():
        call_count["n"] += 1
        raise ValueError("bug, not a transport error")

    with pytest.raises(ValueError):
        func()

    assert call_count["n"] == 1


def test_exponential_backoff(monkeypatch):
    sleep_calls = []
    monkeypatch.setattr("time.sleep", lambda t: sleep_calls.append(t))

    def func():
        raise IngestError("fail")

    with pytest.raises(IngestError):
        retry.run(func, max_attempts=4, delay=1, backoff=2, jitter=False)

    # max_attempts=4 → sleep 3 次: 1, 2, 4
    assert sleep_calls == [1, 2, 4]
