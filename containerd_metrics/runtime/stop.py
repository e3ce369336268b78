# containerd_metrics/runtime/stop.py
from __future__ import annotations

import signal
import threading
from typing import Callable, List, Sequence

from containerd_metrics.utils.logger import logs


class StopToken:
    """
    协作式取消信号。

    set() 之后：
      - 事件循环在处理下一条事件前退出
      - 已注册的回调（如 source.close）被依次调用
    """

    def __init__(self):
        self._event = threading.Event()
        self._callbacks: List[Callable[[], None]] = []

    def on_stop(self, callback: Callable[[], None]) -> None:
        if self._event.is_set():
            callback()
            return
        self._callbacks.append(callback)

    def set(self) -> None:
        if self._event.is_set():
            return
        self._event.set()
        callbacks, self._callbacks = self._callbacks, []
        for cb in callbacks:
            cb()

    def is_set(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        return self._event.wait(timeout)


def install_signal_handlers(
    token: StopToken,
    signals: Sequence[signal.Signals] = (signal.SIGINT, signal.SIGTERM),
) -> Callable[[], None]:
    """
    SIGINT / SIGTERM → token.set()

    Returns a function restoring the previous handlers.
    """
    previous = {}

    def _handler(signum, frame):
        logs.info(f"[Runtime] received {signal.Signals(signum).name}, stopping")
        token.set()

    for sig in signals:
        previous[sig] = signal.signal(sig, _handler)

    def restore() -> None:
        for sig, handler in previous.items():
            signal.signal(sig, handler)

    return restore
