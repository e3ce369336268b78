# containerd_metrics/ingest/ctr_source.py
from __future__ import annotations

import subprocess
import tempfile
from typing import IO, Iterator, List, Optional

from containerd_metrics.ingest.base import EventSource
from containerd_metrics.utils.errors import IngestError
from containerd_metrics.utils.logger import logs


class CtrEventSource(EventSource):
    """
    Subscribe to containerd through ``ctr events``.

    - 一个子进程 = 一次订阅；close() 终止子进程
    - 子进程在 close() 之前退出（无论 exit code）都视为订阅失败 → IngestError
    - stderr 写入临时文件，退出后读出作为错误信息（不会因管道写满而阻塞）
    """

    def __init__(
        self,
        socket: str,
        namespace: Optional[str] = "k8s.io",
        ctr_binary: str = "ctr",
        filter_namespace: bool = False,
        terminate_timeout: float = 5.0,
        require_timestamp: bool = False,
    ):
        super().__init__(
            namespace=namespace if filter_namespace else None,
            require_timestamp=require_timestamp,
        )
        self.socket = socket
        self.ctr_namespace = namespace
        self.ctr_binary = ctr_binary
        self.terminate_timeout = terminate_timeout

        self._proc: Optional[subprocess.Popen] = None
        self._stderr: Optional[IO[bytes]] = None
        self._closed = False

    def command(self) -> List[str]:
        cmd = [self.ctr_binary, "--address", self.socket]
        if self.ctr_namespace:
            cmd += ["--namespace", self.ctr_namespace]
        cmd.append("events")
        return cmd

    # --------------------------------------------------
    def lines(self) -> Iterator[str]:
        cmd = self.command()
        logs.info(f"[Ingest] subscribing: {' '.join(cmd)}")

        self._stderr = tempfile.TemporaryFile()
        try:
            self._proc = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=self._stderr,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except OSError as e:
            self._close_stderr()
            raise IngestError(f"failed to start {cmd[0]}: {e}") from e

        proc = self._proc
        for line in proc.stdout:
            if self._closed:
                break
            yield line

        ret = proc.wait()
        if self._closed:
            logs.info("[Ingest] subscription closed")
            return

        stderr = self._read_stderr()
        if ret != 0:
            raise IngestError(f"{cmd[0]} events exited with code {ret}: {stderr}")
        raise IngestError(f"{cmd[0]} events stream ended unexpectedly")

    def _read_stderr(self) -> str:
        f = self._stderr
        if f is None:
            return ""
        f.seek(0)
        text = f.read().decode("utf-8", errors="replace").strip()
        self._close_stderr()
        return text

    def _close_stderr(self) -> None:
        if self._stderr is not None:
            self._stderr.close()
            self._stderr = None

    def close(self) -> None:
        self._closed = True

        proc = self._proc
        if proc is None or proc.poll() is not None:
            self._close_stderr()
            return

        proc.terminate()
        try:
            proc.wait(timeout=self.terminate_timeout)
        except subprocess.TimeoutExpired:
            logs.warning(f"[Ingest] {self.ctr_binary} did not exit, killing pid={proc.pid}")
            proc.kill()
            proc.wait()
        self._close_stderr()
