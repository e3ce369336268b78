#!filepath: containerd_metrics/config/app_config.py
import os

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from containerd_metrics.utils.errors import UserInputError

from .correlation_config import CorrelationConfig
from .ingest_config import IngestConfig
from .log_config import LogConfig
from .report_config import ReportConfig

# 环境变量 → ingest 字段（.env 中同名变量同样生效）
_INGEST_ENV_OVERRIDES = {
    "CONTAINERD_SOCKET": "socket",
    "CONTAINERD_NAMESPACE": "namespace",
    "CTR_BINARY": "ctr_binary",
}


def default_config_path() -> str:
    """
    返回包内默认配置文件:
    containerd_metrics/config/app_config.py → containerd_metrics/config/base.yml
    """
    return os.path.join(os.path.dirname(os.path.abspath(__file__)), "base.yml")


class AppConfig(BaseModel):
    log: LogConfig = Field(default_factory=LogConfig)
    ingest: IngestConfig = Field(default_factory=IngestConfig)
    correlation: CorrelationConfig = Field(default_factory=CorrelationConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)

    @classmethod
    def load(cls, path: str | None = None, env_file: str | None = ".env") -> "AppConfig":
        """
        加载 YAML 配置 + .env
        - 默认使用包内 config/base.yml
        - .env 不存在时静默跳过；已存在的环境变量优先
        """
        if env_file:
            load_dotenv(env_file)

        if path is None:
            path = default_config_path()

        if not os.path.exists(path):
            raise UserInputError(f"Config file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        if not isinstance(raw, dict):
            raise UserInputError(f"Config file must contain a mapping: {path}")

        ingest = dict(raw.get("ingest") or {})
        for env_name, field_name in _INGEST_ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value:
                ingest[field_name] = value
        raw["ingest"] = ingest

        try:
            return cls(**raw)
        except ValidationError as e:
            raise UserInputError(f"Invalid config {path}: {e}") from e
