#!filepath: containerd_metrics/__init__.py

from .utils.logger import Logging, logs
from .utils.retry import Retry
from .config.app_config import AppConfig
from .correlation.store import CorrelationStore
from .correlation.recorder import EventRecorder
from .correlation.reconstructor import LayerChainReconstructor, extract_label

__version__ = "0.1.0"

# alias 简化调用
retry = Retry

__all__ = [
    "logs", "Logging",
    "retry",
    "AppConfig",
    "CorrelationStore",
    "EventRecorder",
    "LayerChainReconstructor",
    "extract_label",
]
