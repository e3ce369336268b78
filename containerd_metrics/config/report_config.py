# containerd_metrics/config/report_config.py
from typing import Optional

from pydantic import BaseModel


class ReportConfig(BaseModel):
    log: bool = True
    table: bool = False
    jsonl_path: Optional[str] = None
