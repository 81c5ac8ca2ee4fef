# farmlink/app/config.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class FarmLinkConfig:
    """
    Run configuration. Fields left as None fall back to the farms file defaults.
    """
    farms_file: str
    farm_id: int
    poll_period_s: Optional[float] = None
    max_workers: Optional[int] = None
    connect_timeout_s: Optional[float] = None
    trace_path: Optional[str] = None
    state_dir: Optional[str] = None
