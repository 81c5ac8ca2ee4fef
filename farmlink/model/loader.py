# farmlink/model/loader.py
from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from farmlink.protocol.defs import DEFAULT_DEVICE_HOST, DEFAULT_POLL_PERIOD_S
from .endpoint import Endpoint


class EndpointLoader:
    """
    Loads the client farms file (YAML) into Endpoint objects + client defaults.

    Expected shape:

        defaults:
          poll_period_s: 10.0
          max_workers: 4
          connect_timeout_s: null
        farms:
          1:
            label: farm001
            host: 103.137.250.154
            driver: tcp          # optional

    After calling load(), exposes:
        self.endpoints : dict[int, Endpoint]
        self.defaults  : dict[str, Any]
        self.file_hash : sha256 of the file read
    """

    DEFAULTS: Dict[str, Any] = {
        "poll_period_s": DEFAULT_POLL_PERIOD_S,
        "max_workers": 4,
        "connect_timeout_s": None,
    }

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.endpoints: Dict[int, Endpoint] = {}
        self.defaults: Dict[str, Any] = dict(self.DEFAULTS)
        self.file_hash: Optional[str] = None

    def _load_yaml(self) -> dict:
        if not self.path.exists():
            raise FileNotFoundError(f"Missing farms file: {self.path}")

        raw = self.path.read_bytes()
        self.file_hash = hashlib.sha256(raw).hexdigest()

        data = yaml.safe_load(raw.decode("utf-8")) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{self.path.name} must contain a mapping at the root")
        return data

    def load(self) -> None:
        self.endpoints.clear()
        self.defaults = dict(self.DEFAULTS)
        data = self._load_yaml()

        self._load_defaults(data.get("defaults") or {})
        self._load_farms(data.get("farms"))

    def _load_defaults(self, defaults: Any) -> None:
        if not isinstance(defaults, dict):
            raise ValueError("'defaults' must be a mapping")

        for key, value in defaults.items():
            if key not in self.DEFAULTS:
                raise ValueError(f"Unknown default '{key}' (valid: {sorted(self.DEFAULTS)})")
            self.defaults[key] = value

        period = self.defaults["poll_period_s"]
        if isinstance(period, bool) or not isinstance(period, (int, float)) or period <= 0:
            raise ValueError(f"poll_period_s must be a positive number (got {period!r})")
        self.defaults["poll_period_s"] = float(period)

        workers = self.defaults["max_workers"]
        if isinstance(workers, bool) or not isinstance(workers, int) or workers < 1:
            raise ValueError(f"max_workers must be a positive integer (got {workers!r})")

        timeout = self.defaults["connect_timeout_s"]
        if timeout is not None:
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
                raise ValueError(f"connect_timeout_s must be positive or null (got {timeout!r})")
            self.defaults["connect_timeout_s"] = float(timeout)

    def _load_farms(self, farms: Any) -> None:
        if not isinstance(farms, dict):
            raise ValueError(f"{self.path.name} is missing 'farms' root node")

        for fid_raw, finfo in farms.items():
            fid = int(fid_raw)
            if not isinstance(finfo, dict):
                raise ValueError(f"Farm {fid} entry must be a mapping")

            label = finfo.get("label") or f"farm{fid:03d}"
            host = finfo.get("host", DEFAULT_DEVICE_HOST)
            if not host:
                raise ValueError(f"Farm {fid} has an empty 'host'")

            self.endpoints[fid] = Endpoint(
                farm_id=fid,
                label=str(label),
                host=str(host),
                driver=str(finfo.get("driver", "tcp")),
            )

    def get_endpoint(self, farm_id: int) -> Optional[Endpoint]:
        return self.endpoints.get(int(farm_id))
