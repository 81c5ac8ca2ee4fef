# farmlink/model/endpoint.py
from __future__ import annotations

from dataclasses import dataclass

from farmlink.protocol.defs import DEFAULT_DEVICE_HOST


@dataclass(frozen=True)
class Endpoint:
    """
    Static description of one reachable farm.

    Contains only addressing metadata, no runtime state. Operations carry
    their Endpoint explicitly; there is no process-wide "current farm".

    Attributes:
        farm_id: Numeric farm id (as listed in the farms file).
        label: Human-readable label for display/logging.
        host: Device/gateway address (IP or DNS name).
        driver: Transport driver key used by the runtime registry.
    """
    farm_id: int
    label: str
    host: str = DEFAULT_DEVICE_HOST
    driver: str = "tcp"

    def as_dict(self) -> dict:
        return {
            "farm_id": self.farm_id,
            "label": self.label,
            "host": self.host,
            "driver": self.driver,
        }

    def __str__(self) -> str:
        return f"{self.label} ({self.host})"
