# farmlink/model/channels.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass(frozen=True)
class Channel:
    """One telemetry channel, in wire order."""
    index: int
    name: str
    label: str


CHANNELS: Tuple[Channel, ...] = (
    Channel(0, "temperature_DHT22", "Temperature (DHT22)"),
    Channel(1, "temperature_DS18B20", "Temperature (DS18B20)"),
    Channel(2, "humidity", "Humidity"),
    Channel(3, "water_level", "Water level"),
    Channel(4, "soil_moisture", "Soil moisture"),
    Channel(5, "light_intensity", "Light intensity"),
)

CHANNEL_NAMES: Tuple[str, ...] = tuple(ch.name for ch in CHANNELS)
CHANNEL_COUNT = len(CHANNELS)

_BY_NAME: Dict[str, Channel] = {ch.name.lower(): ch for ch in CHANNELS}


def channel_index(name_or_index: str | int) -> int:
    """Resolve a channel name (case-insensitive) or index to its wire index."""
    if isinstance(name_or_index, int) and not isinstance(name_or_index, bool):
        if not 0 <= name_or_index < CHANNEL_COUNT:
            raise IndexError(f"Channel index {name_or_index} out of range 0..{CHANNEL_COUNT - 1}")
        return name_or_index

    ch = _BY_NAME.get(str(name_or_index).strip().lower())
    if ch is None:
        raise KeyError(f"Unknown channel '{name_or_index}' (known: {', '.join(CHANNEL_NAMES)})")
    return ch.index
