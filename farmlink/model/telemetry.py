# farmlink/model/telemetry.py
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Optional, Sequence, Tuple

from farmlink.protocol.defs import TIME_FROM_KEY, TIME_TO_KEY
from .channels import CHANNEL_COUNT, CHANNEL_NAMES, channel_index


@dataclass(frozen=True)
class TelemetryRecord:
    """One sample: epoch-seconds timestamp + six channel readings in wire order."""
    timestamp: int
    values: Tuple[float, ...]

    def __post_init__(self) -> None:
        values = tuple(float(v) for v in self.values)
        if len(values) != CHANNEL_COUNT:
            raise ValueError(f"TelemetryRecord needs {CHANNEL_COUNT} values, got {len(values)}")
        object.__setattr__(self, "timestamp", int(self.timestamp))
        object.__setattr__(self, "values", values)

    def as_dict(self) -> dict:
        out: Dict[str, float | int] = {"timestamp": self.timestamp}
        out.update(zip(CHANNEL_NAMES, self.values))
        return out


@dataclass(frozen=True)
class TelemetrySeries:
    """
    Columnar result of one telemetry fetch.

    timestamps: n epoch-second timestamps
    channels:   one tuple of n values per channel, index-aligned with timestamps

    Instances are immutable snapshots; every fetch produces a fresh one.
    """
    timestamps: Tuple[int, ...]
    channels: Tuple[Tuple[float, ...], ...]

    def __post_init__(self) -> None:
        timestamps = tuple(int(t) for t in self.timestamps)
        channels = tuple(tuple(float(v) for v in col) for col in self.channels)

        if len(channels) != CHANNEL_COUNT:
            raise ValueError(f"TelemetrySeries needs {CHANNEL_COUNT} channels, got {len(channels)}")
        n = len(timestamps)
        for name, col in zip(CHANNEL_NAMES, channels):
            if len(col) != n:
                raise ValueError(f"Channel '{name}' has {len(col)} values, expected {n}")

        object.__setattr__(self, "timestamps", timestamps)
        object.__setattr__(self, "channels", channels)

    @classmethod
    def empty(cls) -> "TelemetrySeries":
        return cls(timestamps=(), channels=((),) * CHANNEL_COUNT)

    @classmethod
    def from_records(cls, records: Iterable[TelemetryRecord]) -> "TelemetrySeries":
        records = list(records)
        return cls(
            timestamps=tuple(r.timestamp for r in records),
            channels=tuple(tuple(r.values[i] for r in records) for i in range(CHANNEL_COUNT)),
        )

    @property
    def n(self) -> int:
        return len(self.timestamps)

    def __len__(self) -> int:
        return self.n

    def values(self, channel: str | int) -> Tuple[float, ...]:
        """Values of one channel, by name or wire index."""
        return self.channels[channel_index(channel)]

    def record(self, i: int) -> TelemetryRecord:
        return TelemetryRecord(self.timestamps[i], tuple(col[i] for col in self.channels))

    def records(self) -> Iterator[TelemetryRecord]:
        for i in range(self.n):
            yield self.record(i)

    def latest(self) -> Optional[TelemetryRecord]:
        if not self.n:
            return None
        return self.record(self.n - 1)

    def as_dict(self) -> dict:
        return {
            "n": self.n,
            "timestamps": list(self.timestamps),
            "channels": {name: list(col) for name, col in zip(CHANNEL_NAMES, self.channels)},
        }


@dataclass(frozen=True)
class TimeRange:
    """Inclusive UNIX-seconds window used as the telemetry request filter."""
    start: int
    end: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", int(self.start))
        object.__setattr__(self, "end", int(self.end))
        if self.start > self.end:
            raise ValueError(f"TimeRange start {self.start} is after end {self.end}")

    @classmethod
    def last(cls, seconds: float, *, now: Optional[float] = None) -> "TimeRange":
        end = int(time.time() if now is None else now)
        return cls(start=end - int(seconds), end=end)

    def as_document(self) -> dict:
        return {TIME_FROM_KEY: self.start, TIME_TO_KEY: self.end}


def columns_from_rows(rows: Sequence[Sequence[float]]) -> Tuple[Tuple[float, ...], ...]:
    """Transpose per-record value rows into per-channel columns."""
    return tuple(tuple(row[i] for row in rows) for i in range(CHANNEL_COUNT))
