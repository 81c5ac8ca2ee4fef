# farmlink/protocol/telemetry.py
"""
Binary telemetry framing (big-endian, no padding):

    int32    record_count = n
    n times:
        int64    timestamp (epoch seconds)
        float64  channel[0..5]

Decoding is all-or-nothing: a short stream, a negative count or (for
whole-buffer decoding) trailing bytes raise DecodeError and no series is built.
"""
from __future__ import annotations

import struct
from typing import Callable, Iterable, List, Tuple

from farmlink.model.channels import CHANNEL_COUNT
from farmlink.model.telemetry import TelemetryRecord, TelemetrySeries, columns_from_rows
from .errors import DecodeError

COUNT_STRUCT = struct.Struct(">i")
RECORD_STRUCT = struct.Struct(">q" + "d" * CHANNEL_COUNT)

HEADER_SIZE = COUNT_STRUCT.size   # 4
RECORD_SIZE = RECORD_STRUCT.size  # 56

ReadFn = Callable[[int], bytes]


def frame_size(n: int) -> int:
    return HEADER_SIZE + n * RECORD_SIZE


def _parse_count(raw: bytes) -> int:
    (n,) = COUNT_STRUCT.unpack(raw)
    if n < 0:
        raise DecodeError(f"Negative record count {n}")
    return n


def _build_series(timestamps: List[int], rows: List[Tuple[float, ...]]) -> TelemetrySeries:
    return TelemetrySeries(timestamps=tuple(timestamps), channels=columns_from_rows(rows))


def decode_series(buf: bytes) -> TelemetrySeries:
    """Decode a complete response buffer. The buffer must hold exactly one frame."""
    if len(buf) < HEADER_SIZE:
        raise DecodeError(
            f"Telemetry header truncated: {len(buf)} of {HEADER_SIZE} bytes",
            expected=HEADER_SIZE,
            received=len(buf),
        )

    n = _parse_count(buf[:HEADER_SIZE])
    expected = frame_size(n)
    if len(buf) != expected:
        raise DecodeError(
            f"Telemetry length mismatch: count={n} needs {expected} bytes, got {len(buf)}",
            expected=expected,
            received=len(buf),
        )

    timestamps: List[int] = []
    rows: List[Tuple[float, ...]] = []
    for ts, *values in RECORD_STRUCT.iter_unpack(buf[HEADER_SIZE:]):
        timestamps.append(ts)
        rows.append(tuple(values))

    return _build_series(timestamps, rows)


def _read_exact(read: ReadFn, size: int, what: str) -> bytes:
    raw = read(size)
    if len(raw) != size:
        raise DecodeError(
            f"Short read on {what}: {len(raw)} of {size} bytes",
            expected=size,
            received=len(raw),
        )
    return raw


def read_series(read: ReadFn) -> TelemetrySeries:
    """
    Consume exactly one frame from a blocking reader.

    `read(size)` must return `size` bytes, or fewer only at end of stream.
    Records are read one at a time, so an inflated count ends in a short
    read rather than a large allocation.
    """
    n = _parse_count(_read_exact(read, HEADER_SIZE, "record count"))

    timestamps: List[int] = []
    rows: List[Tuple[float, ...]] = []
    for i in range(n):
        raw = _read_exact(read, RECORD_SIZE, f"record {i + 1}/{n}")
        ts, *values = RECORD_STRUCT.unpack(raw)
        timestamps.append(ts)
        rows.append(tuple(values))

    return _build_series(timestamps, rows)


def encode_series(records: Iterable[TelemetryRecord]) -> bytes:
    """Inverse of decode_series (device simulators and tests)."""
    records = list(records)
    out = bytearray(COUNT_STRUCT.pack(len(records)))
    for r in records:
        out += RECORD_STRUCT.pack(r.timestamp, *r.values)
    return bytes(out)
