# farmlink/protocol/defs.py
from __future__ import annotations

from typing import Dict

# Public address of the farm gateway the legacy app was built against.
DEFAULT_DEVICE_HOST = "103.137.250.154"

PORT_FETCH_TELEMETRY = 1488
PORT_APPLY_CONFIG = 1489
PORT_SEND_COMMAND = 1490

PORTS: Dict[str, int] = {
    "fetch_telemetry": PORT_FETCH_TELEMETRY,
    "apply_config": PORT_APPLY_CONFIG,
    "send_command": PORT_SEND_COMMAND,
}

# Live telemetry views re-request every 10 s.
DEFAULT_POLL_PERIOD_S = 10.0

REQUEST_TERMINATOR = b"\n"
REQUEST_ENCODING = "utf-8"

# Request document keys understood by the device services
TIME_FROM_KEY = "unix_time_from"
TIME_TO_KEY = "unix_time_to"
COMMAND_KEY = "command"
