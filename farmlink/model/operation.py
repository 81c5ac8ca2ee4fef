# farmlink/model/operation.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from farmlink.protocol.defs import PORTS
from .command import Command
from .endpoint import Endpoint
from .telemetry import TimeRange

if TYPE_CHECKING:
    from farmlink.runtime.state import OperationResult

# Generic structured tree exchanged with the configuration editor.
Document = Dict[str, Any]

ResultCallback = Callable[["OperationResult"], None]


class OperationKind(str, Enum):
    FETCH_TELEMETRY = "fetch_telemetry"
    APPLY_CONFIG = "apply_config"
    SEND_COMMAND = "send_command"

    @property
    def port(self) -> int:
        return PORTS[self.value]

    @property
    def wants_response(self) -> bool:
        return self is OperationKind.FETCH_TELEMETRY


@dataclass(frozen=True)
class Operation:
    """
    One-shot request to a farm.

    kind selects the destination port, payload is the document sent on the
    wire, on_result (optional) is called exactly once with the outcome.
    """
    kind: OperationKind
    payload: Document
    endpoint: Endpoint
    on_result: Optional[ResultCallback] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", OperationKind(self.kind))
        if self.payload is None:
            raise ValueError(f"{self.kind.value} operation requires a payload document")

    @classmethod
    def fetch_telemetry(
        cls,
        endpoint: Endpoint,
        time_range: TimeRange,
        *,
        on_result: Optional[ResultCallback] = None,
    ) -> "Operation":
        return cls(OperationKind.FETCH_TELEMETRY, time_range.as_document(), endpoint, on_result)

    @classmethod
    def apply_config(
        cls,
        endpoint: Endpoint,
        document: Document,
        *,
        on_result: Optional[ResultCallback] = None,
    ) -> "Operation":
        return cls(OperationKind.APPLY_CONFIG, document, endpoint, on_result)

    @classmethod
    def send_command(
        cls,
        endpoint: Endpoint,
        command: Command,
        *,
        on_result: Optional[ResultCallback] = None,
    ) -> "Operation":
        return cls(OperationKind.SEND_COMMAND, command.as_document(), endpoint, on_result)
