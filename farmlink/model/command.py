# farmlink/model/command.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from farmlink.protocol.defs import COMMAND_KEY

COMMAND_NAMES: Tuple[str, ...] = (
    "ESP_RESET",
    "PUMP_ON",
    "PUMP_OFF",
    "GROWLIGHT_ON",
    "GROWLIGHT_OFF",
    "HEATLAMP_ON",
    "HEATLAMP_OFF",
    "FARM_ON",
    "FARM_OFF",
)

COMMAND_LABELS: Tuple[str, ...] = (
    "Reset controller",
    "Pump on",
    "Pump off",
    "Grow light on",
    "Grow light off",
    "Heat lamp on",
    "Heat lamp off",
    "Farm on",
    "Farm off",
)

COMMAND_COUNT = len(COMMAND_NAMES)


@dataclass(frozen=True)
class Command:
    """
    Discrete actuator action.

    The index is clamped into 0..COMMAND_COUNT-1 on construction, so any
    integer yields a valid command (negative -> ESP_RESET, too large -> FARM_OFF).
    """
    index: int

    def __post_init__(self) -> None:
        idx = int(self.index)
        if idx < 0:
            idx = 0
        if idx >= COMMAND_COUNT:
            idx = COMMAND_COUNT - 1
        object.__setattr__(self, "index", idx)

    @classmethod
    def from_name(cls, name: str) -> "Command":
        want = name.strip().upper()
        if want not in COMMAND_NAMES:
            raise ValueError(f"Unknown command '{name}' (known: {', '.join(COMMAND_NAMES)})")
        return cls(COMMAND_NAMES.index(want))

    @classmethod
    def parse(cls, value: str | int) -> "Command":
        """Accept either an index (clamped) or a command name."""
        if isinstance(value, int):
            return cls(value)
        s = str(value).strip()
        try:
            return cls(int(s))
        except ValueError:
            return cls.from_name(s)

    @property
    def name(self) -> str:
        return COMMAND_NAMES[self.index]

    @property
    def label(self) -> str:
        return COMMAND_LABELS[self.index]

    def as_document(self) -> dict:
        return {COMMAND_KEY: self.index}

    def __repr__(self) -> str:
        return f"Command(index={self.index}, name='{self.name}')"
