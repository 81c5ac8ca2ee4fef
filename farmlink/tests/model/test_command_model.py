from __future__ import annotations

import pytest

from farmlink.model.command import COMMAND_COUNT, COMMAND_NAMES, Command


def test_negative_index_clamps_to_first_command():
    c = Command(-1)
    assert c.index == 0
    assert c.name == "ESP_RESET"
    assert c.as_document() == {"command": 0}


def test_index_past_end_clamps_to_last_command():
    c = Command(9)
    assert c.index == 8
    assert c.name == "FARM_OFF"
    assert c.as_document() == {"command": 8}


def test_in_range_indices_are_kept():
    assert [Command(i).index for i in range(COMMAND_COUNT)] == list(range(COMMAND_COUNT))
    assert Command(3).name == "GROWLIGHT_ON"


def test_from_name_is_case_insensitive():
    assert Command.from_name("pump_on").index == 1
    assert Command.from_name(" HEATLAMP_OFF ").index == 6


def test_from_name_unknown_raises():
    with pytest.raises(ValueError, match="Unknown command"):
        Command.from_name("SPRINKLER_ON")


def test_parse_accepts_index_strings_and_names():
    assert Command.parse("2") == Command(2)
    assert Command.parse("-5") == Command(0)
    assert Command.parse(42).name == COMMAND_NAMES[-1]
    assert Command.parse("farm_on").index == 7


def test_label_and_repr():
    c = Command(1)
    assert c.label == "Pump on"
    assert "PUMP_ON" in repr(c)
