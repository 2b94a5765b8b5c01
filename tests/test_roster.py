# /// script
# requires-python = ">=3.12"
# dependencies = ["pytest>=7.0", "pydantic>=2.0"]
# ///
"""Tests for roster lookups and position history.

Validates:
  1. Position history strings split, read and append correctly
  2. RosterSlot accepts a history string or a list
  3. Name lookups are exact on trimmed names; position lookups ignore case
  4. Pitching change swaps the reliever to P and the old pitcher to the vacated spot
  5. Missing players and re-entry are logged, never raised
"""

import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest

from models import Position, Roster, RosterSlot, Side
from roster import (
    append_position,
    current_position,
    find_by_name,
    find_by_position,
    position_history,
    swap_pitcher,
)


@pytest.fixture
def home_slots():
    return [
        RosterSlot(name="Jones", positions=["SS"]),
        RosterSlot(name="Owens", positions=["3B"]),
        RosterSlot(name="Reed", positions=["P"]),
    ]


# ---------------------------------------------------------------------------
# 1-2. Position history
# ---------------------------------------------------------------------------

class TestPositionHistory:

    def test_split(self):
        assert position_history("2B / P / SS") == ["2B", "P", "SS"]
        assert position_history("") == []
        assert position_history(None) == []

    def test_current_position_is_rightmost(self):
        assert current_position("2B / P / SS") == "SS"
        assert current_position("C") == "C"
        assert current_position("") == ""

    def test_append(self):
        assert append_position("SS", "P") == "SS / P"
        assert append_position("", "C") == "C"

    def test_append_same_position_is_a_no_op(self):
        assert append_position("SS / P", "P") == "SS / P"

    def test_slot_from_history_string(self):
        slot = RosterSlot(name=" Adams ", positions="SS / P")
        assert slot.name == "Adams"
        assert slot.positions == ["SS", "P"]
        assert slot.starting_position == "SS"
        assert slot.current_position == "P"
        assert slot.history == "SS / P"

    def test_from_history(self):
        assert RosterSlot.from_history("Adams", "CF").positions == ["CF"]
        assert RosterSlot.from_history("Adams").positions == []

    def test_roster_at_start(self):
        roster = Roster(home=[RosterSlot(name="Reed", positions="P / 3B")])
        assert roster.at_start().home[0].positions == ["P"]
        assert roster.home[0].positions == ["P", "3B"]


# ---------------------------------------------------------------------------
# 3. Lookups
# ---------------------------------------------------------------------------

class TestLookups:

    def test_find_by_name(self, home_slots):
        assert find_by_name(home_slots, "Owens").name == "Owens"
        assert find_by_name(home_slots, "  Owens ").name == "Owens"

    def test_find_by_name_is_exact(self, home_slots):
        assert find_by_name(home_slots, "owens") is None
        assert find_by_name(home_slots, "") is None
        assert find_by_name(home_slots, None) is None

    def test_find_by_position(self, home_slots):
        assert find_by_position(home_slots, Position.SS).name == "Jones"
        assert find_by_position(home_slots, "ss").name == "Jones"
        assert find_by_position(home_slots, "3b").name == "Owens"

    def test_find_by_position_missing(self, home_slots):
        assert find_by_position(home_slots, Position.CF) is None
        assert find_by_position(home_slots, None) is None

    def test_roster_slots_by_side(self, home_slots):
        roster = Roster(home=home_slots)
        assert roster.slots(Side.HOME) == home_slots
        assert roster.slots(Side.AWAY) == []


# ---------------------------------------------------------------------------
# 4-5. Pitcher swap
# ---------------------------------------------------------------------------

class TestSwapPitcher:

    def test_swap(self, home_slots):
        updated = swap_pitcher(home_slots, "Reed", "Owens")
        assert find_by_name(updated, "Owens").positions == ["3B", "P"]
        assert find_by_name(updated, "Reed").positions == ["P", "3B"]
        assert find_by_name(updated, "Jones").positions == ["SS"]

    def test_input_not_modified(self, home_slots):
        swap_pitcher(home_slots, "Reed", "Owens")
        assert home_slots[1].positions == ["3B"]
        assert home_slots[2].positions == ["P"]

    def test_unknown_reliever_leaves_positions(self, home_slots, caplog):
        with caplog.at_level(logging.WARNING, logger="roster"):
            updated = swap_pitcher(home_slots, "Reed", "Nobody")
        assert updated == home_slots
        assert "Nobody" in caplog.text

    def test_unknown_departing_pitcher_moves_only_reliever(self, home_slots, caplog):
        with caplog.at_level(logging.WARNING, logger="roster"):
            updated = swap_pitcher(home_slots, "Ghost", "Owens")
        assert find_by_name(updated, "Owens").current_position == "P"
        assert find_by_name(updated, "Reed").positions == ["P"]
        assert "Ghost" in caplog.text

    def test_reentry_is_allowed_with_warning(self, home_slots, caplog):
        once = swap_pitcher(home_slots, "Reed", "Owens")
        with caplog.at_level(logging.WARNING, logger="roster"):
            twice = swap_pitcher(once, "Owens", "Reed")
        assert find_by_name(twice, "Reed").positions == ["P", "3B", "P"]
        assert find_by_name(twice, "Owens").positions == ["3B", "P", "3B"]
        assert "already pitched" in caplog.text

    def test_same_pitcher_is_a_no_op(self, home_slots):
        assert swap_pitcher(home_slots, "Reed", "Reed") == home_slots
