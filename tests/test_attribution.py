# /// script
# requires-python = ">=3.12"
# dependencies = ["pytest>=7.0", "pydantic>=2.0"]
# ///
"""Tests for the attribution engine.

Validates:
  1. Batting events credit the active pitcher and the batter
  2. Runs split between the previous pitcher (inherited runners) and the current one
  3. Errors and nice plays credit the fielder at that position
  4. Stolen bases credit the batter's own fielding record
  5. Missing identities skip one credit with a warning
  6. Delta helpers cancel exactly
"""

import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest

from attribution import AtBatContext, Credit, apply_credits, attribute, merge, negate
from models import Roster, RosterSlot, Side
from notation import parse
from stats import GameStats


@pytest.fixture
def roster():
    return Roster(
        away=[
            RosterSlot(name="Adams", positions=["SS"]),
            RosterSlot(name="Baker", positions=["CF"]),
            RosterSlot(name="Irwin", positions=["P"]),
        ],
        home=[
            RosterSlot(name="Jones", positions=["SS"]),
            RosterSlot(name="Owens", positions=["3B", "P"]),
            RosterSlot(name="Reed", positions=["P", "3B"]),
        ],
    )


def _context(**kwargs) -> AtBatContext:
    values = {"batting_side": Side.AWAY, "batter": "Adams", "pitcher": "Reed"}
    values.update(kwargs)
    return AtBatContext(**values)


def _by_key(credits: list[Credit]) -> dict[tuple[str, str, str], int]:
    return {(c.table, c.player, c.stat): c.amount for c in credits}


# ---------------------------------------------------------------------------
# 1. Pitcher and batter
# ---------------------------------------------------------------------------

class TestBasicCredits:

    def test_home_run(self, roster):
        credits = _by_key(attribute(parse("HR"), _context(), roster).credits)
        assert credits == {
            ("pitching", "Reed", "batters_faced"): 1,
            ("pitching", "Reed", "hits"): 1,
            ("pitching", "Reed", "home_runs"): 1,
            ("hitting", "Adams", "at_bats"): 1,
            ("hitting", "Adams", "hits"): 1,
            ("hitting", "Adams", "home_runs"): 1,
            ("hitting", "Adams", "total_bases"): 4,
        }

    def test_walk(self, roster):
        credits = _by_key(attribute(parse("BB"), _context(), roster).credits)
        assert credits[("pitching", "Reed", "walks")] == 1
        assert credits[("hitting", "Adams", "walks")] == 1
        assert ("hitting", "Adams", "at_bats") not in credits

    def test_strikeout(self, roster):
        credits = _by_key(attribute(parse("K"), _context(), roster).credits)
        assert credits[("pitching", "Reed", "outs")] == 1
        assert credits[("pitching", "Reed", "strikeouts")] == 1
        assert credits[("hitting", "Adams", "strikeouts")] == 1

    def test_double_play_counts_for_batter(self, roster):
        credits = _by_key(attribute(parse("DP"), _context(), roster).credits)
        assert credits[("pitching", "Reed", "outs")] == 2
        assert credits[("hitting", "Adams", "double_plays")] == 1

    def test_home_team_batter_faces_away_pitcher(self, roster):
        context = AtBatContext(batting_side=Side.HOME, batter="Jones", pitcher="Irwin")
        credits = _by_key(attribute(parse("1B"), context, roster).credits)
        assert credits[("pitching", "Irwin", "hits")] == 1
        assert credits[("hitting", "Jones", "hits")] == 1

    def test_no_zero_credits(self, roster):
        assert all(c.amount for c in attribute(parse("2RBI HR"), _context(), roster).credits)

    @pytest.mark.parametrize("text", ["", "PC2"])
    def test_non_batting_cells_credit_nothing(self, roster, text):
        result = attribute(parse(text), _context(), roster)
        assert result.credits == []
        assert result.inherited_consumed == 0


# ---------------------------------------------------------------------------
# 2. Inherited runners
# ---------------------------------------------------------------------------

class TestInheritedRunners:

    def test_runs_without_inherited_runners(self, roster):
        result = attribute(parse("2RBI HR"), _context(pitcher="Owens"), roster)
        credits = _by_key(result.credits)
        assert credits[("pitching", "Owens", "runs")] == 2
        assert credits[("hitting", "Adams", "rbi")] == 2
        assert result.inherited_consumed == 0

    def test_runs_split_with_inherited_runner(self, roster):
        context = _context(pitcher="Owens", previous_pitcher="Reed", inherited_runners=1)
        result = attribute(parse("2RBI HR"), context, roster)
        credits = _by_key(result.credits)
        assert credits[("pitching", "Reed", "runs")] == 1
        assert credits[("pitching", "Owens", "runs")] == 1
        assert result.inherited_consumed == 1

    def test_all_runs_to_previous_pitcher(self, roster):
        context = _context(pitcher="Owens", previous_pitcher="Reed", inherited_runners=2)
        result = attribute(parse("RBI 1B"), context, roster)
        credits = _by_key(result.credits)
        assert credits[("pitching", "Reed", "runs")] == 1
        assert ("pitching", "Owens", "runs") not in credits
        assert credits[("pitching", "Owens", "hits")] == 1
        assert result.inherited_consumed == 1


# ---------------------------------------------------------------------------
# 3-4. Fielders and stolen bases
# ---------------------------------------------------------------------------

class TestFielding:

    def test_error_credits_fielder_at_position(self, roster):
        credits = _by_key(attribute(parse("1B E6"), _context(), roster).credits)
        assert credits[("fielding", "Jones", "errors")] == 1

    def test_fielder_found_by_current_position(self, roster):
        credits = _by_key(attribute(parse("E1"), _context(pitcher="Owens"), roster).credits)
        assert credits[("fielding", "Owens", "errors")] == 1

    def test_nice_play(self, roster):
        credits = _by_key(attribute(parse("OUT NP6"), _context(), roster).credits)
        assert credits[("fielding", "Jones", "nice_plays")] == 1
        assert credits[("hitting", "Adams", "reached_on_obstruction")] == 1

    def test_missing_fielder_is_skipped(self, roster, caplog):
        with caplog.at_level(logging.WARNING, logger="attribution"):
            result = attribute(parse("E8"), _context(), roster)
        credits = _by_key(result.credits)
        assert not any(key[0] == "fielding" for key in credits)
        assert credits[("hitting", "Adams", "at_bats")] == 1
        assert "CF" in caplog.text

    def test_stolen_base(self, roster):
        credits = _by_key(attribute(parse("SB 1B"), _context(), roster).credits)
        assert credits[("fielding", "Adams", "stolen_bases_allowed")] == 1

    def test_stolen_base_batter_not_on_roster(self, roster, caplog):
        with caplog.at_level(logging.WARNING, logger="attribution"):
            result = attribute(parse("SB"), _context(batter="Stranger"), roster)
        assert not any(c.table == "fielding" for c in result.credits)
        assert "SB" in caplog.text


# ---------------------------------------------------------------------------
# 5. Missing identities
# ---------------------------------------------------------------------------

class TestMissingIdentities:

    def test_no_active_pitcher(self, roster, caplog):
        with caplog.at_level(logging.WARNING, logger="attribution"):
            result = attribute(parse("K"), _context(pitcher=""), roster)
        assert not any(c.table == "pitching" for c in result.credits)
        assert any(c.table == "hitting" for c in result.credits)
        assert "No active home pitcher" in caplog.text

    def test_pitcher_not_on_roster(self, roster):
        result = attribute(parse("K"), _context(pitcher="Stranger"), roster)
        assert not any(c.table == "pitching" for c in result.credits)

    def test_empty_roster_is_not_checked(self):
        credits = _by_key(attribute(parse("K"), _context(pitcher="Anyone")).credits)
        assert credits[("pitching", "Anyone", "strikeouts")] == 1


# ---------------------------------------------------------------------------
# 6. Delta helpers
# ---------------------------------------------------------------------------

class TestDeltaHelpers:

    def test_negate_then_merge_cancels(self, roster):
        credits = attribute(parse("2RBI HR"), _context(), roster).credits
        assert merge([*negate(credits), *credits]) == []

    def test_merge_sums(self):
        a = Credit(table="hitting", player="Adams", stat="hits", amount=1)
        merged = merge([a, a, a.model_copy(update={"stat": "walks"})])
        assert _by_key(merged) == {("hitting", "Adams", "hits"): 2, ("hitting", "Adams", "walks"): 1}

    def test_correction_delta(self, roster):
        old = attribute(parse("1B"), _context(), roster).credits
        new = attribute(parse("HR"), _context(), roster).credits
        delta = _by_key(merge([*negate(old), *new]))
        assert delta == {
            ("pitching", "Reed", "home_runs"): 1,
            ("hitting", "Adams", "home_runs"): 1,
            ("hitting", "Adams", "total_bases"): 3,
        }

    def test_apply_credits(self, roster):
        stats = GameStats()
        apply_credits(stats, attribute(parse("2RBI HR"), _context(), roster).credits)
        assert stats.pitching.get("Reed").runs == 2
        assert stats.hitting.get("Adams").rbi == 2
        assert stats.hitting.get("Adams").total_bases == 4
