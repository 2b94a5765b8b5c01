# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Absolute-state recompute: rebuild a game's stats from its score sheet.

Starts from zero stats, an empty game state and the starting roster, then
replays every score sheet entry in order through the same attribution core
the incremental scorer uses.  Empty cells and pitching-change notation in
at-bat cells produce nothing.  The returned state carries a fresh shadow
record for every scored cell, so incremental editing can carry on from it.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

from attribution import apply_credits, attribute
from game_state import CellRecord, GameState, apply_pitching_entry, fielders_for
from models import AtBatEntry, HalfInningEntry, PitchingChangeEntry, Roster, Scoresheet
from notation import parse
from stats import GameStats

logger = logging.getLogger(__name__)


class Recomputed(NamedTuple):
    state: GameState
    stats: GameStats
    roster: Roster


def recompute(sheet: Scoresheet, game_id: str = "") -> Recomputed:
    """Replay *sheet* from scratch.

    Args:
        sheet: Score sheet to replay.  ``sheet.roster`` may carry position
            history from earlier changes; replay starts from each player's
            first position and re-applies the pitching changes on the sheet.
        game_id: Copied onto the returned state.

    Returns:
        ``(state, stats, roster)`` after the last entry.
    """
    state = GameState(game_id=game_id)
    stats = GameStats()
    roster = sheet.roster.at_start()
    scored = 0

    for entry in sheet.entries:
        if isinstance(entry, PitchingChangeEntry):
            roster = apply_pitching_entry(state, roster, entry)
            continue
        if isinstance(entry, HalfInningEntry):
            state.end_half_inning()
            continue
        if not isinstance(entry, AtBatEntry):
            continue

        event = parse(entry.text)
        if event.batters_faced == 0:
            continue
        if entry.cell in state.cells:
            logger.warning("Cell %s appears twice on the score sheet; later entry ignored", entry.cell)
            continue

        state.begin_at_bat(entry.side)
        context = state.context_for(entry.side, entry.batter)
        result = attribute(event, context, roster)
        apply_credits(stats, result.credits)
        state.consume_inherited(result.inherited_consumed)
        state.cells[entry.cell] = CellRecord(
            text=entry.text, side=entry.side, context=context,
            credits=result.credits, inherited_consumed=result.inherited_consumed,
            fielders=fielders_for(roster, entry.side),
        )
        scored += 1

    logger.info("Recomputed %s: %d at-bat(s) from %d entries", game_id or "game", scored, len(sheet.entries))
    return Recomputed(state, stats, roster)
