# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Incremental scoring: one cell edit at a time.

Every at-bat cell that has produced stats has a shadow :class:`CellRecord`
holding the text last scored, the context it was scored in and the credits it
produced.  An edit computes ``negate(old credits) + new credits`` and applies
only that delta, so typing ``K`` and then clearing the cell nets to zero.

Corrections reuse the context captured when the cell was first scored (the
pitcher who was in, inherited runners on base, who was fielding where), not
whoever is on the field now.  A correction that changes how many inherited
runners the cell scored re-runs the cells scored after it against the same
runners, so the previous pitcher is never charged more runs than they left on
base.
"""

from __future__ import annotations

import logging
from typing import Literal, Optional

from pydantic import BaseModel, Field

import config
from attribution import AtBatContext, Attribution, Credit, apply_credits, attribute, merge, negate
from game_state import CellRecord, GameState, apply_pitching_entry, fielders_for
from models import HalfInningEntry, PitchingChangeEntry, Roster, Scoresheet, Side
from notation import parse
from stats import GameStats

logger = logging.getLogger(__name__)

PasteLevel = Literal["ok", "caution", "danger"]


# ---------------------------------------------------------------------------
# Edit payloads and results
# ---------------------------------------------------------------------------

class CellEdit(BaseModel):
    cell: str = Field(min_length=1)
    side: Side
    batter: str = ""
    text: str = ""


class CellUpdate(BaseModel):
    """What one edit changed."""
    cell: str
    old_text: str = ""
    new_text: str = ""
    delta: list[Credit] = Field(default_factory=list)
    half_inning_ended: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.delta)


def paste_level(count: int, caution: Optional[int] = None, danger: Optional[int] = None) -> PasteLevel:
    """Classify a batch of *count* cell edits against the paste thresholds."""
    default_caution, default_danger = config.get_paste_thresholds()
    caution = default_caution if caution is None else caution
    danger = default_danger if danger is None else danger
    if count > danger:
        return "danger"
    if count > caution:
        return "caution"
    return "ok"


# ---------------------------------------------------------------------------
# Scorer
# ---------------------------------------------------------------------------

class IncrementalScorer:
    """Applies edits to one game's stats, state and score sheet mirror."""

    def __init__(
        self,
        state: Optional[GameState] = None,
        stats: Optional[GameStats] = None,
        sheet: Optional[Scoresheet] = None,
    ) -> None:
        self.state = state or GameState()
        self.stats = stats or GameStats()
        self.sheet = sheet or Scoresheet()

    @classmethod
    def replay(cls, sheet: Scoresheet, game_id: str = "") -> IncrementalScorer:
        """Feed *sheet* through a fresh scorer one entry at a time, as if typed live."""
        scorer = cls(state=GameState(game_id=game_id),
                     sheet=Scoresheet(roster=sheet.roster.at_start()))
        for entry in sheet.entries:
            if isinstance(entry, PitchingChangeEntry):
                if entry.text.strip():
                    scorer.change_pitcher(entry.side, entry.pitcher, entry.text)
                else:
                    scorer.set_pitcher(entry.side, entry.pitcher)
            elif isinstance(entry, HalfInningEntry):
                scorer.end_half_inning()
            else:
                scorer.record_at_bat(entry.cell, entry.side, entry.batter, entry.text)
        return scorer

    @property
    def roster(self) -> Roster:
        return self.sheet.roster

    @roster.setter
    def roster(self, roster: Roster) -> None:
        self.sheet.roster = roster

    # -- at-bats -------------------------------------------------------------

    def record_at_bat(self, cell: str, side: Side, batter: str = "", text: str = "") -> CellUpdate:
        """Score (or re-score, or clear) one at-bat cell.

        Args:
            cell: Caller's address for the cell.
            side: Batting team.
            batter: Batter's name.  May be blank on a correction, in which
                case the name recorded for the cell is kept.
            text: New cell content.  Blank clears the cell.

        Returns:
            A :class:`CellUpdate` with the signed delta that was applied.
        """
        side = Side(side)
        text = "" if text is None else str(text)
        record = self.state.cells.get(cell)
        entry = self.sheet.find_cell(cell)
        old_text = record.text if record is not None else (entry.text if entry is not None else "")

        event = parse(text)
        if event.is_pitching_change:
            logger.warning("Pitching change notation %r in at-bat cell %s; no stats credited", text, cell)
        scoring = event.batters_faced > 0
        crossed = False

        if record is not None:
            context = record.context
            if batter.strip() and batter.strip() != context.batter:
                context = context.model_copy(update={"batter": batter.strip()})
            old_credits = record.credits
            roster = record.defense_roster(self.roster)
            fielders = record.fielders
        else:
            old_credits = []
            batter = batter.strip() or (entry.batter if entry is not None else "")
            if not scoring:
                self._mirror(cell, side, batter, text)
                return CellUpdate(cell=cell, old_text=old_text, new_text=text)
            crossed = self.state.begin_at_bat(side)
            context = self.state.context_for(side, batter)
            roster = self.roster
            fielders = fielders_for(roster, side)
            # A cell that starts producing stats takes its place in game order now.
            self.sheet.remove_cell(cell)

        new = attribute(event, context, roster) if scoring else Attribution()
        changes = [*negate(old_credits), *new.credits]
        if record is None:
            self.state.consume_inherited(new.inherited_consumed)
        elif context.inherited_runners:
            remaining = context.inherited_runners - new.inherited_consumed
            changes.extend(self._rerun_window(cell, context, remaining))
        delta = merge(changes)
        apply_credits(self.stats, delta)

        if scoring:
            self.state.cells[cell] = CellRecord(
                text=text, side=context.batting_side, context=context,
                credits=new.credits, inherited_consumed=new.inherited_consumed,
                fielders=fielders,
            )
        else:
            self.state.cells.pop(cell, None)
        self._mirror(cell, context.batting_side, context.batter, text)

        logger.info("Cell %s: %r -> %r (%d stat change(s))", cell, old_text, text, len(delta))
        return CellUpdate(cell=cell, old_text=old_text, new_text=text, delta=delta,
                          half_inning_ended=crossed)

    def _rerun_window(self, cell: str, context: AtBatContext, remaining: int) -> list[Credit]:
        """Re-attribute the cells scored after *cell* in its window.

        *remaining* is how many inherited runners are still on base once
        *cell* itself has been rescored.  Each later cell is attributed again
        against what is left, in score sheet order, and the returned credits
        take back what those cells were worth and add what they are worth
        now.  If the window is still open, the live counter ends up at
        whatever is left after the last of them.
        """
        changes: list[Credit] = []
        after = False
        for entry in self.sheet.at_bats():
            if entry.cell == cell:
                after = True
                continue
            record = self.state.cells.get(entry.cell)
            if not after or record is None or record.context.window != context.window:
                continue
            rerun = record.context.model_copy(update={
                "inherited_runners": remaining,
                "previous_pitcher": context.previous_pitcher if remaining else "",
            })
            result = attribute(parse(record.text), rerun, record.defense_roster(self.roster))
            if result.credits != record.credits:
                logger.info("Cell %s re-attributed after the correction to %s", entry.cell, cell)
                changes.extend([*negate(record.credits), *result.credits])
            self.state.cells[entry.cell] = record.model_copy(update={
                "context": rerun,
                "credits": result.credits,
                "inherited_consumed": result.inherited_consumed,
            })
            remaining -= result.inherited_consumed
        if context.window == self.state.window:
            self.state.inherited_runners = remaining
        return changes

    def _mirror(self, cell: str, side: Side, batter: str, text: str) -> None:
        if text.strip():
            self.sheet.set_cell(cell, side, batter, text)
        else:
            self.sheet.remove_cell(cell)

    def reprocess_cell(self, cell: str, text: Optional[str] = None, side: Optional[Side] = None,
                       batter: str = "") -> CellUpdate:
        """Forget a cell's shadow record without undoing it and score it again.

        For recovering a cell whose earlier pass never completed: its stats
        were never applied, so there is nothing to take back.
        """
        record = self.state.cells.pop(cell, None)
        entry = self.sheet.find_cell(cell)
        if text is None:
            text = entry.text if entry is not None else ""
        if side is None:
            if record is not None:
                side = record.side
            elif entry is not None:
                side = entry.side
            else:
                raise ValueError(f"Cell {cell!r} is not on the score sheet; pass its side")
        batter = batter or (record.context.batter if record is not None else "")
        logger.info("Reprocessing cell %s", cell)
        return self.record_at_bat(cell, side, batter, text)

    def apply_paste(self, edits: list[CellEdit]) -> list[CellUpdate]:
        """Apply a batch of edits as independent single-cell passes, in order."""
        level = paste_level(len(edits))
        if level != "ok":
            logger.warning("Applying %d cell edits in one batch (%s)", len(edits), level)
        updates = [self.record_at_bat(e.cell, e.side, e.batter, e.text) for e in edits]
        logger.info("Processed paste of %d cell(s)", len(updates))
        return updates

    # -- pitchers and innings ------------------------------------------------

    def set_pitcher(self, side: Side, name: str) -> None:
        """Put *name* on the mound for *side* with no inherited runners."""
        self._pitching_entry(PitchingChangeEntry(side=Side(side), pitcher=name.strip()))

    def change_pitcher(self, side: Side, name: str, notation: str = "") -> None:
        """Bring in a reliever; *notation* ``PCn`` says how many runners they inherit."""
        runners = parse(notation).inherited_runners if notation.strip() else 0
        if notation.strip() and runners is None:
            logger.warning("%r is not pitching change notation; no inherited runners for %s",
                           notation, name)
            runners = 0
        self._pitching_entry(PitchingChangeEntry(side=Side(side), pitcher=name.strip(),
                                                 text=f"PC{runners}"))

    def _pitching_entry(self, entry: PitchingChangeEntry) -> None:
        self.roster = apply_pitching_entry(self.state, self.roster, entry)
        self.sheet.entries.append(entry)

    def end_half_inning(self) -> None:
        self.state.end_half_inning()
        self.sheet.entries.append(HalfInningEntry())

    # -- whole game ----------------------------------------------------------

    def reset(self, clear_cells: bool = False) -> None:
        """Zero every stat and forget pitchers and shadow records.

        At-bat entries stay on the score sheet unless *clear_cells* is set.
        """
        self.stats.reset()
        self.state.reset()
        if clear_cells:
            self.sheet.entries = []
        else:
            self.sheet.entries = self.sheet.at_bats()
        logger.info("Game %s reset%s", self.state.game_id or "(unnamed)",
                    " and at-bats cleared" if clear_cells else "")

    def box_score(self) -> dict:
        return self.stats.box_score()
