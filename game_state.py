# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Per-game scoring state and payload ingestion.

:class:`GameState` tracks who is pitching for each side, the pitcher who just
left and how many runners still charged to that pitcher have yet to score.  In
incremental mode it also keeps a shadow record of every scored at-bat cell:
the text last seen and the credits that text produced, so a later correction
can be undone exactly.

Defensive pitcher state machine::

    NoPitcherSet --set_pitcher--> PitcherActive(name, 0)
    PitcherActive(old) --change_pitcher(n)--> PitcherActive(new, n), previous=old
    end_half_inning: inherited_runners := 0 (identities unchanged)
    set_pitcher on the other side: inherited_runners unchanged
    consume_inherited(k): inherited_runners -= min(k, inherited_runners)

Ingestion accepts two payload formats:

1. **Score sheet** -- ``{"roster": ..., "entries": [...]}`` mapping directly
   onto :class:`Scoresheet`.
2. **Grid** -- ``{"roster": ..., "starting_pitchers": ..., "grid": ...}``
   with ``[batting slot][inning]`` text per side, converted to a score sheet
   in the order the game was played.

Both paths validate with pydantic and raise :class:`IngestionError` with
field-level details for bad input.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError

from attribution import AtBatContext, Credit
from models import (
    AtBatEntry,
    HalfInningEntry,
    PitchingChangeEntry,
    Roster,
    RosterSlot,
    Scoresheet,
    SheetEntry,
    Side,
)
from notation import parse
from roster import swap_pitcher

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class IngestionError(Exception):
    """Raised when a roster or score sheet payload cannot be ingested."""

    def __init__(self, message: str, field: str | None = None,
                 details: list[str] | None = None):
        self.field = field
        self.details = details or []
        super().__init__(message)


class IngestionValidationError(IngestionError):
    """Raised when a payload fails pydantic validation."""

    def __init__(self, message: str, validation_errors: list[dict]):
        self.validation_errors = validation_errors
        super().__init__(message, details=[
            f"{e.get('loc', '?')}: {e.get('msg', '?')}" for e in validation_errors
        ])


# ---------------------------------------------------------------------------
# Game state
# ---------------------------------------------------------------------------

class CellRecord(BaseModel):
    """Shadow copy of one at-bat cell as last scored."""
    text: str
    side: Side
    context: AtBatContext
    credits: list[Credit] = Field(default_factory=list)
    inherited_consumed: int = 0
    fielders: list[RosterSlot] = Field(default_factory=list, description="Defense as it stood at first scoring")

    def defense_roster(self, roster: Roster) -> Roster:
        """*roster* with the defending side put back the way it was for this at-bat."""
        if not self.fielders:
            return roster
        return roster.replace(self.side.opponent, self.fielders)


def fielders_for(roster: Roster, batting_side: Side) -> list[RosterSlot]:
    """The defending side's players, each at their current position only."""
    return [slot.model_copy(update={"positions": slot.positions[-1:]})
            for slot in roster.slots(batting_side.opponent)]


class GameState(BaseModel):
    game_id: str = ""
    away_pitcher: str = ""
    home_pitcher: str = ""
    previous_pitcher: str = ""
    relief_side: Optional[Side] = Field(default=None, description="Side whose pitcher last changed")
    inherited_runners: int = Field(default=0, ge=0)
    last_batting_side: Optional[Side] = None
    window: int = Field(default=0, description="Bumped whenever inherited-runner bookkeeping restarts")
    cells: dict[str, CellRecord] = Field(default_factory=dict)

    # -- pitchers ------------------------------------------------------------

    def active_pitcher(self, side: Side) -> str:
        return self.away_pitcher if side is Side.AWAY else self.home_pitcher

    def pitcher_for(self, batting_side: Side) -> str:
        """The pitcher a batter on *batting_side* is facing."""
        return self.active_pitcher(batting_side.opponent)

    def _set_active(self, side: Side, name: str) -> None:
        if side is Side.AWAY:
            self.away_pitcher = name
        else:
            self.home_pitcher = name

    def set_pitcher(self, side: Side, name: str) -> None:
        self._set_active(side, name.strip())
        # Runners left by the other side's reliever are still on base.
        if self.relief_side is None or side is self.relief_side:
            self.inherited_runners = 0
            self.window += 1
        logger.info("Pitcher set: %s = %s", side.value, name.strip() or "(none)")

    def change_pitcher(self, side: Side, name: str, inherited_runners: int = 0) -> None:
        """Bring in a reliever who inherits *inherited_runners* on base."""
        name = name.strip()
        old = self.active_pitcher(side)
        if not old:
            if inherited_runners:
                logger.warning("Pitching change to %s with no pitcher to charge %d inherited runner(s)",
                               name, inherited_runners)
            self.set_pitcher(side, name)
            return
        if old == name:
            logger.debug("Pitching change to the active pitcher %s ignored", name)
            return
        self.previous_pitcher = old
        self.relief_side = side
        self.inherited_runners = max(0, inherited_runners)
        self._set_active(side, name)
        self.window += 1
        # The reliever's runners are on base for the next batter, whichever
        # half that batter opens.
        self.last_batting_side = None
        logger.info("Pitching change: %s replaces %s (%s), %d inherited runner(s)",
                    name, old, side.value, self.inherited_runners)

    # -- innings -------------------------------------------------------------

    def end_half_inning(self) -> None:
        self.inherited_runners = 0
        self.last_batting_side = None
        self.window += 1

    def begin_at_bat(self, batting_side: Side) -> bool:
        """Note a new at-bat; returns True if it started a new half-inning."""
        crossed = self.last_batting_side is not None and self.last_batting_side is not batting_side
        if crossed:
            self.end_half_inning()
        self.last_batting_side = batting_side
        return crossed

    # -- runs ----------------------------------------------------------------

    def context_for(self, batting_side: Side, batter: str) -> AtBatContext:
        charged = self.relief_side is batting_side.opponent and self.inherited_runners > 0
        return AtBatContext(
            batting_side=batting_side,
            batter=batter.strip(),
            pitcher=self.pitcher_for(batting_side),
            previous_pitcher=self.previous_pitcher if charged else "",
            inherited_runners=self.inherited_runners if charged else 0,
            window=self.window,
        )

    def consume_inherited(self, runs: int) -> None:
        """Adjust the inherited-runner count; negative *runs* give runners back."""
        self.inherited_runners = max(0, self.inherited_runners - runs)

    def reset(self) -> None:
        """Forget pitchers, inherited runners and shadow cells."""
        self.away_pitcher = ""
        self.home_pitcher = ""
        self.previous_pitcher = ""
        self.relief_side = None
        self.inherited_runners = 0
        self.last_batting_side = None
        self.window += 1
        self.cells = {}


def apply_pitching_entry(state: GameState, roster: Roster, entry: PitchingChangeEntry) -> Roster:
    """Apply one pitching entry to *state* and return the updated roster.

    Blank text sets the pitcher outright (game start, or fixing a typo).
    ``PC``/``PC0``-``PC3`` brings in a reliever with that many inherited
    runners and moves the reliever to P on the roster.
    """
    text = entry.text.strip()
    if not text:
        state.set_pitcher(entry.side, entry.pitcher)
        return roster

    event = parse(text)
    if not event.is_pitching_change:
        logger.warning("%r is not pitching change notation; no inherited runners for %s",
                       text, entry.pitcher)
    old = state.active_pitcher(entry.side)
    state.change_pitcher(entry.side, entry.pitcher, event.inherited_runners or 0)
    if old and old != entry.pitcher.strip():
        roster = roster.replace(entry.side, swap_pitcher(roster.slots(entry.side), old, entry.pitcher.strip()))
    return roster


# ---------------------------------------------------------------------------
# Persisted snapshot
# ---------------------------------------------------------------------------

class GameSnapshot(BaseModel):
    """Everything stored between passes for one game."""
    game_id: str
    sheet: Scoresheet = Field(default_factory=Scoresheet)
    state: GameState = Field(default_factory=GameState)
    stats: dict[str, dict[str, dict[str, int]]] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Grid payloads
# ---------------------------------------------------------------------------

class GridPitchingChange(BaseModel):
    inning: int = Field(ge=1)
    batting_side: Side = Field(description="Half-inning the change happens in")
    before_slot: int = Field(default=1, ge=1, description="Batting slot the reliever faces first")
    pitcher: str = Field(min_length=1)
    text: str = ""


class GridPayload(BaseModel):
    roster: Roster
    starting_pitchers: dict[Side, str] = Field(default_factory=dict)
    grid: dict[Side, list[list[Optional[str]]]] = Field(default_factory=dict)
    pitching_changes: list[GridPitchingChange] = Field(default_factory=list)


def cell_address(side: Side, slot: int, inning: int) -> str:
    """Address used for grid cells: side, 1-based batting slot, inning."""
    return f"{side.value}-{slot}-{inning}"


def scoresheet_from_grid(payload: GridPayload) -> Scoresheet:
    """Lay out a grid in the order it was played.

    Innings in order, away half before home half, batting slots in order,
    with a half-inning boundary ahead of every half but the first so a
    pitching change before a half's first batter keeps its runners.
    Empty cells are skipped.  Batter names come from roster order.
    """
    entries: list[SheetEntry] = []
    for side in (Side.AWAY, Side.HOME):
        starter = payload.starting_pitchers.get(side, "").strip()
        if starter:
            entries.append(PitchingChangeEntry(side=side, pitcher=starter))

    for side, rows in payload.grid.items():
        lineup = payload.roster.slots(side)
        if len(rows) > len(lineup):
            raise IngestionError(
                f"{side.value} grid has {len(rows)} batting rows but the roster lists {len(lineup)}",
                field=f"grid.{side.value}",
            )

    innings = max((len(row) for rows in payload.grid.values() for row in rows), default=0)
    for inning in range(1, innings + 1):
        for side in (Side.AWAY, Side.HOME):
            if (inning, side) != (1, Side.AWAY):
                entries.append(HalfInningEntry())
            rows = payload.grid.get(side, [])
            lineup = payload.roster.slots(side)
            changes = [c for c in payload.pitching_changes
                       if c.inning == inning and c.batting_side is side]
            for slot, row in enumerate(rows, start=1):
                for change in [c for c in changes if c.before_slot == slot]:
                    entries.append(PitchingChangeEntry(side=side.opponent, pitcher=change.pitcher,
                                                       text=change.text))
                text = row[inning - 1] if inning <= len(row) else None
                if text is None or not str(text).strip():
                    continue
                entries.append(AtBatEntry(cell=cell_address(side, slot, inning), side=side,
                                          batter=lineup[slot - 1].name, text=str(text)))
            for change in [c for c in changes if c.before_slot > len(rows)]:
                logger.warning("Pitching change to %s in inning %d is after the last batting slot",
                               change.pitcher, inning)
                entries.append(PitchingChangeEntry(side=side.opponent, pitcher=change.pitcher,
                                                   text=change.text))

    return Scoresheet(roster=payload.roster, entries=entries)


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------

def detect_format(payload: dict[str, Any]) -> str:
    """Return ``"scoresheet"``, ``"grid"`` or ``"unknown"``."""
    if "entries" in payload:
        return "scoresheet"
    if "grid" in payload:
        return "grid"
    return "unknown"


def _validate(model: type[BaseModel], payload: Any, what: str) -> Any:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise IngestionValidationError(f"Invalid {what}", exc.errors()) from exc


def ingest_roster(payload: Any) -> Roster:
    if not isinstance(payload, dict):
        raise IngestionError("Roster payload must be a JSON object")
    return _validate(Roster, payload, "roster")


def ingest_scoresheet(payload: Any) -> Scoresheet:
    """Build a :class:`Scoresheet` from either supported payload format."""
    if not isinstance(payload, dict):
        raise IngestionError("Score sheet payload must be a JSON object")
    fmt = detect_format(payload)
    if fmt == "scoresheet":
        return _validate(Scoresheet, payload, "score sheet")
    if fmt == "grid":
        return scoresheet_from_grid(_validate(GridPayload, payload, "grid"))
    raise IngestionError(
        "Unrecognised score sheet format: expected 'entries' or 'grid'",
        details=[f"top-level keys: {sorted(payload)}"],
    )
