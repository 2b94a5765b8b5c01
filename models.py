# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Data models for the box score scorer."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Side(str, Enum):
    AWAY = "away"
    HOME = "home"

    @property
    def opponent(self) -> Side:
        return Side.HOME if self is Side.AWAY else Side.AWAY


class Position(str, Enum):
    P = "P"
    C = "C"
    FIRST_BASE = "1B"
    SECOND_BASE = "2B"
    THIRD_BASE = "3B"
    SS = "SS"
    LF = "LF"
    CF = "CF"
    RF = "RF"

    @property
    def number(self) -> int:
        """Standard scorekeeping number (1=P ... 9=RF)."""
        return _POSITION_ORDER.index(self) + 1

    @classmethod
    def from_number(cls, number: int) -> Position:
        if not 1 <= number <= 9:
            raise ValueError(f"Position number must be 1-9, got {number}")
        return _POSITION_ORDER[number - 1]


_POSITION_ORDER = [
    Position.P, Position.C, Position.FIRST_BASE, Position.SECOND_BASE,
    Position.THIRD_BASE, Position.SS, Position.LF, Position.CF, Position.RF,
]


# ---------------------------------------------------------------------------
# Parsed notation
# ---------------------------------------------------------------------------

class NotationEvent(BaseModel):
    """Everything one at-bat cell says happened.

    Produced by ``notation.parse``; never mutated afterwards.
    """
    model_config = ConfigDict(frozen=True)

    batters_faced: int = Field(default=0, ge=0)
    outs: int = Field(default=0, ge=0)
    hits: int = Field(default=0, ge=0)
    home_runs: int = Field(default=0, ge=0)
    runs: int = Field(default=0, ge=0)
    walks: int = Field(default=0, ge=0)
    strikeouts: int = Field(default=0, ge=0)
    at_bats: int = Field(default=0, ge=0)
    total_bases: int = Field(default=0, ge=0, le=4)

    nice_play: bool = False
    error: bool = False
    stolen_base: bool = False
    caught_stealing: bool = False
    double_play: bool = False

    nice_play_fielder: Optional[Position] = None
    error_fielder: Optional[Position] = None
    inherited_runners: Optional[int] = Field(default=None, ge=0, le=3)

    @property
    def fielder(self) -> Optional[Position]:
        return self.error_fielder or self.nice_play_fielder

    @property
    def is_pitching_change(self) -> bool:
        return self.inherited_runners is not None

    @property
    def is_empty(self) -> bool:
        return self == NotationEvent()


# ---------------------------------------------------------------------------
# Roster
# ---------------------------------------------------------------------------

POSITION_DELIMITER = "/"


class RosterSlot(BaseModel):
    """One roster row: a player and the positions they have played, in order.

    The last entry of ``positions`` is where the player is now.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    positions: list[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()

    @field_validator("positions", mode="before")
    @classmethod
    def split_history(cls, v: Any) -> Any:
        """Accept a history string such as ``"SS / P"`` in place of a list."""
        if v is None:
            return []
        if isinstance(v, str):
            return [p.strip() for p in v.split(POSITION_DELIMITER) if p.strip()]
        return v

    @property
    def current_position(self) -> str:
        return self.positions[-1] if self.positions else ""

    @property
    def starting_position(self) -> str:
        return self.positions[0] if self.positions else ""

    @property
    def history(self) -> str:
        return f" {POSITION_DELIMITER} ".join(self.positions)

    def with_position(self, position: str) -> RosterSlot:
        position = position.strip()
        if not position or position == self.current_position:
            return self
        return self.model_copy(update={"positions": [*self.positions, position]})

    @classmethod
    def from_history(cls, name: str, history: str = "") -> RosterSlot:
        return cls(name=name, positions=history or "")


class Roster(BaseModel):
    """Both teams' roster rows, in roster order."""
    away: list[RosterSlot] = Field(default_factory=list)
    home: list[RosterSlot] = Field(default_factory=list)

    def slots(self, side: Side) -> list[RosterSlot]:
        return self.away if side is Side.AWAY else self.home

    def replace(self, side: Side, slots: list[RosterSlot]) -> Roster:
        key = "away" if side is Side.AWAY else "home"
        return self.model_copy(update={key: list(slots)})

    def at_start(self) -> Roster:
        """The roster as it stood before any position changes."""
        def first(slots: list[RosterSlot]) -> list[RosterSlot]:
            return [s.model_copy(update={"positions": s.positions[:1]}) for s in slots]
        return Roster(away=first(self.away), home=first(self.home))


# ---------------------------------------------------------------------------
# Score sheet
# ---------------------------------------------------------------------------

class AtBatEntry(BaseModel):
    kind: Literal["at_bat"] = "at_bat"
    cell: str = Field(min_length=1, description="Caller's address for the cell")
    side: Side = Field(description="Batting team")
    batter: str = ""
    text: str = ""


class PitchingChangeEntry(BaseModel):
    kind: Literal["pitching_change"] = "pitching_change"
    side: Side = Field(description="Team whose pitcher changes")
    pitcher: str
    text: str = Field(default="", description="Optional PCn notation")


class HalfInningEntry(BaseModel):
    kind: Literal["half_inning"] = "half_inning"


SheetEntry = Annotated[
    Union[AtBatEntry, PitchingChangeEntry, HalfInningEntry],
    Field(discriminator="kind"),
]


class Scoresheet(BaseModel):
    """Caller-owned grid content in the order things happened."""
    roster: Roster = Field(default_factory=Roster)
    entries: list[SheetEntry] = Field(default_factory=list)

    def at_bats(self) -> list[AtBatEntry]:
        return [e for e in self.entries if isinstance(e, AtBatEntry)]

    def find_cell(self, cell: str) -> Optional[AtBatEntry]:
        for entry in self.entries:
            if isinstance(entry, AtBatEntry) and entry.cell == cell:
                return entry
        return None

    def set_cell(self, cell: str, side: Side, batter: str, text: str) -> AtBatEntry:
        """Update a cell in place, or append it if it has never been filled."""
        entry = self.find_cell(cell)
        if entry is None:
            entry = AtBatEntry(cell=cell, side=side, batter=batter, text=text)
            self.entries.append(entry)
        else:
            entry.text = text
            entry.batter = batter or entry.batter
        return entry

    def remove_cell(self, cell: str) -> bool:
        before = len(self.entries)
        self.entries = [e for e in self.entries
                        if not (isinstance(e, AtBatEntry) and e.cell == cell)]
        return len(self.entries) != before

    def clear_at_bats(self) -> None:
        self.entries = [e for e in self.entries if not isinstance(e, AtBatEntry)]
