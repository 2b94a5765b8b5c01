# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Per-game stat accumulators.

Three independent tables (pitching, hitting, fielding) keyed by player name.
Records are created on first credit and never deleted during a game; a reset
zeroes them in place.  Counters never go below zero: an over-correction is
clamped and logged, since it means the shadow state has drifted.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from typing import Generic, Iterator, Type, TypeVar

from notation import calculate_ip

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Stat records
# ---------------------------------------------------------------------------

@dataclass
class PitchingLine:
    batters_faced: int = 0
    outs: int = 0
    hits: int = 0
    home_runs: int = 0
    runs: int = 0
    walks: int = 0
    strikeouts: int = 0

    @property
    def innings_pitched(self) -> float:
        return calculate_ip(self.outs)

    def to_dict(self) -> dict:
        return {
            "IP": self.innings_pitched, "BF": self.batters_faced, "H": self.hits,
            "HR": self.home_runs, "R": self.runs, "BB": self.walks,
            "K": self.strikeouts,
        }


@dataclass
class HittingLine:
    at_bats: int = 0
    hits: int = 0
    home_runs: int = 0
    rbi: int = 0
    walks: int = 0
    strikeouts: int = 0
    reached_on_obstruction: int = 0
    double_plays: int = 0
    total_bases: int = 0

    def to_dict(self) -> dict:
        return {
            "AB": self.at_bats, "H": self.hits, "HR": self.home_runs,
            "RBI": self.rbi, "BB": self.walks, "K": self.strikeouts,
            "ROB": self.reached_on_obstruction, "DP": self.double_plays,
            "TB": self.total_bases,
        }


@dataclass
class FieldingLine:
    nice_plays: int = 0
    errors: int = 0
    # Bases stolen while this player was the runner; kept on the player's
    # fielding row.
    stolen_bases_allowed: int = 0

    def to_dict(self) -> dict:
        return {"NP": self.nice_plays, "E": self.errors, "SB": self.stolen_bases_allowed}


R = TypeVar("R", PitchingLine, HittingLine, FieldingLine)


# ---------------------------------------------------------------------------
# Stat table
# ---------------------------------------------------------------------------

class StatTable(Generic[R]):
    """Records of one kind keyed by player name."""

    def __init__(self, record_type: Type[R], label: str) -> None:
        self._record_type = record_type
        self._records: dict[str, R] = {}
        self.label = label
        self.stat_names = tuple(f.name for f in fields(record_type))

    def __contains__(self, name: str) -> bool:
        return name in self._records

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def get(self, name: str) -> R:
        """Return the player's record, or a zero record if they have none."""
        record = self._records.get(name)
        return record if record is not None else self._record_type()

    def _ensure(self, name: str) -> R:
        if name not in self._records:
            self._records[name] = self._record_type()
        return self._records[name]

    def _check_stat(self, stat: str) -> None:
        if stat not in self.stat_names:
            raise KeyError(f"Unknown {self.label} stat: {stat!r}")

    def apply_delta(self, name: str, deltas: dict[str, int]) -> R:
        """Add signed deltas, clamping each counter at zero."""
        record = self._ensure(name)
        for stat, delta in deltas.items():
            self._check_stat(stat)
            value = getattr(record, stat) + delta
            if value < 0:
                logger.warning(
                    "%s %s for %s would go to %d; clamped to 0 (shadow state drift?)",
                    self.label, stat, name, value,
                )
                value = 0
            setattr(record, stat, value)
        return record

    def set_absolute(self, name: str, values: dict[str, int]) -> R:
        """Replace the player's record outright."""
        for stat in values:
            self._check_stat(stat)
        record = self._record_type(**values)
        self._records[name] = record
        return record

    def credit(self, name: str, stat: str, amount: int = 1) -> R:
        return self.apply_delta(name, {stat: amount})

    def reset(self) -> None:
        for name in self._records:
            self._records[name] = self._record_type()

    def to_dict(self) -> dict[str, dict[str, int]]:
        return {name: asdict(record) for name, record in self._records.items()}

    def load(self, data: dict[str, dict[str, int]]) -> None:
        self._records = {name: self._record_type(**values) for name, values in data.items()}


# ---------------------------------------------------------------------------
# All three tables for one game
# ---------------------------------------------------------------------------

PITCHING = "pitching"
HITTING = "hitting"
FIELDING = "fielding"


class GameStats:
    def __init__(self) -> None:
        self.pitching: StatTable[PitchingLine] = StatTable(PitchingLine, PITCHING)
        self.hitting: StatTable[HittingLine] = StatTable(HittingLine, HITTING)
        self.fielding: StatTable[FieldingLine] = StatTable(FieldingLine, FIELDING)

    def table(self, name: str) -> StatTable:
        tables = {PITCHING: self.pitching, HITTING: self.hitting, FIELDING: self.fielding}
        if name not in tables:
            raise KeyError(f"Unknown stat table: {name!r}")
        return tables[name]

    def reset(self) -> None:
        self.pitching.reset()
        self.hitting.reset()
        self.fielding.reset()

    def to_dict(self) -> dict[str, dict[str, dict[str, int]]]:
        return {
            PITCHING: self.pitching.to_dict(),
            HITTING: self.hitting.to_dict(),
            FIELDING: self.fielding.to_dict(),
        }

    def totals(self) -> dict[str, dict[str, dict[str, int]]]:
        """Like :meth:`to_dict` but without all-zero records.

        Two runs that touched different players but ended with the same
        counts compare equal here.
        """
        return {
            table: {name: values for name, values in records.items() if any(values.values())}
            for table, records in self.to_dict().items()
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> GameStats:
        stats = cls()
        for table in (PITCHING, HITTING, FIELDING):
            stats.table(table).load((data or {}).get(table, {}))
        return stats

    def box_score(self) -> dict[str, dict[str, dict]]:
        """Stat lines keyed by the usual box score abbreviations."""
        return {
            PITCHING: {n: self.pitching.get(n).to_dict() for n in self.pitching},
            HITTING: {n: self.hitting.get(n).to_dict() for n in self.hitting},
            FIELDING: {n: self.fielding.get(n).to_dict() for n in self.fielding},
        }
