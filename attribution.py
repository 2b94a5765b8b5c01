# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Routes a parsed at-bat to the players who get credit for it.

:func:`attribute` is pure: given a :class:`NotationEvent`, the context the
at-bat happened in (batter, pitchers, inherited runners) and the roster, it
returns the list of :class:`Credit` items the event is worth.  Both the
incremental and the full-recompute drivers go through it, and an edit's delta
is just ``negate(old credits) + new credits``.

Identity problems (no active pitcher, fielder position not on the roster,
batter missing from the roster for a stolen base) skip that one credit with a
warning; the rest of the event is still credited.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Iterable, Literal

from pydantic import BaseModel, ConfigDict, Field

from models import NotationEvent, Position, Roster, Side
from roster import find_by_name, find_by_position
from stats import FIELDING, HITTING, PITCHING, GameStats

logger = logging.getLogger(__name__)

TableName = Literal["pitching", "hitting", "fielding"]


# ---------------------------------------------------------------------------
# Credit and context models
# ---------------------------------------------------------------------------

class Credit(BaseModel):
    """A signed amount of one stat for one player."""
    model_config = ConfigDict(frozen=True)

    table: TableName
    player: str
    stat: str
    amount: int


class AtBatContext(BaseModel):
    """Who was involved when an at-bat was first scored."""
    model_config = ConfigDict(frozen=True)

    batting_side: Side
    batter: str = ""
    pitcher: str = ""
    previous_pitcher: str = ""
    inherited_runners: int = Field(default=0, ge=0, description="Runners still charged to previous_pitcher")
    window: int = Field(default=0, description="GameState window the context was taken in")


class Attribution(BaseModel):
    credits: list[Credit] = Field(default_factory=list)
    inherited_consumed: int = 0


# ---------------------------------------------------------------------------
# Event -> credits
# ---------------------------------------------------------------------------

_PITCHING_STATS = ("batters_faced", "outs", "hits", "home_runs", "walks", "strikeouts")


def _on_roster(roster: Roster, side: Side, name: str) -> bool:
    # An empty roster means the caller is not tracking one.
    slots = roster.slots(side)
    return not slots or find_by_name(slots, name) is not None


def _pitching_credits(event: NotationEvent, context: AtBatContext,
                      roster: Roster) -> tuple[list[Credit], int]:
    defense = context.batting_side.opponent
    if not context.pitcher:
        logger.warning("No active %s pitcher; pitching stats for %s not credited",
                       defense.value, context.batter or "this at-bat")
        return [], 0

    to_previous = 0
    if event.runs and context.inherited_runners and context.previous_pitcher:
        to_previous = min(event.runs, context.inherited_runners)
    to_current = event.runs - to_previous

    credits: list[Credit] = []
    if _on_roster(roster, defense, context.pitcher):
        credits.extend(
            Credit(table=PITCHING, player=context.pitcher, stat=stat, amount=getattr(event, stat))
            for stat in _PITCHING_STATS
        )
        credits.append(Credit(table=PITCHING, player=context.pitcher, stat="runs", amount=to_current))
    else:
        logger.warning("Pitcher %r not found on the %s roster; pitching stats skipped",
                       context.pitcher, defense.value)

    if to_previous:
        if _on_roster(roster, defense, context.previous_pitcher):
            credits.append(Credit(table=PITCHING, player=context.previous_pitcher,
                                  stat="runs", amount=to_previous))
        else:
            logger.warning("Previous pitcher %r not found on the %s roster; %d inherited run(s) skipped",
                           context.previous_pitcher, defense.value, to_previous)
    return credits, to_previous


def _hitting_credits(event: NotationEvent, batter: str) -> list[Credit]:
    if not batter:
        logger.warning("No batter name for at-bat; hitting stats not credited")
        return []
    amounts = {
        "at_bats": event.at_bats,
        "hits": event.hits,
        "home_runs": event.home_runs,
        "rbi": event.runs,
        "walks": event.walks,
        "strikeouts": event.strikeouts,
        "reached_on_obstruction": int(event.nice_play),
        "double_plays": int(event.double_play),
        "total_bases": event.total_bases,
    }
    return [Credit(table=HITTING, player=batter, stat=s, amount=a) for s, a in amounts.items()]


def _fielder_credit(roster: Roster, defense: Side, position: Position | None,
                    stat: str, label: str) -> list[Credit]:
    if position is None:
        logger.warning("%s without a fielder position; fielding credit skipped", label)
        return []
    slot = find_by_position(roster.slots(defense), position)
    if slot is None:
        logger.warning("No %s fielder at %s; %s not credited", defense.value, position.value, label)
        return []
    return [Credit(table=FIELDING, player=slot.name, stat=stat, amount=1)]


def attribute(event: NotationEvent, context: AtBatContext, roster: Roster | None = None) -> Attribution:
    """Work out every credit one at-bat is worth.

    Args:
        event: Parsed cell.
        context: Batter, pitchers and inherited runners for the at-bat.
        roster: Both teams' roster rows, used to find fielders by position.

    Returns:
        An :class:`Attribution` with positive credits and the number of
        inherited runners the at-bat's runs used up.
    """
    roster = roster or Roster()
    if event.is_pitching_change or event.batters_faced == 0:
        return Attribution()

    defense = context.batting_side.opponent
    credits, consumed = _pitching_credits(event, context, roster)
    credits.extend(_hitting_credits(event, context.batter))

    if event.nice_play:
        credits.extend(_fielder_credit(roster, defense, event.nice_play_fielder, "nice_plays", "Nice play"))
    if event.error:
        credits.extend(_fielder_credit(roster, defense, event.error_fielder, "errors", "Error"))
    if event.stolen_base:
        if context.batter and _on_roster(roster, context.batting_side, context.batter):
            credits.append(Credit(table=FIELDING, player=context.batter,
                                  stat="stolen_bases_allowed", amount=1))
        else:
            logger.warning("Could not find %r on the %s roster for SB",
                           context.batter, context.batting_side.value)

    return Attribution(credits=[c for c in credits if c.amount], inherited_consumed=consumed)


# ---------------------------------------------------------------------------
# Delta helpers
# ---------------------------------------------------------------------------

def negate(credits: Iterable[Credit]) -> list[Credit]:
    return [c.model_copy(update={"amount": -c.amount}) for c in credits]


def merge(credits: Iterable[Credit]) -> list[Credit]:
    """Sum credits per (table, player, stat), dropping the ones that net to zero."""
    totals: dict[tuple[str, str, str], int] = {}
    for c in credits:
        key = (c.table, c.player, c.stat)
        totals[key] = totals.get(key, 0) + c.amount
    return [
        Credit(table=table, player=player, stat=stat, amount=amount)
        for (table, player, stat), amount in totals.items()
        if amount
    ]


def apply_credits(stats: GameStats, credits: Iterable[Credit]) -> None:
    grouped: dict[tuple[str, str], dict[str, int]] = defaultdict(dict)
    for c in credits:
        deltas = grouped[(c.table, c.player)]
        deltas[c.stat] = deltas.get(c.stat, 0) + c.amount
    for (table, player), deltas in grouped.items():
        stats.table(table).apply_delta(player, deltas)
        logger.debug("%s %s += %s", table, player, deltas)
