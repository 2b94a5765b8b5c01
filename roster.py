# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Roster lookups and position history.

A roster slot's position history reads left to right ("SS / P" started at
short and is now pitching).  Lookups never raise: a player or position that
is not on the roster comes back as ``None`` and the caller decides what to do.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from models import POSITION_DELIMITER, Position, RosterSlot

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Position history strings
# ---------------------------------------------------------------------------

def position_history(history: str | None) -> list[str]:
    """Split a history string into its positions.

    >>> position_history("2B / P / SS")
    ['2B', 'P', 'SS']
    """
    if not history:
        return []
    return [p.strip() for p in str(history).split(POSITION_DELIMITER) if p.strip()]


def current_position(history: str | None) -> str:
    """Return the rightmost (current) position of a history string."""
    positions = position_history(history)
    return positions[-1] if positions else ""


def append_position(history: str | None, position: str) -> str:
    """Return *history* with *position* appended, unless already there."""
    return RosterSlot.from_history("", history or "").with_position(position).history


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

def find_by_name(slots: Iterable[RosterSlot], name: str | None) -> Optional[RosterSlot]:
    if not name or not name.strip():
        return None
    target = name.strip()
    for slot in slots:
        if slot.name.strip() == target:
            return slot
    return None


def find_by_position(
    slots: Iterable[RosterSlot], position: Position | str | None,
) -> Optional[RosterSlot]:
    if position is None:
        return None
    target = (position.value if isinstance(position, Position) else str(position)).strip().upper()
    if not target:
        return None
    for slot in slots:
        if slot.current_position.upper() == target:
            return slot
    return None


# ---------------------------------------------------------------------------
# Pitching change position swap
# ---------------------------------------------------------------------------

def swap_pitcher(
    slots: list[RosterSlot], old_pitcher: str, new_pitcher: str,
) -> list[RosterSlot]:
    """Move *new_pitcher* to P and *old_pitcher* to the reliever's old spot.

    Returns a new list of slots; the input is not modified.
    """
    if not new_pitcher or old_pitcher == new_pitcher:
        return list(slots)

    reliever = find_by_name(slots, new_pitcher)
    if reliever is None:
        logger.warning("Pitcher %r not found in roster; positions unchanged", new_pitcher)
        return list(slots)

    if Position.P.value in reliever.positions and reliever.current_position != Position.P.value:
        logger.warning("%s already pitched this game; allowing re-entry at P", reliever.name)

    departing = find_by_name(slots, old_pitcher)
    vacated = reliever.current_position

    updated = []
    for slot in slots:
        if slot is reliever:
            updated.append(slot.with_position(Position.P.value))
        elif departing is not None and slot is departing and vacated:
            updated.append(slot.with_position(vacated))
        else:
            updated.append(slot)

    if departing is None and old_pitcher:
        logger.warning("Departing pitcher %r not found in roster; only %s moved to P",
                       old_pitcher, reliever.name)
    logger.info("%s moved to P%s", reliever.name,
                f", {departing.name} moved to {vacated}" if departing is not None and vacated else "")
    return updated
