# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""At-bat notation parser.

Turns the shorthand typed into an at-bat cell ("2RBI HR", "K", "OUT NP6",
"1B E6", "PC2") into a :class:`NotationEvent`.  Matching is substring based
on the uppercased, trimmed text.  Each token family is a small table ordered
by precedence and evaluated once, so no rule can overwrite another's result.

Unrecognised text is not an error: it simply produces no stats.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

from models import NotationEvent, Position

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Rule tables (highest precedence first)
# ---------------------------------------------------------------------------

# (token, total bases, home run)
HIT_RULES: list[tuple[str, int, bool]] = [
    ("HR", 4, True),
    ("3B", 3, False),
    ("2B", 2, False),
    ("1B", 1, False),
]

# (token, runs batted in)
RBI_RULES: list[tuple[str, int]] = [
    ("4RBI", 4),
    ("3RBI", 3),
    ("2RBI", 2),
    ("RBI", 1),
]

# (token, outs); a triple play is scored as a double play for the batter
MULTI_OUT_RULES: list[tuple[str, int]] = [
    ("TP", 3),
    ("DP", 2),
]

WALK_TOKEN = "BB"
STRIKEOUT_TOKEN = "K"
OUT_TOKEN = "OUT"
FIELDERS_CHOICE_TOKEN = "FC"
FIELDERS_CHOICE_OUT_TOKENS = ("FC OUT", "FCOUT")
SACRIFICE_TOKENS = ("SF", "SH")
STOLEN_BASE_TOKEN = "SB"
CAUGHT_STEALING_TOKEN = "CS"
NICE_PLAY_TOKEN = "NP"

_PITCHING_CHANGE_RE = re.compile(r"^PC\s*([0-3])?$")
_NICE_PLAY_FIELDER_RE = re.compile(r"NP([1-9])")
_ERROR_FIELDER_RE = re.compile(r"(?:^|\s)E([1-9])(?=\s|$)")


# ---------------------------------------------------------------------------
# Token helpers
# ---------------------------------------------------------------------------

def _first_hit(value: str) -> Optional[tuple[str, int, bool]]:
    matches = [rule for rule in HIT_RULES if rule[0] in value]
    if len(matches) > 1:
        logger.warning(
            "Conflicting hit tokens in %r (%s); scoring %s",
            value, ", ".join(m[0] for m in matches), matches[0][0],
        )
    return matches[0] if matches else None


def _first_rbi(value: str) -> int:
    for token, runs in RBI_RULES:
        if token in value:
            return runs
    return 0


def _multi_out(value: str) -> int:
    for token, outs in MULTI_OUT_RULES:
        if token in value:
            return outs
    return 0


def _has_error(value: str) -> bool:
    # Only a standalone E token counts: free text like "LINE OUT" has the letter.
    if value == "E":
        return True
    if len(value) >= 3 and (" E " in value or value.startswith("E ") or value.endswith(" E")):
        return True
    return _ERROR_FIELDER_RE.search(value) is not None


def _fielder(pattern: re.Pattern[str], value: str) -> Optional[Position]:
    match = pattern.search(value)
    if match is None:
        return None
    return Position.from_number(int(match.group(1)))


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

def parse(text: Any) -> NotationEvent:
    """Parse one at-bat cell.

    Args:
        text: Raw cell content.  Non-string values are stringified; ``None``
            and blank strings produce an all-zero event.

    Returns:
        The parsed :class:`NotationEvent`.  ``PC``/``PC0``-``PC3`` alone in a
        cell yield a pitching-change event (``inherited_runners`` set) with no
        at-bat counts.
    """
    value = "" if text is None else str(text).upper().strip()
    if not value:
        return NotationEvent()

    change = _PITCHING_CHANGE_RE.match(value)
    if change:
        return NotationEvent(inherited_runners=int(change.group(1) or 0))

    fields: dict[str, Any] = {"batters_faced": 1}

    hit = _first_hit(value)
    if hit is not None:
        _token, bases, home_run = hit
        fields.update(hits=1, total_bases=bases, home_runs=int(home_run))

    walk = WALK_TOKEN in value
    strikeout = STRIKEOUT_TOKEN in value
    sacrifice = any(token in value for token in SACRIFICE_TOKENS)
    if walk:
        fields["walks"] = 1
    if strikeout:
        fields["strikeouts"] = 1

    outs = 0
    if FIELDERS_CHOICE_TOKEN in value and any(t in value for t in FIELDERS_CHOICE_OUT_TOKENS):
        outs = 1
    if sacrifice:
        outs = 1

    multi = _multi_out(value)
    if multi:
        outs = multi
        fields["double_play"] = True
    elif (OUT_TOKEN in value or strikeout) and outs == 0:
        outs = 1

    if STOLEN_BASE_TOKEN in value:
        fields["stolen_base"] = True
    if CAUGHT_STEALING_TOKEN in value:
        fields["caught_stealing"] = True
        outs += 1
    fields["outs"] = outs

    fields["runs"] = _first_rbi(value)

    if NICE_PLAY_TOKEN in value:
        fields["nice_play"] = True
        fields["nice_play_fielder"] = _fielder(_NICE_PLAY_FIELDER_RE, value)
    if _has_error(value):
        fields["error"] = True
        fields["error_fielder"] = _fielder(_ERROR_FIELDER_RE, value)

    fields["at_bats"] = 0 if (walk or sacrifice) else 1
    return NotationEvent(**fields)


def calculate_ip(outs: int) -> float:
    """Convert outs recorded into innings pitched (1 out = .33, 2 outs = .67)."""
    outs = max(0, outs)
    full, remainder = divmod(outs, 3)
    return full + {0: 0.0, 1: 0.33, 2: 0.67}[remainder]
