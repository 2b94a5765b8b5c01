# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Per-game scoring sessions.

A :class:`GameSession` is the caller-owned context for one processing pass:
it takes the game's lock, loads the saved snapshot, hands out an
:class:`IncrementalScorer` and saves on the way out.  Two passes over the
same game never interleave; a pass that cannot get the lock in time fails
with :class:`GameBusyError` so the caller can retry.

Usage::

    with GameSession("game-1") as session:
        session.scorer.record_at_bat("away-1-1", Side.AWAY, "Smith", "1B")
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

import config
from data.store import GameStore, get_default_store
from game_state import GameSnapshot, GameState
from incremental import IncrementalScorer
from models import Roster, Scoresheet
from recompute import recompute
from stats import GameStats

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Per-game locks
# ---------------------------------------------------------------------------

_LOCKS: dict[str, threading.Lock] = {}
_REGISTRY_LOCK = threading.Lock()


def game_lock(game_id: str) -> threading.Lock:
    """Return the lock guarding *game_id*, creating it on first use."""
    with _REGISTRY_LOCK:
        lock = _LOCKS.get(game_id)
        if lock is None:
            lock = _LOCKS[game_id] = threading.Lock()
        return lock


class GameBusyError(Exception):
    """Raised when another pass holds a game's lock past the timeout."""

    def __init__(self, game_id: str, timeout_ms: int):
        self.game_id = game_id
        self.timeout_ms = timeout_ms
        super().__init__(f"Game {game_id} is busy (waited {timeout_ms} ms); retry")


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

class GameSession:
    """Locked, loaded view of one game for the length of a pass.

    Args:
        game_id: Game to open.
        store: Where snapshots live.  Defaults to the module-level store.
        timeout_ms: Longest wait for the lock.  Defaults to
            ``BOX_SCORE_LOCK_TIMEOUT_MS``.
    """

    def __init__(self, game_id: str, store: Optional[GameStore] = None,
                 timeout_ms: Optional[int] = None) -> None:
        if not game_id or not game_id.strip():
            raise ValueError("game_id must not be empty")
        self.game_id = game_id.strip()
        self.store = store or get_default_store()
        self.timeout_ms = config.get_lock_timeout_ms() if timeout_ms is None else timeout_ms
        self.scorer: Optional[IncrementalScorer] = None
        self._lock = game_lock(self.game_id)
        self._held = False

    @property
    def is_open(self) -> bool:
        return self._held

    def open(self) -> GameSession:
        if self._held:
            return self
        if not self._lock.acquire(timeout=self.timeout_ms / 1000):
            logger.warning("Game %s busy after %d ms", self.game_id, self.timeout_ms)
            raise GameBusyError(self.game_id, self.timeout_ms)
        self._held = True
        try:
            snapshot = self.store.load(self.game_id)
        except BaseException:
            self._release()
            raise
        if snapshot is None:
            snapshot = GameSnapshot(game_id=self.game_id, state=GameState(game_id=self.game_id))
        self.scorer = IncrementalScorer(
            state=snapshot.state,
            stats=GameStats.from_dict(snapshot.stats),
            sheet=snapshot.sheet,
        )
        return self

    def close(self, save: bool = True) -> None:
        if not self._held:
            return
        try:
            if save and self.scorer is not None:
                self.store.save(self.snapshot())
        finally:
            self._release()

    def _release(self) -> None:
        self._held = False
        self._lock.release()

    def __enter__(self) -> GameSession:
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close(save=exc_type is None)

    # -- operations ----------------------------------------------------------

    def _require_scorer(self) -> IncrementalScorer:
        if self.scorer is None or not self._held:
            raise RuntimeError(f"Session for game {self.game_id} is not open")
        return self.scorer

    def snapshot(self) -> GameSnapshot:
        scorer = self._require_scorer()
        scorer.state.game_id = self.game_id
        return GameSnapshot(
            game_id=self.game_id,
            sheet=scorer.sheet,
            state=scorer.state,
            stats=scorer.stats.to_dict(),
        )

    def set_roster(self, roster: Roster) -> None:
        self._require_scorer().roster = roster
        logger.info("Roster set for game %s (%d away, %d home)",
                    self.game_id, len(roster.away), len(roster.home))

    def load_sheet(self, sheet: Scoresheet) -> GameStats:
        """Replace the score sheet wholesale and recompute from it."""
        self._require_scorer().sheet = sheet
        return self.recompute()

    def recompute(self) -> GameStats:
        """Rebuild stats from the score sheet, superseding the shadow state."""
        scorer = self._require_scorer()
        result = recompute(scorer.sheet, self.game_id)
        scorer.state = result.state
        scorer.stats = result.stats
        scorer.roster = result.roster
        return result.stats
