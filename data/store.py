# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""File-based persistence for per-game snapshots.

One JSON file per game id holding the score sheet, the game state (with its
shadow cell records) and the stat tables.  Filenames are hashed from the
game id so any caller-chosen id is safe on disk.

Usage::

    from data.store import GameStore

    store = GameStore()                    # uses BOX_SCORE_STORE_DIR
    store = GameStore("/tmp/games")        # custom directory

    store.save(snapshot)
    snapshot = store.load("game-1")        # None if never saved
    store.delete("game-1")
"""

from __future__ import annotations

import hashlib
import json
import logging
import shutil
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

import config
from game_state import GameSnapshot

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Key generation
# ---------------------------------------------------------------------------

def make_key(game_id: str) -> str:
    """Return the SHA-256 hex digest used as a game's filename."""
    return hashlib.sha256(game_id.encode()).hexdigest()


# ---------------------------------------------------------------------------
# Store class
# ---------------------------------------------------------------------------

class GameStore:
    """Directory of game snapshots.

    Args:
        root_dir: Directory to write to.  Created on first save.  Defaults to
            :func:`config.get_store_dir`.
    """

    def __init__(self, root_dir: str | Path | None = None) -> None:
        self._root = Path(root_dir) if root_dir is not None else config.get_store_dir()

    @property
    def root_dir(self) -> Path:
        return self._root

    def load(self, game_id: str) -> Optional[GameSnapshot]:
        """Return the saved snapshot, or ``None`` if missing or unreadable."""
        path = self._path_for(game_id)
        if not path.exists():
            return None
        try:
            with open(path) as f:
                return GameSnapshot.model_validate(json.load(f))
        except (json.JSONDecodeError, OSError, ValidationError) as e:
            logger.warning("Snapshot for game %s is unreadable (%s); starting fresh", game_id, e)
            return None

    def save(self, snapshot: GameSnapshot) -> Path:
        path = self._path_for(snapshot.game_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".tmp")
        with open(tmp_path, "w") as f:
            f.write(snapshot.model_dump_json())
        tmp_path.replace(path)  # atomic rename
        logger.debug("Saved game %s to %s", snapshot.game_id, path)
        return path

    def delete(self, game_id: str) -> bool:
        """Remove a game's snapshot.  Returns ``False`` if there was none."""
        path = self._path_for(game_id)
        if path.exists():
            path.unlink()
            return True
        return False

    def has(self, game_id: str) -> bool:
        return self._path_for(game_id).exists()

    def list_games(self) -> list[str]:
        """Return the ids of every readable snapshot, sorted."""
        if not self._root.exists():
            return []
        ids = []
        for path in self._root.glob("*.json"):
            try:
                with open(path) as f:
                    ids.append(json.load(f)["game_id"])
            except (json.JSONDecodeError, OSError, KeyError, TypeError):
                logger.warning("Skipping unreadable snapshot %s", path.name)
        return sorted(ids)

    def clear(self) -> int:
        """Delete every snapshot.  Returns how many files were removed."""
        if not self._root.exists():
            return 0
        count = sum(1 for _ in self._root.glob("*.json"))
        shutil.rmtree(self._root)
        return count

    def _path_for(self, game_id: str) -> Path:
        return self._root / f"{make_key(game_id)}.json"


# ---------------------------------------------------------------------------
# Module-level default store instance
# ---------------------------------------------------------------------------

_default_store: GameStore | None = None


def get_default_store() -> GameStore:
    """Return (and lazily create) the module-level default :class:`GameStore`."""
    global _default_store
    if _default_store is None:
        _default_store = GameStore()
    return _default_store


def set_default_store(store: GameStore | None) -> None:
    """Override the module-level default store (useful for testing)."""
    global _default_store
    _default_store = store
