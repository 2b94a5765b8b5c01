"""Centralized configuration for environment variables."""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

LOCK_TIMEOUT_ENV = "BOX_SCORE_LOCK_TIMEOUT_MS"
PASTE_CAUTION_ENV = "BOX_SCORE_PASTE_CAUTION"
PASTE_DANGER_ENV = "BOX_SCORE_PASTE_DANGER"
STORE_DIR_ENV = "BOX_SCORE_STORE_DIR"

DEFAULT_LOCK_TIMEOUT_MS = 5000
DEFAULT_PASTE_CAUTION = 20
DEFAULT_PASTE_DANGER = 40
DEFAULT_STORE_DIR = Path(__file__).resolve().parent / "data" / "games"


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("%s=%r is not an integer; using %d", name, raw, default)
        return default
    if value < 0:
        logger.warning("%s=%d is negative; using %d", name, value, default)
        return default
    return value


def get_lock_timeout_ms() -> int:
    """Return how long to wait for a game's lock before reporting it busy."""
    return _int_env(LOCK_TIMEOUT_ENV, DEFAULT_LOCK_TIMEOUT_MS)


def get_paste_thresholds() -> tuple[int, int]:
    """Return the (caution, danger) cell counts for batch edits."""
    caution = _int_env(PASTE_CAUTION_ENV, DEFAULT_PASTE_CAUTION)
    danger = _int_env(PASTE_DANGER_ENV, DEFAULT_PASTE_DANGER)
    return caution, max(caution, danger)


def get_store_dir() -> Path:
    """Return the directory game snapshots are written to."""
    raw = os.environ.get(STORE_DIR_ENV, "").strip()
    return Path(raw) if raw else DEFAULT_STORE_DIR
