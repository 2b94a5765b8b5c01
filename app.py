# /// script
# requires-python = ">=3.12"
# dependencies = ["flask>=3.0", "pydantic>=2.0"]
# ///
"""JSON API for the box score scorer.

Every request that touches a game runs inside a :class:`GameSession`, so
requests for the same game are serialised and a request that cannot get the
game in time is answered with 409 ``BUSY``.

Usage:
    uv run app.py
"""

from __future__ import annotations

import logging
import os
from typing import Any, Optional

from flask import Flask, jsonify, request
from pydantic import BaseModel, Field, ValidationError

from data.store import get_default_store
from game_state import IngestionError, ingest_roster, ingest_scoresheet
from incremental import CellEdit, paste_level
from models import Side
from session import GameBusyError, GameSession

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------

app = Flask(__name__)


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------

class PasteRequest(BaseModel):
    edits: list[CellEdit] = Field(min_length=1)
    confirm: bool = False


class PitcherRequest(BaseModel):
    side: Side = Field(description="Team whose pitcher changes")
    name: str = Field(min_length=1)
    notation: str = ""
    relief: bool = Field(default=False, description="Bring in as a reliever even without PCn notation")


class ReprocessRequest(BaseModel):
    text: Optional[str] = None
    side: Optional[Side] = None
    batter: str = ""


class ResetRequest(BaseModel):
    clear_cells: bool = False


def _body() -> dict[str, Any]:
    return request.get_json(silent=True) or {}


def _error(message: str, status: int, error_code: str, details: list[str] | None = None):
    return jsonify({"error": message, "error_code": error_code, "details": details or []}), status


def _game_payload(session: GameSession) -> dict[str, Any]:
    scorer = session.scorer
    return {
        "game_id": session.game_id,
        "box_score": scorer.stats.box_score(),
        "pitchers": {
            Side.AWAY.value: scorer.state.away_pitcher,
            Side.HOME.value: scorer.state.home_pitcher,
        },
        "inherited_runners": scorer.state.inherited_runners,
        "roster": scorer.roster.model_dump(mode="json"),
    }


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------


@app.errorhandler(GameBusyError)
def handle_busy(e: GameBusyError):
    return _error(str(e), 409, "BUSY")


@app.errorhandler(IngestionError)
def handle_ingestion(e: IngestionError):
    return _error(str(e), 400, "INVALID_PAYLOAD", e.details)


@app.errorhandler(ValidationError)
def handle_validation(e: ValidationError):
    details = [f"{err.get('loc', '?')}: {err.get('msg', '?')}" for err in e.errors()]
    return _error("Invalid request body", 400, "INVALID_PAYLOAD", details)


# ---------------------------------------------------------------------------
# API routes
# ---------------------------------------------------------------------------


@app.route("/api/games")
def api_list_games():
    return jsonify({"games": get_default_store().list_games()})


@app.route("/api/games/<game_id>", methods=["DELETE"])
def api_delete_game(game_id: str):
    with GameSession(game_id) as session:
        removed = session.store.delete(game_id)
        session.close(save=False)
    if not removed:
        return _error("Game not found", 404, "NOT_FOUND")
    return jsonify({"deleted": game_id})


@app.route("/api/games/<game_id>/roster", methods=["PUT"])
def api_set_roster(game_id: str):
    roster = ingest_roster(_body())
    with GameSession(game_id) as session:
        session.set_roster(roster)
        return jsonify(_game_payload(session))


@app.route("/api/games/<game_id>/sheet", methods=["PUT"])
def api_load_sheet(game_id: str):
    sheet = ingest_scoresheet(_body())
    with GameSession(game_id) as session:
        session.load_sheet(sheet)
        return jsonify(_game_payload(session))


@app.route("/api/games/<game_id>/cells", methods=["POST"])
def api_record_cell(game_id: str):
    edit = CellEdit.model_validate(_body())
    with GameSession(game_id) as session:
        update = session.scorer.record_at_bat(edit.cell, edit.side, edit.batter, edit.text)
        return jsonify({"update": update.model_dump(mode="json"), **_game_payload(session)})


@app.route("/api/games/<game_id>/cells/<cell>/reprocess", methods=["POST"])
def api_reprocess_cell(game_id: str, cell: str):
    body = ReprocessRequest.model_validate(_body())
    with GameSession(game_id) as session:
        try:
            update = session.scorer.reprocess_cell(cell, body.text, body.side, body.batter)
        except ValueError as e:
            return _error(str(e), 400, "INVALID_PAYLOAD")
        return jsonify({"update": update.model_dump(mode="json"), **_game_payload(session)})


@app.route("/api/games/<game_id>/paste", methods=["POST"])
def api_paste(game_id: str):
    body = PasteRequest.model_validate(_body())
    level = paste_level(len(body.edits))
    if level != "ok" and not body.confirm:
        return jsonify({
            "error": f"Pasting {len(body.edits)} cells needs confirmation",
            "error_code": "CONFIRM_REQUIRED",
            "level": level,
            "count": len(body.edits),
        }), 409
    with GameSession(game_id) as session:
        updates = session.scorer.apply_paste(body.edits)
        return jsonify({
            "level": level,
            "updates": [u.model_dump(mode="json") for u in updates],
            **_game_payload(session),
        })


@app.route("/api/games/<game_id>/pitchers", methods=["POST"])
def api_pitchers(game_id: str):
    body = PitcherRequest.model_validate(_body())
    with GameSession(game_id) as session:
        if body.notation.strip() or body.relief:
            session.scorer.change_pitcher(body.side, body.name, body.notation)
        else:
            session.scorer.set_pitcher(body.side, body.name)
        return jsonify(_game_payload(session))


@app.route("/api/games/<game_id>/half-inning", methods=["POST"])
def api_half_inning(game_id: str):
    with GameSession(game_id) as session:
        session.scorer.end_half_inning()
        return jsonify(_game_payload(session))


@app.route("/api/games/<game_id>/recompute", methods=["POST"])
def api_recompute(game_id: str):
    with GameSession(game_id) as session:
        session.recompute()
        return jsonify(_game_payload(session))


@app.route("/api/games/<game_id>/reset", methods=["POST"])
def api_reset(game_id: str):
    body = ResetRequest.model_validate(_body())
    with GameSession(game_id) as session:
        session.scorer.reset(clear_cells=body.clear_cells)
        return jsonify(_game_payload(session))


@app.route("/api/games/<game_id>/stats")
def api_stats(game_id: str):
    with GameSession(game_id) as session:
        payload = _game_payload(session)
        payload["totals"] = session.scorer.stats.to_dict()
        session.close(save=False)
    return jsonify(payload)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    port = int(os.environ.get("PORT", 5050))
    app.run(debug=True, host="0.0.0.0", port=port, threaded=True)
