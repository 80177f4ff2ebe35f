"""FastAPI server exposing a local feud match API for host screens and team buzzers."""

from __future__ import annotations

import logging
import time
from typing import Any

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from feud.feud_state import HOST_PLAYER_ID
from framework.env_utils import getenv_any
from framework.errors import ArenaError, IllegalMoveError
from framework.serialize import json_dumps
from server.schemas import CreateMatchRequest, PressRequest, StrikeRequest, SubmitMoveRequest
from server.session import MatchSession, SessionStore

logging.basicConfig(
    level=str(getenv_any("FEUD_LOG_LEVEL", default="INFO")).upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Feud Arena Local API", version="0.1.0")
store = SessionStore()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/api/health")
def health() -> dict[str, str]:
    """Healthcheck endpoint."""
    return {"status": "ok"}


def _time_based_seed() -> int:
    """Generate a positive time-derived seed when client does not provide one."""
    seed = int(time.time_ns() & 0x7FFFFFFF)
    return seed if seed != 0 else 1


def _session(match_id: str) -> MatchSession:
    try:
        return store.get(match_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown match_id: {match_id}") from exc


def _rejected(session: MatchSession, player_id: str, exc: Exception) -> HTTPException:
    # Include refreshed state for convenient UI recovery.
    payload = session.view(player_id) if player_id in session.player_types else {}
    payload["error"] = exc.to_dict() if isinstance(exc, ArenaError) else {"type": type(exc).__name__, "message": str(exc)}
    return HTTPException(status_code=400, detail=payload)


@app.post("/api/match/new")
def new_match(request: CreateMatchRequest) -> dict:
    """Create a new in-memory match session."""
    seed = request.seed if request.seed is not None else _time_based_seed()
    try:
        session = store.create_match(seed=seed, config=request.config, players=request.players)
    except (ArenaError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    viewer = request.viewer_player_id or HOST_PLAYER_ID
    try:
        return session.view(viewer)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.get("/api/match/{match_id}/observation")
def get_observation(
    match_id: str,
    player_id: str = Query(...),
    turn: int | None = Query(default=None, ge=0),
) -> dict:
    """Get latest observation and legal moves for one seat."""
    session = _session(match_id)
    try:
        return session.view(player_id, turn=turn)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.post("/api/match/{match_id}/move")
def submit_move(match_id: str, request: SubmitMoveRequest) -> dict:
    """Submit a strict JSON move for a human seat and advance the session."""
    session = _session(match_id)
    try:
        return session.submit_move(player_id=request.player_id, move_payload=request.move)
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    except (ArenaError, ValueError) as exc:
        raise _rejected(session, request.player_id, exc) from exc


@app.post("/api/match/{match_id}/minigame/press")
def press_buzzer(match_id: str, request: PressRequest) -> dict:
    """Press a team buzzer in the running minigame."""
    session = _session(match_id)
    try:
        return session.press(request.player_id)
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    except (IllegalMoveError, ValueError) as exc:
        raise _rejected(session, request.player_id, exc) from exc


@app.post("/api/match/{match_id}/minigame/strike")
def strike_bell(match_id: str, request: StrikeRequest) -> dict:
    """Strike a teleporting bell in the running minigame."""
    session = _session(match_id)
    try:
        return session.strike(request.player_id, request.target_id)
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    except (IllegalMoveError, ValueError) as exc:
        raise _rejected(session, request.player_id, exc) from exc


@app.get("/api/match/{match_id}/minigame")
def get_minigame(match_id: str) -> dict[str, Any]:
    """Return the running (or last decided) minigame for the live round."""
    session = _session(match_id)
    return {"match_id": match_id, "minigame": session.arbiter.snapshot() if session.arbiter is not None else None}


@app.get("/api/match/{match_id}/events", response_model=None)
def get_events(match_id: str, format: str = Query(default="array")) -> Any:
    """Return full event history as array (default) or JSONL text."""
    try:
        events = store.all_events(match_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown match_id: {match_id}") from exc

    if format == "jsonl":
        text = "\n".join(json_dumps(event) for event in events)
        return PlainTextResponse(content=text, media_type="application/jsonl")
    return events


@app.delete("/api/match/{match_id}")
def delete_match(match_id: str) -> dict[str, str]:
    """Discard a session and cancel its timers."""
    try:
        store.discard(match_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown match_id: {match_id}") from exc
    return {"status": "discarded", "match_id": match_id}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.main:app", host="0.0.0.0", port=8000, reload=True)
