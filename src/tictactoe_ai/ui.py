"""FastAPI service exposing game sessions over HTTP and a WebSocket stream."""

from __future__ import annotations

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager, suppress
from typing import Dict, Literal, Optional, Tuple

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field, ValidationError

from .ai import Difficulty
from .board import empty_cells
from .session import AI_THINK_DELAY, GameSession, PhaseKind, SessionState, Turn

logger = logging.getLogger(__name__)

SESSIONS: Dict[str, GameSession] = {}


@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    for session in SESSIONS.values():
        session.close()
    SESSIONS.clear()


app = FastAPI(
    title="Tic-Tac-Toe AI",
    description="Play tic-tac-toe against a minimax opponent",
    lifespan=lifespan,
)


class NewGameRequest(BaseModel):
    """Request payload for starting a new game."""

    difficulty: Difficulty = Field(
        default=Difficulty.EASY,
        description="Strength of the computer opponent",
    )


class MoveRequest(BaseModel):
    """Request payload for playing a cell; illegal cells are simply ignored."""

    index: int


class DifficultyRequest(BaseModel):
    difficulty: Difficulty


class Command(BaseModel):
    """Command accepted on the WebSocket stream."""

    type: Literal["move", "reset", "difficulty"]
    index: Optional[int] = None
    difficulty: Optional[Difficulty] = None


def _create_session(difficulty: Difficulty) -> Tuple[str, GameSession]:
    """Create a new game session and register it for later access."""

    session = GameSession(difficulty, think_delay=AI_THINK_DELAY)
    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = session
    logger.info("Created game %s (%s)", session_id, difficulty.value)
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    try:
        return SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc


def _serialize_state(game_id: str, state: SessionState) -> Dict[str, object]:
    phase = state.phase
    user_to_move = phase.kind is PhaseKind.IDLE and state.turn is Turn.USER
    return {
        "id": game_id,
        "board": [cell.value for cell in state.board],
        "turn": state.turn.value,
        "difficulty": state.difficulty.value,
        "phase": phase.kind.value,
        "outcome": phase.outcome.value if phase.outcome else None,
        "reason": phase.reason,
        "aiPending": phase.kind is PhaseKind.AWAITING_AI_MOVE,
        "availableMoves": empty_cells(state.board) if user_to_move else [],
    }


def _apply_command(session: GameSession, command: Command) -> Optional[str]:
    """Forward a stream command to the session; returns an error message if malformed."""

    if command.type == "move":
        if command.index is None:
            return "Move command requires an index"
        session.play_user_move(command.index)
    elif command.type == "difficulty":
        if command.difficulty is None:
            return "Difficulty command requires a difficulty"
        session.set_difficulty(command.difficulty)
    else:
        session.reset()
    return None


@app.post("/api/game")
def create_game(request: NewGameRequest) -> Dict[str, object]:
    game_id, session = _create_session(request.difficulty)
    return _serialize_state(game_id, session.state)


@app.get("/api/game/{game_id}")
def get_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    return _serialize_state(game_id, session.state)


@app.post("/api/game/{game_id}/move")
def make_move(game_id: str, request: MoveRequest) -> Dict[str, object]:
    session = _get_session(game_id)
    session.play_user_move(request.index)
    return _serialize_state(game_id, session.state)


@app.post("/api/game/{game_id}/difficulty")
def change_difficulty(game_id: str, request: DifficultyRequest) -> Dict[str, object]:
    session = _get_session(game_id)
    session.set_difficulty(request.difficulty)
    return _serialize_state(game_id, session.state)


@app.post("/api/game/{game_id}/reset")
def reset_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    session.reset()
    return _serialize_state(game_id, session.state)


@app.delete("/api/game/{game_id}")
def delete_game(game_id: str) -> Dict[str, object]:
    session = SESSIONS.pop(game_id, None)
    if session is None:
        raise HTTPException(status_code=404, detail="Game not found")
    session.close()
    logger.info("Closed game %s", game_id)
    return {"id": game_id, "closed": True}


@app.websocket("/ws/game/{game_id}")
async def game_stream(websocket: WebSocket, game_id: str) -> None:
    await websocket.accept()
    session = SESSIONS.get(game_id)
    if session is None:
        await websocket.send_json({"type": "error", "message": "Game not found"})
        await websocket.close()
        return

    loop = asyncio.get_running_loop()
    outbox: asyncio.Queue = asyncio.Queue()

    # Runs on whichever thread published the state (request or AI timer).
    def observer(state: SessionState) -> None:
        message = {"type": "state", **_serialize_state(game_id, state)}
        loop.call_soon_threadsafe(outbox.put_nowait, message)

    async def forward() -> None:
        while True:
            await websocket.send_json(await outbox.get())

    sender = asyncio.create_task(forward())
    unsubscribe = session.subscribe(observer)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            text = message.get("text")
            if text is None:
                error = "Invalid command: expected a JSON text frame"
            else:
                try:
                    error = _apply_command(session, Command.model_validate_json(text))
                except ValidationError as exc:
                    error = f"Invalid command: {exc}"
            if error:
                outbox.put_nowait({"type": "error", "message": error})
    except WebSocketDisconnect:
        pass
    finally:
        unsubscribe()
        sender.cancel()
        try:
            with suppress(asyncio.CancelledError):
                await sender
        except Exception:
            logger.warning(
                "State stream for game %s stopped sending", game_id, exc_info=True
            )
