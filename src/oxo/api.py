"""FastAPI service for playing tic-tac-toe against the minimax AI or a second player."""

from __future__ import annotations

import logging
import random
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from fastapi import BackgroundTasks, FastAPI, HTTPException
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .ai import MinimaxAI
from .board import Board, Mark

logger = logging.getLogger(__name__)


@dataclass
class GameSession:
    """Container for an active game and its optional AI opponent.

    Two-player sessions have neither ``human`` nor ``ai``: every move is placed
    for whichever side is to move.
    """

    board: Board
    human: Optional[Mark]
    ai: Optional[MinimaxAI]
    move_log: List[Dict[str, int | str]] = field(default_factory=list)
    ai_pending: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


SESSIONS: Dict[str, GameSession] = {}
app = FastAPI(title="oxo", description="Tic-tac-toe against an unbeatable minimax AI")


AI_THINK_DELAY: Tuple[float, float] = (0.3, 0.8)
MODES: Tuple[str, ...] = ("pvai", "pvp")


def _parse_side(value: str) -> str:
    side = value.strip().upper()
    if side not in (Mark.X.value, Mark.O.value):
        raise ValueError(f"Unsupported side {value!r}. Choose X or O.")
    return side


class NewGameRequest(BaseModel):
    """Request payload for starting a new game."""

    model_config = ConfigDict(populate_by_name=True)

    human_side: str = Field(
        default="X",
        alias="humanSide",
        description="Side played by the human; X always moves first",
    )
    mode: str = Field(
        default="pvai",
        description='"pvai" plays against the AI, "pvp" is two players on one board',
    )

    @field_validator("human_side")
    @classmethod
    def ensure_side(cls, value: str) -> str:
        return _parse_side(value)

    @field_validator("mode")
    @classmethod
    def ensure_mode(cls, value: str) -> str:
        mode = value.strip().lower()
        if mode not in MODES:
            raise ValueError(
                f"Unsupported mode {value!r}. Choose one of {', '.join(MODES)}."
            )
        return mode


class MoveRequest(BaseModel):
    """Request payload for submitting a move on an existing game."""

    row: int = Field(ge=0, le=2)
    col: int = Field(ge=0, le=2)


class BestMoveRequest(BaseModel):
    """Request payload for analysing an arbitrary position."""

    board: List[str] = Field(
        description='Three rows using "X", "O" and "." for empty, e.g. ["X..", ".O.", "..X"]'
    )
    side: str

    @field_validator("board")
    @classmethod
    def ensure_shape(cls, value: List[str]) -> List[str]:
        if len(value) != 3 or any(len(row) != 3 for row in value):
            raise ValueError("Board must have three rows of three cells")
        return value

    @field_validator("side")
    @classmethod
    def ensure_side(cls, value: str) -> str:
        return _parse_side(value)


def current_player(board: Board) -> Mark:
    """Side to move, derived from the marks on the board (X moves first)."""
    x_count = board.cells.count(Mark.X)
    o_count = board.cells.count(Mark.O)
    return Mark.X if x_count == o_count else Mark.O


def _create_session(human: Mark, mode: str = "pvai") -> Tuple[str, GameSession]:
    """Create a new game session and register it for later access."""

    if mode == "pvp":
        session = GameSession(board=Board(), human=None, ai=None)
    else:
        session = GameSession(
            board=Board(), human=human, ai=MinimaxAI(player=human.opponent())
        )
    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = session
    if session.human is None:
        logger.info("Created two-player game %s", session_id)
    else:
        logger.info("Created game %s, human plays %s", session_id, human.value)
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    try:
        return SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc


def _ai_to_move(session: GameSession) -> bool:
    if session.ai is None:
        return False
    board = session.board
    return not board.is_terminal() and current_player(board) is session.ai.player


def _run_ai_turn(game_id: str) -> None:
    session = SESSIONS.get(game_id)
    if not session:
        return

    time.sleep(max(0.0, random.uniform(*AI_THINK_DELAY)))

    with session.lock:
        try:
            if not _ai_to_move(session):
                return
            row, col = session.ai.choose(session.board)
            session.board.attempt_move(row, col, session.ai.player)
            session.move_log.append(
                {"player": session.ai.player.value, "row": row, "col": col}
            )
            _log_if_finished(game_id, session)
        finally:
            session.ai_pending = False


def _log_if_finished(game_id: str, session: GameSession) -> None:
    result = session.board.evaluate()
    if result.is_win:
        logger.info("Game %s won by %s", game_id, result.winner.value)
    elif result.is_draw:
        logger.info("Game %s drawn", game_id)


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        board = session.board
        result = board.evaluate()

        if result.is_win:
            status = "won"
        elif result.is_draw:
            status = "draw"
        else:
            status = "in_progress"

        winning_line: Optional[Dict[str, object]] = None
        if result.is_win:
            winning_line = {
                "kind": result.line.value,
                "index": result.index,
                "cells": [list(cell) for cell in result.cells],
            }

        state: Dict[str, object] = {
            "id": game_id,
            "mode": "pvp" if session.ai is None else "pvai",
            "humanSide": session.human.value if session.human is not None else None,
            "aiSide": session.ai.player.value if session.ai is not None else None,
            "currentPlayer": (
                current_player(board).value if status == "in_progress" else None
            ),
            "board": [[c.value if c.is_side else "" for c in row] for row in board.rows()],
            "status": status,
            "winner": result.winner.value if result.is_win else None,
            "winningLine": winning_line,
            "moveLog": list(session.move_log),
            "aiPending": session.ai_pending,
        }
        if session.move_log:
            state["lastMove"] = session.move_log[-1]
        return state


def _schedule_ai(
    game_id: str, session: GameSession, background_tasks: Optional[BackgroundTasks]
) -> None:
    # Caller holds session.lock
    if _ai_to_move(session):
        session.ai_pending = True
        if background_tasks is not None:
            background_tasks.add_task(_run_ai_turn, game_id)


def _apply_player_move(
    game_id: str,
    session: GameSession,
    row: int,
    col: int,
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    with session.lock:
        board = session.board
        if board.is_terminal():
            raise HTTPException(status_code=400, detail="Game already finished")

        if session.ai_pending:
            raise HTTPException(status_code=400, detail="AI is completing its move")

        mover = current_player(board)
        if session.human is not None and mover is not session.human:
            raise HTTPException(status_code=400, detail="It is not your turn")

        if not board.attempt_move(row, col, mover):
            raise HTTPException(
                status_code=400, detail=f"Cell ({row}, {col}) is already taken"
            )

        session.move_log.append({"player": mover.value, "row": row, "col": col})
        _log_if_finished(game_id, session)
        _schedule_ai(game_id, session, background_tasks)


@app.post("/api/game")
def create_game(
    request: NewGameRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    game_id, session = _create_session(Mark(request.human_side), request.mode)
    with session.lock:
        _schedule_ai(game_id, session, background_tasks)
    return _serialize_session(game_id, session)


@app.get("/api/game/{game_id}")
def get_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/move")
def make_move(
    game_id: str, request: MoveRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    session = _get_session(game_id)
    _apply_player_move(game_id, session, request.row, request.col, background_tasks)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/reset")
def reset_game(game_id: str, background_tasks: BackgroundTasks) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        if session.ai_pending:
            raise HTTPException(status_code=400, detail="AI is completing its move")
        session.board.reset()
        session.move_log.clear()
        logger.info("Reset game %s", game_id)
        _schedule_ai(game_id, session, background_tasks)
    return _serialize_session(game_id, session)


@app.post("/api/best-move")
def best_move(request: BestMoveRequest) -> Dict[str, int]:
    try:
        board = Board.from_rows(request.board)
        row, col = MinimaxAI(player=Mark(request.side)).choose(board)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"row": row, "col": col}
