"""Exhaustive minimax AI with alpha-beta pruning for 3x3 tic-tac-toe."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

from .board import Board, Cell, Mark

logger = logging.getLogger(__name__)

# Terminal scores are WIN_SCORE - depth so faster wins (and slower losses) rank higher.
WIN_SCORE = 10
CENTER: Cell = (1, 1)


def choose_move(board: Board, side: Mark) -> Cell:
    """Pick the best cell for ``side`` on ``board``.

    The board is only read; every hypothetical move is played on a clone.
    Raises ValueError if ``side`` is not X or O, or if the board is already
    won or drawn.
    """
    if not isinstance(side, Mark) or not side.is_side:
        raise ValueError(f"Cannot search for side {side!r}")
    if board.is_terminal():
        raise ValueError("No move to choose on a finished board")

    # Opening: take the centre without searching
    if board.is_empty():
        logger.debug("Empty board, %s takes the centre", side.value)
        return CENTER

    candidates = board.empty_cells()

    # Immediate win short-circuits the full search
    for row, col in candidates:
        child = board.clone()
        child.attempt_move(row, col, side)
        result = child.evaluate()
        if result.is_win and result.winner is side:
            logger.debug("%s wins immediately at (%d, %d)", side.value, row, col)
            return row, col

    opponent = side.opponent()
    best_move: Optional[Cell] = None
    best_score = -math.inf
    stats = _SearchStats()

    for row, col in candidates:
        child = board.clone()
        child.attempt_move(row, col, side)
        score = search(child, opponent, side, -math.inf, math.inf, 1, stats)
        # Strictly greater: first cell in row-major order wins ties
        if score > best_score:
            best_score, best_move = score, (row, col)

    if best_move is None:
        raise RuntimeError("No valid moves available")
    logger.debug(
        "%s plays (%d, %d) with score %s after %d nodes",
        side.value,
        best_move[0],
        best_move[1],
        best_score,
        stats.nodes,
    )
    return best_move


def search(
    board: Board,
    side_to_move: Mark,
    searching_side: Mark,
    alpha: float,
    beta: float,
    depth: int,
    stats: Optional["_SearchStats"] = None,
) -> float:
    """Minimax value of ``board`` from ``searching_side``'s point of view."""
    if stats is not None:
        stats.nodes += 1

    result = board.evaluate()
    if result.is_win:
        return WIN_SCORE - depth if result.winner is searching_side else depth - WIN_SCORE
    if result.is_draw:
        return 0

    next_side = side_to_move.opponent()

    if side_to_move is searching_side:
        value = -math.inf
        for row, col in board.empty_cells():
            child = board.clone()
            child.attempt_move(row, col, side_to_move)
            score = search(child, next_side, searching_side, alpha, beta, depth + 1, stats)
            value = max(value, score)
            alpha = max(alpha, value)
            if beta <= alpha:
                break
        return value

    value = math.inf
    for row, col in board.empty_cells():
        child = board.clone()
        child.attempt_move(row, col, side_to_move)
        score = search(child, next_side, searching_side, alpha, beta, depth + 1, stats)
        value = min(value, score)
        beta = min(beta, value)
        if beta <= alpha:
            break
    return value


@dataclass
class _SearchStats:
    nodes: int = 0


@dataclass(frozen=True)
class MinimaxAI:
    """AI player bound to one side.

      - MinimaxAI(player=Mark.O)
      - choose(board) -> (row, col)
    """

    player: Mark

    def __post_init__(self) -> None:
        if not isinstance(self.player, Mark) or not self.player.is_side:
            raise ValueError(f"AI must play X or O, not {self.player!r}")

    def choose(self, board: Board) -> Cell:
        return choose_move(board, self.player)
