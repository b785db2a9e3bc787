"""Tests for the minimax AI."""

import math

import pytest

from oxo.ai import MinimaxAI, choose_move, search
from oxo.board import Board, Mark

EDGES = {(0, 1), (1, 0), (1, 2), (2, 1)}
CORNERS = {(0, 0), (0, 2), (2, 0), (2, 2)}


def test_ai_takes_immediate_win_on_row():
    board = Board.from_rows(["XX.", "OO.", "..."])
    assert choose_move(board, Mark.X) == (0, 2)


def test_ai_takes_immediate_win_on_column():
    board = Board.from_rows(["XO.", ".O.", "..X"])
    assert choose_move(board, Mark.O) == (2, 1)


@pytest.mark.parametrize("side", [Mark.X, Mark.O])
def test_empty_board_takes_centre(side):
    assert choose_move(Board(), side) == (1, 1)


def test_ai_prevents_fork_with_an_edge():
    board = Board.from_rows(["X..", ".O.", "..X"])
    assert choose_move(board, Mark.O) in EDGES


def test_ai_blocks_row_threat():
    board = Board.from_rows(["X..", ".O.", ".OX"])
    assert choose_move(board, Mark.X) == (0, 1)


def test_ai_blocks_diagonal_threat():
    board = Board.from_rows(["X..", "OX.", "..."])
    assert choose_move(board, Mark.O) == (2, 2)


def test_ai_answers_centre_with_corner():
    board = Board.from_rows(["...", ".X.", "..."])
    assert choose_move(board, Mark.O) in CORNERS


def test_choose_is_deterministic_and_read_only():
    board = Board.from_rows(["X..", "...", "..."])
    before = board.cells.copy()
    first = choose_move(board, Mark.O)
    second = choose_move(board, Mark.O)
    assert first == second
    assert board.cells == before
    assert board.is_cell_empty(*first)


def test_minimax_ai_wraps_choose_move():
    board = Board.from_rows(["XX.", "OO.", "..."])
    assert MinimaxAI(player=Mark.O).choose(board) == (1, 2)


def test_minimax_ai_rejects_empty_side():
    with pytest.raises(ValueError):
        MinimaxAI(player=Mark.EMPTY)


def test_choose_rejects_finished_board():
    with pytest.raises(ValueError):
        choose_move(Board.from_rows(["XXX", "OO.", "..."]), Mark.O)
    with pytest.raises(ValueError):
        choose_move(Board.from_rows(["XOX", "XOO", "OXX"]), Mark.X)


def test_choose_rejects_empty_side():
    with pytest.raises(ValueError):
        choose_move(Board(), Mark.EMPTY)


def test_search_scores_terminal_boards_by_depth():
    won = Board.from_rows(["XXX", "OO.", "..."])
    assert search(won, Mark.O, Mark.X, -math.inf, math.inf, 1) == 9
    assert search(won, Mark.X, Mark.O, -math.inf, math.inf, 3) == -7
    drawn = Board.from_rows(["XOX", "XOO", "OXX"])
    assert search(drawn, Mark.X, Mark.X, -math.inf, math.inf, 4) == 0


def test_search_scores_win_above_loss():
    # (0, 2) wins at once; (2, 2) lets O win on the next ply
    board = Board.from_rows(["XX.", "OO.", "..."])
    fast = board.clone()
    fast.attempt_move(0, 2, Mark.X)
    slow = board.clone()
    slow.attempt_move(2, 2, Mark.X)
    fast_score = search(fast, Mark.O, Mark.X, -math.inf, math.inf, 1)
    slow_score = search(slow, Mark.O, Mark.X, -math.inf, math.inf, 1)
    assert fast_score > slow_score


def test_self_play_is_a_draw():
    board = Board()
    side = Mark.X
    while not board.is_terminal():
        row, col = choose_move(board, side)
        assert board.attempt_move(row, col, side)
        side = side.opponent()
    assert board.evaluate().is_draw


def _never_loses(board, to_move, ai_side, seen):
    key = (tuple(board.cells), to_move)
    if key in seen:
        return
    seen.add(key)

    if board.is_terminal():
        result = board.evaluate()
        assert not (result.is_win and result.winner is ai_side.opponent()), str(board)
        return

    if to_move is ai_side:
        row, col = choose_move(board, ai_side)
        child = board.clone()
        assert child.attempt_move(row, col, ai_side)
        _never_loses(child, to_move.opponent(), ai_side, seen)
        return

    for row, col in board.empty_cells():
        child = board.clone()
        child.attempt_move(row, col, to_move)
        _never_loses(child, to_move.opponent(), ai_side, seen)


@pytest.mark.parametrize("ai_side", [Mark.X, Mark.O])
def test_ai_never_loses_against_any_opponent(ai_side):
    _never_loses(Board(), Mark.X, ai_side, set())


def test_choose_raises_when_no_candidate_cells(monkeypatch):
    board = Board.from_rows(["X..", "...", "..."])
    monkeypatch.setattr(board, "empty_cells", lambda: [])
    with pytest.raises(RuntimeError):
        choose_move(board, Mark.O)
