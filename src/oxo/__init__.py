"""oxo package exposing the tic-tac-toe board, the minimax AI, and the web service."""

from .ai import MinimaxAI, choose_move
from .board import Board, LineKind, Mark, Outcome, WinResult
from .api import app

__all__ = [
    "Board",
    "LineKind",
    "Mark",
    "MinimaxAI",
    "Outcome",
    "WinResult",
    "app",
    "choose_move",
]
