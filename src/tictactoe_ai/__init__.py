"""Tic-tac-toe engine with a minimax opponent and a FastAPI front door."""

from .ai import Difficulty, best_move, select_ai_move
from .board import Cell, Outcome, evaluate
from .session import GameSession, Phase, PhaseKind, SessionState, Turn
from .ui import app

__all__ = [
    "Cell",
    "Difficulty",
    "GameSession",
    "Outcome",
    "Phase",
    "PhaseKind",
    "SessionState",
    "Turn",
    "app",
    "best_move",
    "evaluate",
    "select_ai_move",
]
