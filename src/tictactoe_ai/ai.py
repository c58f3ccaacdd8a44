"""Exact minimax search and difficulty policies for the computer player."""

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from typing import Optional
import math
import random

from .board import Board, Cell, Outcome, empty_cells, evaluate, place

WIN_SCORE = 10
# Chance (in percent) that a Medium opponent plays the minimax move
MEDIUM_BEST_MOVE_PERCENT = 30


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class NoMovesAvailable(RuntimeError):
    """Raised when a move is requested on a board with no empty cell."""


# ---- minimax ----


@lru_cache(maxsize=None)
def score(board: Board, depth: int, maximizing: bool) -> int:
    """Minimax value of ``board`` from the AI's point of view.

    Wins are worth ``10 - depth`` and losses ``-10 + depth`` so that among
    equal outcomes the search prefers quicker wins and slower losses.
    ``maximizing`` is True when the AI is the side to move.
    """
    verdict = evaluate(board)
    if verdict is Outcome.AI_WON:
        return WIN_SCORE - depth
    if verdict is Outcome.USER_WON:
        return -WIN_SCORE + depth
    if verdict is Outcome.DRAW:
        return 0

    if maximizing:
        best = -math.inf
        for i in empty_cells(board):
            best = max(best, score(place(board, i, Cell.AI), depth + 1, False))
    else:
        best = math.inf
        for i in empty_cells(board):
            best = min(best, score(place(board, i, Cell.USER), depth + 1, True))
    return int(best)


def best_move(board: Board) -> int:
    """Return the optimal cell for the AI, or -1 if the board is full.

    Ties keep the lowest index.
    """
    best_score = -math.inf
    move = -1
    for i in empty_cells(board):
        value = score(place(board, i, Cell.AI), 0, False)
        if value > best_score:
            best_score, move = value, i
    return move


# ---- difficulty policies ----


def random_move(board: Board, rng: Optional[random.Random] = None) -> int:
    moves = empty_cells(board)
    if not moves:
        raise NoMovesAvailable("No empty cell left on the board")
    return (rng or random).choice(moves)


def select_ai_move(
    board: Board, difficulty: Difficulty, rng: Optional[random.Random] = None
) -> int:
    """Pick the AI's next cell according to ``difficulty``."""
    if not empty_cells(board):
        raise NoMovesAvailable("No empty cell left on the board")

    if difficulty is Difficulty.HARD:
        return best_move(board)
    if difficulty is Difficulty.MEDIUM:
        if (rng or random).randint(1, 100) <= MEDIUM_BEST_MOVE_PERCENT:
            return best_move(board)
        return random_move(board, rng)
    return random_move(board, rng)
