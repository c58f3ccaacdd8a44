"""Board representation and win/draw evaluation for a 3x3 game."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional, Tuple

BOARD_SIZE = 9

WINNING_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


class Cell(str, Enum):
    EMPTY = ""
    USER = "X"
    AI = "O"


class Outcome(str, Enum):
    USER_WON = "user_won"
    AI_WON = "ai_won"
    DRAW = "draw"


# Immutable 9-tuple of cells; index i is row i // 3, column i % 3
Board = Tuple[Cell, ...]

EMPTY_BOARD: Board = (Cell.EMPTY,) * BOARD_SIZE


def empty_cells(board: Board) -> List[int]:
    return [i for i, c in enumerate(board) if c is Cell.EMPTY]


def is_full(board: Board) -> bool:
    return all(c is not Cell.EMPTY for c in board)


def place(board: Board, idx: int, cell: Cell) -> Board:
    """Return a copy of ``board`` with ``cell`` placed at ``idx``."""
    if not 0 <= idx < BOARD_SIZE:
        raise ValueError(f"Cell index {idx} out of range")
    if board[idx] is not Cell.EMPTY:
        raise ValueError("Cell already occupied")
    return board[:idx] + (cell,) + board[idx + 1 :]


def evaluate(board: Board) -> Optional[Outcome]:
    """Return the outcome of ``board``, or None while the game is still open.

    Lines are scanned in ``WINNING_LINES`` order and the first complete line
    decides. A board with two completed lines cannot arise from alternating
    play, so no further tie-break is applied.
    """
    for a, b, c in WINNING_LINES:
        v = board[a]
        if v is not Cell.EMPTY and v == board[b] == board[c]:
            return Outcome.USER_WON if v is Cell.USER else Outcome.AI_WON
    if is_full(board):
        return Outcome.DRAW
    return None
