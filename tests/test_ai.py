"""Tests for the minimax engine and the difficulty policies."""

import random

import pytest

from tictactoe_ai.ai import (
    Difficulty,
    NoMovesAvailable,
    best_move,
    random_move,
    score,
    select_ai_move,
)
from tictactoe_ai.board import EMPTY_BOARD, Cell, Outcome, empty_cells, evaluate, place

U, A, _ = Cell.USER, Cell.AI, Cell.EMPTY


class ScriptedRandom(random.Random):
    """Random source whose percentage roll is fixed."""

    def __init__(self, roll):
        super().__init__(0)
        self.roll = roll

    def randint(self, a, b):
        return self.roll


def swap_marks(board):
    flip = {U: A, A: U, _: _}
    return tuple(flip[c] for c in board)


def test_terminal_scores_prefer_fast_wins_and_slow_losses():
    ai_win = (A, A, A, U, U, _, _, _, _)
    user_win = (U, U, U, A, A, _, _, _, _)
    draw = (U, A, U, U, A, A, A, U, U)
    assert score(ai_win, 3, True) == 7
    assert score(user_win, 2, False) == -8
    assert score(draw, 5, True) == 0


def test_ai_takes_immediate_win():
    board = (A, A, _, U, U, _, _, _, _)
    assert best_move(board) == 2


def test_ai_blocks_immediate_loss():
    board = (U, U, _, _, A, _, _, _, _)
    assert best_move(board) == 2


def test_ai_answers_corner_opening_with_center():
    assert best_move(place(EMPTY_BOARD, 0, U)) == 4


def test_best_move_tie_break_keeps_lowest_index():
    # Every first move draws under perfect play.
    assert best_move(EMPTY_BOARD) == 0


def test_best_move_on_full_board():
    assert best_move((U, A, U, U, A, A, A, U, U)) == -1


def test_best_move_does_not_modify_board():
    board = (U, _, _, _, A, _, _, _, U)
    snapshot = tuple(board)
    best_move(board)
    assert board == snapshot


def test_hard_self_play_from_empty_board_is_draw():
    board = EMPTY_BOARD
    mover = U
    while evaluate(board) is None:
        if mover is A:
            board = place(board, best_move(board), A)
        else:
            # Mirror the board so the same search plays the user's side.
            board = place(board, best_move(swap_marks(board)), U)
        mover = A if mover is U else U
    assert evaluate(board) is Outcome.DRAW


def test_hard_never_loses_to_any_user_line():
    def explore(board):
        verdict = evaluate(board)
        if verdict is not None:
            assert verdict is not Outcome.USER_WON, board
            return
        for idx in empty_cells(board):
            after_user = place(board, idx, U)
            if evaluate(after_user) is not None:
                assert evaluate(after_user) is not Outcome.USER_WON, after_user
                continue
            explore(place(after_user, select_ai_move(after_user, Difficulty.HARD), A))

    explore(EMPTY_BOARD)


def test_hard_is_deterministic():
    board = (U, _, _, _, _, _, _, _, U)
    moves = {select_ai_move(board, Difficulty.HARD) for _ in range(20)}
    assert len(moves) == 1


def test_easy_only_returns_empty_cells_and_reaches_all_of_them():
    board = (U, A, _, U, A, _, _, U, _)
    rng = random.Random(42)
    picks = [select_ai_move(board, Difficulty.EASY, rng) for _ in range(300)]
    assert set(picks) == set(empty_cells(board))


def test_medium_roll_within_threshold_plays_best_move():
    board = (U, U, _, _, A, _, _, _, _)
    assert select_ai_move(board, Difficulty.MEDIUM, ScriptedRandom(30)) == 2


def test_medium_roll_above_threshold_falls_back_to_random():
    board = (U, U, _, _, A, _, _, _, _)
    rng = ScriptedRandom(31)
    picks = {select_ai_move(board, Difficulty.MEDIUM, rng) for _ in range(200)}
    assert picks == set(empty_cells(board))


def test_medium_plays_best_move_more_often_than_chance():
    board = (U, U, _, _, A, _, _, _, _)
    rng = random.Random(1234)
    trials = 3000
    picks = [select_ai_move(board, Difficulty.MEDIUM, rng) for _ in range(trials)]
    assert set(picks) <= set(empty_cells(board))
    # Expected share of the blocking move: 0.3 + 0.7 / 6 ~= 0.417
    share = picks.count(2) / trials
    assert 0.36 < share < 0.47


def test_random_move_uses_module_random_by_default():
    board = (U, A, U, A, U, A, A, U, _)
    assert random_move(board) == 8


@pytest.mark.parametrize("difficulty", list(Difficulty))
def test_full_board_has_no_ai_move(difficulty):
    with pytest.raises(NoMovesAvailable):
        select_ai_move((U, A, U, U, A, A, A, U, U), difficulty)
