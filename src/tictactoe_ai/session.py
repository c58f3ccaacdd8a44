"""Game session state machine.

A session sequences a user move, a delayed AI reply and the terminal checks
in between. The transitions themselves are pure functions over an immutable
``SessionState``; ``GameSession`` only adds locking, the AI timer and the
observer fan-out on top of them.
"""

from __future__ import annotations

import logging
import random
import threading
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, List, Optional, Protocol

from .ai import Difficulty, select_ai_move
from .board import BOARD_SIZE, EMPTY_BOARD, Board, Cell, Outcome, evaluate, place

logger = logging.getLogger(__name__)

AI_THINK_DELAY = 0.5  # seconds


class Turn(str, Enum):
    USER = "user"
    AI = "ai"


class PhaseKind(str, Enum):
    IDLE = "idle"
    AWAITING_AI_MOVE = "awaiting_ai_move"
    FINISHED = "finished"
    FAILED = "failed"


@dataclass(frozen=True)
class Phase:
    """Top-level session phase; ``outcome``/``reason`` carry the payload."""

    kind: PhaseKind
    outcome: Optional[Outcome] = None
    reason: Optional[str] = None

    @classmethod
    def idle(cls) -> "Phase":
        return cls(PhaseKind.IDLE)

    @classmethod
    def awaiting_ai_move(cls) -> "Phase":
        return cls(PhaseKind.AWAITING_AI_MOVE)

    @classmethod
    def finished(cls, outcome: Outcome) -> "Phase":
        return cls(PhaseKind.FINISHED, outcome=outcome)

    @classmethod
    def failed(cls, reason: str) -> "Phase":
        return cls(PhaseKind.FAILED, reason=reason)


@dataclass(frozen=True)
class SessionState:
    board: Board = EMPTY_BOARD
    turn: Turn = Turn.USER
    phase: Phase = field(default_factory=Phase.idle)
    difficulty: Difficulty = Difficulty.EASY


# ---- pure transitions ----


def initial_state(difficulty: Difficulty = Difficulty.EASY) -> SessionState:
    return SessionState(difficulty=difficulty)


def apply_user_move(state: SessionState, index: int) -> SessionState:
    """Place the user's mark, or return ``state`` itself if the move is illegal."""
    if state.phase.kind is not PhaseKind.IDLE or state.turn is not Turn.USER:
        return state
    if isinstance(index, bool) or not isinstance(index, int):
        return state
    if not 0 <= index < BOARD_SIZE or state.board[index] is not Cell.EMPTY:
        return state

    board = place(state.board, index, Cell.USER)
    outcome = evaluate(board)
    if outcome is not None:
        return replace(state, board=board, phase=Phase.finished(outcome))
    return replace(state, board=board, turn=Turn.AI, phase=Phase.awaiting_ai_move())


def apply_ai_move(state: SessionState, index: int) -> SessionState:
    """Place the AI's mark; raises ``ValueError`` for an unusable index."""
    if state.phase.kind is not PhaseKind.AWAITING_AI_MOVE:
        return state

    board = place(state.board, index, Cell.AI)
    outcome = evaluate(board)
    if outcome is not None:
        return replace(state, board=board, phase=Phase.finished(outcome))
    return replace(state, board=board, turn=Turn.USER, phase=Phase.idle())


def with_difficulty(state: SessionState, difficulty: Difficulty) -> SessionState:
    return replace(state, difficulty=difficulty)


def fail(state: SessionState, reason: str) -> SessionState:
    return replace(state, phase=Phase.failed(reason))


# ---- scheduling ----


class Cancellable(Protocol):
    def cancel(self) -> None:
        ...


Scheduler = Callable[[float, Callable[[], None]], Cancellable]
Observer = Callable[[SessionState], None]


def timer_scheduler(delay: float, callback: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()
    return timer


# ---- session ----


class GameSession:
    """A single human-vs-computer game with an observable state stream.

    Commands never raise: illegal moves are ignored and internal faults
    surface as ``PhaseKind.FAILED`` in the published state. Every scheduled
    AI move is tagged with the generation it was scheduled in, and
    ``reset``/``close`` bump the generation so a late timer cannot touch a
    fresh board.
    """

    def __init__(
        self,
        difficulty: Difficulty = Difficulty.EASY,
        *,
        think_delay: float = AI_THINK_DELAY,
        scheduler: Optional[Scheduler] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.think_delay = think_delay
        self._scheduler: Scheduler = scheduler or timer_scheduler
        self._rng = rng or random.Random()
        self._lock = threading.RLock()
        self._state = initial_state(difficulty)
        self._generation = 0
        self._pending: Optional[Cancellable] = None
        self._observers: List[Observer] = []
        self._closed = False

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    # ---- observers ----

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register ``observer`` and immediately send it the latest state.

        Returns a callable that removes the observer again.
        """
        with self._lock:
            if not self._closed:
                self._observers.append(observer)
            self._notify(observer, self._state)

        def unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return unsubscribe

    # ---- commands ----

    def play_user_move(self, index: int) -> None:
        with self._lock:
            if self._closed:
                return
            current = self._state
            nxt = apply_user_move(current, index)
            if nxt is current:
                logger.debug(
                    "Ignoring move at %s during %s (%s turn)",
                    index,
                    current.phase.kind.value,
                    current.turn.value,
                )
                return

            logger.debug("User played cell %d", index)
            self._publish(nxt)
            if nxt.phase.kind is PhaseKind.FINISHED:
                logger.info("Game finished: %s", nxt.phase.outcome.value)
            else:
                self._schedule_ai_move()

    def set_difficulty(self, difficulty: Difficulty) -> None:
        with self._lock:
            if self._closed or self._state.difficulty is difficulty:
                return
            logger.info("Difficulty set to %s", difficulty.value)
            self._publish(with_difficulty(self._state, difficulty))

    def reset(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._invalidate_pending()
            self._publish(initial_state(self._state.difficulty))
            logger.info("Game reset (generation %d)", self._generation)

    def close(self) -> None:
        """Tear the session down; pending AI work is dropped and observers released."""
        with self._lock:
            if self._closed:
                return
            self._invalidate_pending()
            self._closed = True
            self._observers.clear()

    # ---- internals ----

    def _schedule_ai_move(self) -> None:
        generation = self._generation
        self._pending = self._scheduler(
            self.think_delay, lambda: self._run_ai_turn(generation)
        )

    def _invalidate_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        self._generation += 1

    def _run_ai_turn(self, generation: int) -> None:
        with self._lock:
            if self._closed or generation != self._generation:
                logger.debug("Discarding stale AI move from generation %d", generation)
                return
            self._pending = None
            state = self._state
            if state.phase.kind is not PhaseKind.AWAITING_AI_MOVE:
                return

            try:
                index = select_ai_move(state.board, state.difficulty, self._rng)
                nxt = apply_ai_move(state, index)
            except Exception as exc:
                logger.exception("AI move failed")
                self._publish(fail(state, str(exc) or exc.__class__.__name__))
                return

            logger.debug("AI (%s) played cell %d", state.difficulty.value, index)
            self._publish(nxt)
            if nxt.phase.kind is PhaseKind.FINISHED:
                logger.info("Game finished: %s", nxt.phase.outcome.value)

    def _publish(self, state: SessionState) -> None:
        self._state = state
        for observer in list(self._observers):
            self._notify(observer, state)

    def _notify(self, observer: Observer, state: SessionState) -> None:
        try:
            observer(state)
        except Exception:
            logger.exception("State observer %r failed", observer)
