"""Game state and the transitions that drive a single play-through.

``GameState`` is immutable; each transition returns a replacement state, or
the very same object when the call is not valid for the current phase. Such
out-of-order calls are ignored rather than raised so duplicate or late
triggers from an interactive surface cannot corrupt a game.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Callable, Mapping, Optional, Sequence

from .models import FRIENDS_PER_QUIZ, Friend, Phase, Question

__all__ = [
    "GameState",
    "GameSession",
    "QuizFactory",
    "begin_quiz",
    "initial_state",
    "reset_state",
    "submit_answer",
    "toggle_friend",
]

_LOGGER = logging.getLogger(__name__)

QuizFactory = Callable[[Sequence[Friend]], Sequence[Question]]


@dataclass(frozen=True)
class GameState:
    selected_friends: tuple[Friend, ...] = ()
    questions: tuple[Question, ...] = ()
    current_index: int = 0
    score: int = 0
    phase: Phase = Phase.SELECTING
    answers: Mapping[str, int] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    @property
    def current_question(self) -> Optional[Question]:
        if self.phase is not Phase.PLAYING:
            return None
        if 0 <= self.current_index < len(self.questions):
            return self.questions[self.current_index]
        return None

    @property
    def answered_count(self) -> int:
        return len(self.answers)

    @property
    def ready_to_start(self) -> bool:
        return (
            self.phase is Phase.SELECTING
            and len(self.selected_friends) == FRIENDS_PER_QUIZ
        )

    def is_selected(self, friend: Friend) -> bool:
        return any(item.id == friend.id for item in self.selected_friends)


def initial_state() -> GameState:
    return GameState()


def reset_state(state: GameState | None = None) -> GameState:
    return initial_state()


def toggle_friend(state: GameState, friend: Friend) -> GameState:
    """Select or deselect ``friend``; selection is capped at five."""

    if state.phase is not Phase.SELECTING:
        return state
    if state.is_selected(friend):
        remaining = tuple(
            item for item in state.selected_friends if item.id != friend.id
        )
        return replace(state, selected_friends=remaining)
    if len(state.selected_friends) >= FRIENDS_PER_QUIZ:
        return state
    return replace(state, selected_friends=(*state.selected_friends, friend))


def begin_quiz(state: GameState, questions: Sequence[Question]) -> GameState:
    if not state.ready_to_start or not questions:
        return state
    # Answers are keyed by post id; a repeated id could never be answered.
    post_ids = {question.post.id for question in questions}
    if len(post_ids) != len(questions):
        return state
    return replace(
        state,
        questions=tuple(questions),
        current_index=0,
        score=0,
        answers=MappingProxyType({}),
        phase=Phase.PLAYING,
    )


def submit_answer(state: GameState, friend: Friend) -> GameState:
    """Record ``friend`` as the guess for the current question.

    Each question accepts one answer; a second answer for a post that
    already has one leaves the state unchanged.
    """

    question = state.current_question
    if question is None:
        return state
    post_id = question.post.id
    if post_id in state.answers:
        return state
    answers = dict(state.answers)
    answers[post_id] = friend.id
    score = state.score + (1 if question.is_correct(friend.id) else 0)
    next_index = state.current_index + 1
    phase = (
        Phase.FINISHED if next_index >= len(state.questions) else Phase.PLAYING
    )
    return replace(
        state,
        answers=MappingProxyType(answers),
        score=score,
        current_index=next_index,
        phase=phase,
    )


class GameSession:
    """Owns the game state for one player.

    All mutations replace :attr:`state` wholesale. ``start_quiz`` is guarded
    so only one quiz generation runs at a time; a call made while another is
    loading returns immediately without effect.
    """

    def __init__(
        self,
        quiz_factory: QuizFactory,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._quiz_factory = quiz_factory
        self._logger = logger or _LOGGER
        self._state = initial_state()
        self._loading = threading.Lock()
        self.last_error: Optional[Exception] = None

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def loading(self) -> bool:
        return self._loading.locked()

    def toggle_friend(self, friend: Friend) -> GameState:
        if self.loading:
            return self._state
        return self._apply(toggle_friend(self._state, friend), "toggle_friend")

    def submit_answer(self, friend: Friend) -> GameState:
        return self._apply(submit_answer(self._state, friend), "submit_answer")

    def reset(self) -> GameState:
        self.last_error = None
        self._state = reset_state(self._state)
        self._logger.debug("Game reset")
        return self._state

    def start_quiz(self) -> GameState:
        """Generate questions for the five selected friends and start playing.

        Errors raised by the quiz factory are recorded in :attr:`last_error`
        and re-raised; the state stays in the selecting phase.
        """

        state = self._state
        if not state.ready_to_start:
            self._logger.debug(
                "Ignoring start_quiz",
                extra={
                    "phase": state.phase.value,
                    "selected": len(state.selected_friends),
                },
            )
            return state
        if not self._loading.acquire(blocking=False):
            self._logger.debug("Ignoring start_quiz while a quiz is loading")
            return state
        try:
            self.last_error = None
            try:
                questions = self._quiz_factory(state.selected_friends)
            except Exception as exc:
                self.last_error = exc
                self._logger.warning(
                    "Quiz generation failed",
                    extra={"error": str(exc), "error_type": type(exc).__name__},
                )
                raise
            # A reset during loading discards the generated questions.
            if self._state is not state:
                return self._state
            self._state = begin_quiz(state, questions)
            if self._state is state:
                self._logger.warning(
                    "Quiz factory returned unusable questions",
                    extra={"questions": len(questions)},
                )
                return state
            self._logger.info(
                "Quiz started",
                extra={
                    "questions": self._state.total_questions,
                    "friend_ids": [f.id for f in state.selected_friends],
                },
            )
            return self._state
        finally:
            self._loading.release()

    def _apply(self, new_state: GameState, action: str) -> GameState:
        if new_state is self._state:
            self._logger.debug(
                "Ignored transition",
                extra={"action": action, "phase": self._state.phase.value},
            )
            return new_state
        self._state = new_state
        if new_state.phase is Phase.FINISHED and action == "submit_answer":
            self._logger.info(
                "Quiz finished",
                extra={
                    "score": new_state.score,
                    "total": new_state.total_questions,
                },
            )
        return new_state
