"""Score breakdowns and shareable text for a finished game."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from .game import GameState
from .models import Friend, Phase, Post

__all__ = [
    "FriendStats",
    "GameSummary",
    "PerformanceTier",
    "QuestionOutcome",
    "render_share_text",
    "summarize",
    "tier_for",
]

CONCISE_LIMIT = 320
DETAILED_LIMIT = 1024
_SNIPPET_LENGTH = 40


@dataclass(frozen=True)
class PerformanceTier:
    emoji: str
    label: str
    message: str


_TIERS = (
    (100, PerformanceTier("🏆", "Perfect score!", "You're a friend expert!")),
    (80, PerformanceTier("🎉", "Great job!", "You know your friends well!")),
    (60, PerformanceTier("👍", "Not bad!", "You're getting there!")),
    (0, PerformanceTier("🤔", "Better luck next time!", "Keep practicing!")),
)


def tier_for(percentage: int) -> PerformanceTier:
    for threshold, tier in _TIERS:
        if percentage >= threshold:
            return tier
    return _TIERS[-1][1]


@dataclass(frozen=True)
class FriendStats:
    friend: Friend
    total_for_friend: int
    correct_for_friend: int

    @property
    def accuracy(self) -> Optional[int]:
        """Rounded percentage, or ``None`` if the friend wrote no question."""

        if self.total_for_friend == 0:
            return None
        return _percent(self.correct_for_friend, self.total_for_friend)


@dataclass(frozen=True)
class QuestionOutcome:
    post: Post
    correct_friend: Friend
    chosen_friend: Optional[Friend]
    # Guesses outside the selection have no Friend record.
    chosen_id: Optional[int] = None

    @property
    def answered(self) -> bool:
        return self.chosen_id is not None or self.chosen_friend is not None

    @property
    def is_correct(self) -> bool:
        return (
            self.chosen_friend is not None
            and self.chosen_friend.id == self.correct_friend.id
        )


@dataclass(frozen=True)
class GameSummary:
    score: int
    total: int
    finished: bool
    per_friend: tuple[FriendStats, ...]
    outcomes: tuple[QuestionOutcome, ...]

    @property
    def percentage(self) -> int:
        return _percent(self.score, self.total) if self.total else 0

    @property
    def tier(self) -> PerformanceTier:
        return tier_for(self.percentage)

    @property
    def friends(self) -> tuple[Friend, ...]:
        return tuple(stats.friend for stats in self.per_friend)


def _percent(part: int, whole: int) -> int:
    # Round half up, matching how scores are shown to players.
    return (200 * part + whole) // (2 * whole)


def summarize(state: GameState) -> GameSummary:
    """Compute overall and per-friend results for ``state``.

    Intended for finished games; for a game in progress the unanswered
    questions count as not (yet) correct and ``finished`` is ``False``.
    """

    outcomes: List[QuestionOutcome] = []
    for question in state.questions:
        chosen_id = state.answers.get(question.post.id)
        chosen = question.option_for(chosen_id)
        if chosen is None and chosen_id is not None:
            chosen = _friend_by_id(state.selected_friends, chosen_id)
        outcomes.append(
            QuestionOutcome(
                post=question.post,
                correct_friend=question.correct_friend,
                chosen_friend=chosen,
                chosen_id=chosen_id,
            )
        )

    per_friend = []
    for friend in state.selected_friends:
        authored = [o for o in outcomes if o.correct_friend.id == friend.id]
        per_friend.append(
            FriendStats(
                friend=friend,
                total_for_friend=len(authored),
                correct_for_friend=sum(1 for o in authored if o.is_correct),
            )
        )

    return GameSummary(
        score=state.score,
        total=len(state.questions),
        finished=state.phase is Phase.FINISHED,
        per_friend=tuple(per_friend),
        outcomes=tuple(outcomes),
    )


def _friend_by_id(friends: tuple[Friend, ...], friend_id: int) -> Optional[Friend]:
    for friend in friends:
        if friend.id == friend_id:
            return friend
    return None


def render_share_text(
    summary: GameSummary,
    *,
    detailed: bool = False,
    limit: Optional[int] = None,
    app_name: str = "WhoCast",
) -> str:
    """Render ``summary`` as text for posting.

    The concise form fits a single cast (320 characters by default); the
    detailed form adds per-friend and per-question lines and is capped at
    1024 characters. Lines are dropped, never cut mid-way, to stay within
    the cap, and the same summary always renders the same text.
    """

    if detailed:
        return _detailed_text(
            summary, app_name, DETAILED_LIMIT if limit is None else limit
        )
    return _concise_text(
        summary, app_name, CONCISE_LIMIT if limit is None else limit
    )


def _concise_text(summary: GameSummary, app_name: str, limit: int) -> str:
    if not summary.finished or summary.total == 0:
        return _clip(
            f"I scored {summary.score}/{summary.total} on {app_name}! "
            "Can you beat my score? 🎯",
            limit,
        )
    head = (
        f"🎭 {app_name}: {summary.score}/{summary.total} "
        f"({summary.percentage}%) {summary.tier.emoji}"
    )
    tail = f"🎮 Play {app_name} and see how well you know your friends!"
    handles = [friend.handle for friend in summary.friends]
    text = head
    for keep in range(len(handles), -1, -1):
        names = handles[:keep]
        hidden = len(handles) - keep
        if hidden:
            names.append(f"+{hidden} more")
        text = f"{head}\n\n👥 Tested with: {' '.join(names)}\n\n{tail}"
        if len(text) <= limit:
            return text
    return _clip(text, limit)


def _detailed_text(summary: GameSummary, app_name: str, limit: int) -> str:
    tier = summary.tier
    base = [
        f"🎭 {app_name} results: {summary.score}/{summary.total} "
        f"({summary.percentage}%) {tier.emoji} {tier.label}",
        "👥 Friends: " + " ".join(f.handle for f in summary.friends),
    ]
    friend_lines = [
        f"{stats.friend.handle} {stats.correct_for_friend}/"
        f"{stats.total_for_friend} ({stats.accuracy}%)"
        for stats in summary.per_friend
        if stats.total_for_friend
    ]
    if friend_lines:
        base.append("📊 By friend:")
        base.extend(friend_lines)

    question_lines = [
        _outcome_line(index, outcome)
        for index, outcome in enumerate(summary.outcomes, start=1)
    ]
    if not question_lines:
        return _clip("\n".join(base), limit)
    base.append("📝 Questions:")

    for keep in range(len(question_lines), -1, -1):
        lines = base + question_lines[:keep]
        hidden = len(question_lines) - keep
        if hidden:
            lines.append(f"…and {hidden} more")
        text = "\n".join(lines)
        if len(text) <= limit:
            return text
    return _clip("\n".join(base), limit)


def _outcome_line(index: int, outcome: QuestionOutcome) -> str:
    author = outcome.correct_friend.handle
    if not outcome.answered:
        verdict = f"❔ {author} (unanswered)"
    elif outcome.is_correct:
        verdict = f"✅ {author}"
    else:
        guessed = (
            outcome.chosen_friend.handle
            if outcome.chosen_friend is not None
            else f"fid {outcome.chosen_id}"
        )
        verdict = f"❌ {author} (guessed {guessed})"
    return f'{index}. {verdict} "{_snippet(outcome.post.text)}"'


def _snippet(text: str) -> str:
    flat = " ".join(text.split())
    if len(flat) <= _SNIPPET_LENGTH:
        return flat
    return flat[: _SNIPPET_LENGTH - 1].rstrip() + "…"


def _clip(text: str, limit: int) -> str:
    if limit <= 0:
        return ""
    if len(text) <= limit:
        return text
    return text[: max(limit - 1, 0)] + "…"
