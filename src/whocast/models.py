"""Immutable records shared by the directory, quiz and game modules."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

FRIENDS_PER_QUIZ = 5
OPTIONS_PER_QUESTION = 5


@dataclass(frozen=True)
class Friend:
    """A followed account that can be picked as a quiz author."""

    id: int
    username: str
    display_name: str
    avatar_url: str = ""

    @property
    def handle(self) -> str:
        return f"@{self.username}"


@dataclass(frozen=True)
class Post:
    """A cast tagged with the id of the friend who wrote it."""

    id: str
    text: str
    author_id: int
    timestamp: str = ""


@dataclass(frozen=True)
class Question:
    """A post paired with its author and the five friends offered as answers."""

    post: Post
    correct_friend: Friend
    options: tuple[Friend, ...]

    def __post_init__(self) -> None:
        if self.post.author_id != self.correct_friend.id:
            raise ValueError("correct_friend must be the author of the post")
        if len(self.options) != OPTIONS_PER_QUESTION:
            raise ValueError(
                f"questions need exactly {OPTIONS_PER_QUESTION} options, "
                f"got {len(self.options)}"
            )
        ids = [friend.id for friend in self.options]
        if len(set(ids)) != len(ids):
            raise ValueError("options contain duplicate friends")
        if ids.count(self.correct_friend.id) != 1:
            raise ValueError("options must contain the correct friend once")

    def is_correct(self, friend_id: int | None) -> bool:
        return friend_id == self.correct_friend.id

    def option_for(self, friend_id: int | None) -> Friend | None:
        for friend in self.options:
            if friend.id == friend_id:
                return friend
        return None


class Phase(str, Enum):
    SELECTING = "selecting"
    PLAYING = "playing"
    FINISHED = "finished"
