"""Build "who wrote this cast?" questions from five friends' recent casts."""

from __future__ import annotations

import logging
import random
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .errors import InsufficientContentError, TransportError
from .models import FRIENDS_PER_QUIZ, OPTIONS_PER_QUESTION, Friend, Post, Question
from .neynar import SocialGraph

__all__ = [
    "QuizSettings",
    "QuizGenerator",
    "fetch_posts",
    "generate_quiz",
    "is_eligible",
]

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuizSettings:
    num_questions: int = 10
    posts_per_friend: int = 10
    min_length: int = 20
    max_length: int = 200
    max_workers: int = 5

    @classmethod
    def from_config(cls, config: Any) -> "QuizSettings":
        """Build settings from a :class:`whocast.config.QuizConfig`."""

        return cls(
            num_questions=config.num_questions,
            posts_per_friend=config.posts_per_friend,
            min_length=config.min_text_length,
            max_length=config.max_text_length,
            max_workers=config.max_workers,
        )


def is_eligible(text: str, min_length: int = 20, max_length: int = 200) -> bool:
    """Both bounds are exclusive."""

    return min_length < len(text) < max_length


def fetch_posts(
    source: SocialGraph,
    friends: Sequence[Friend],
    *,
    limit: int,
    max_workers: int = 5,
    logger: Optional[logging.Logger] = None,
) -> Dict[int, List[Post]]:
    """Fetch up to ``limit`` posts per friend concurrently.

    A transport failure for one friend leaves that friend with no posts and
    does not affect the others. Results are keyed by friend id in the order
    of ``friends``.
    """

    log = logger or _LOGGER
    results: Dict[int, List[Post]] = {}
    if not friends:
        return results
    workers = max(1, min(max_workers, len(friends)))
    with ThreadPoolExecutor(
        max_workers=workers, thread_name_prefix="whocast-posts"
    ) as pool:
        futures = [
            (friend, pool.submit(source.list_posts, friend.id, limit))
            for friend in friends
        ]
        for friend, future in futures:
            try:
                raw_posts = future.result()
            except TransportError as exc:
                log.warning(
                    "Skipping friend whose casts could not be fetched",
                    extra={"friend_id": friend.id, "error": str(exc)},
                )
                results[friend.id] = []
                continue
            results[friend.id] = _tag_posts(raw_posts, friend)
    return results


def _tag_posts(raw_posts: Sequence[Mapping[str, Any]], author: Friend) -> List[Post]:
    posts: List[Post] = []
    for raw in raw_posts or ():
        if not isinstance(raw, Mapping):
            continue
        post_id = raw.get("id")
        text = raw.get("text")
        if not post_id or not isinstance(text, str):
            continue
        posts.append(
            Post(
                id=str(post_id),
                text=text,
                author_id=author.id,
                timestamp=str(raw.get("timestamp") or ""),
            )
        )
    return posts


def _eligible_pool(
    posts_by_friend: Mapping[int, Sequence[Post]],
    authors: Mapping[int, Friend],
    *,
    min_length: int,
    max_length: int,
) -> List[Tuple[Post, Friend]]:
    pool: List[Tuple[Post, Friend]] = []
    seen: set[str] = set()
    for friend_id, posts in posts_by_friend.items():
        author = authors[friend_id]
        for post in posts:
            if post.id in seen:
                continue
            if not is_eligible(post.text, min_length, max_length):
                continue
            seen.add(post.id)
            pool.append((post, author))
    return pool


def _build_question(
    post: Post,
    author: Friend,
    friends: Sequence[Friend],
    rng: random.Random,
) -> Question:
    others = [friend for friend in friends if friend.id != author.id]
    distractors = rng.sample(others, OPTIONS_PER_QUESTION - 1)
    options = [author, *distractors]
    rng.shuffle(options)
    return Question(post=post, correct_friend=author, options=tuple(options))


def generate_quiz(
    source: SocialGraph,
    selected_friends: Sequence[Friend],
    *,
    settings: Optional[QuizSettings] = None,
    rng: Optional[random.Random] = None,
    logger: Optional[logging.Logger] = None,
) -> List[Question]:
    """Assemble ``settings.num_questions`` questions for exactly five friends.

    Posts are drawn uniformly without replacement from every eligible cast;
    each question offers its author plus the four other friends in random
    order. Raises :class:`~whocast.errors.InsufficientContentError` when the
    eligible pool is too small.
    """

    settings = settings or QuizSettings()
    rng = rng or random.Random()
    log = logger or _LOGGER

    friends = list(selected_friends)
    if len(friends) != FRIENDS_PER_QUIZ:
        raise ValueError(
            f"A quiz needs exactly {FRIENDS_PER_QUIZ} friends, got {len(friends)}"
        )
    authors = {friend.id: friend for friend in friends}
    if len(authors) != FRIENDS_PER_QUIZ:
        raise ValueError("Selected friends must have distinct ids")
    if settings.num_questions <= 0:
        raise ValueError("num_questions must be positive")

    posts_by_friend = fetch_posts(
        source,
        friends,
        limit=settings.posts_per_friend,
        max_workers=settings.max_workers,
        logger=log,
    )
    pool = _eligible_pool(
        posts_by_friend,
        authors,
        min_length=settings.min_length,
        max_length=settings.max_length,
    )
    log.info(
        "Collected eligible casts",
        extra={
            "fetched": sum(len(posts) for posts in posts_by_friend.values()),
            "eligible": len(pool),
            "required": settings.num_questions,
        },
    )
    if len(pool) < settings.num_questions:
        raise InsufficientContentError(len(pool), settings.num_questions)

    chosen = rng.sample(pool, settings.num_questions)
    return [_build_question(post, author, friends, rng) for post, author in chosen]


class QuizGenerator:
    """Callable bundling a collaborator, settings and a random source."""

    def __init__(
        self,
        source: SocialGraph,
        settings: Optional[QuizSettings] = None,
        *,
        rng: Optional[random.Random] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.source = source
        self.settings = settings or QuizSettings()
        self.rng = rng or random.Random()
        self.logger = logger or _LOGGER

    def __call__(self, selected_friends: Sequence[Friend]) -> List[Question]:
        return generate_quiz(
            self.source,
            selected_friends,
            settings=self.settings,
            rng=self.rng,
            logger=self.logger,
        )
