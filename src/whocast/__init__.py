"""WhoCast: a "who wrote this cast?" quiz over your Farcaster friends."""

from .directory import FriendDirectory, filter_friends, load_friends
from .errors import (
    ConfigError,
    DirectoryUnavailableError,
    InsufficientContentError,
    MissingCredentialsError,
    TransportError,
    WhoCastError,
)
from .game import (
    GameSession,
    GameState,
    begin_quiz,
    initial_state,
    reset_state,
    submit_answer,
    toggle_friend,
)
from .models import FRIENDS_PER_QUIZ, OPTIONS_PER_QUESTION, Friend, Phase, Post, Question
from .quiz import QuizGenerator, QuizSettings, generate_quiz, is_eligible
from .results import (
    FriendStats,
    GameSummary,
    render_share_text,
    summarize,
)

__all__ = [
    "FRIENDS_PER_QUIZ",
    "OPTIONS_PER_QUESTION",
    "ConfigError",
    "DirectoryUnavailableError",
    "Friend",
    "FriendDirectory",
    "FriendStats",
    "GameSession",
    "GameState",
    "GameSummary",
    "InsufficientContentError",
    "MissingCredentialsError",
    "Phase",
    "Post",
    "Question",
    "QuizGenerator",
    "QuizSettings",
    "TransportError",
    "WhoCastError",
    "begin_quiz",
    "filter_friends",
    "generate_quiz",
    "initial_state",
    "is_eligible",
    "load_friends",
    "render_share_text",
    "reset_state",
    "submit_answer",
    "summarize",
    "toggle_friend",
]
