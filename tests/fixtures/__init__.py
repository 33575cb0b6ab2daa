"""Shared testing fixtures for the whocast test suite."""

from .neynar import RecordingHandler, build_client, user_payload  # noqa: F401
from .social_graph import FakeSocialGraph, make_friend, make_posts  # noqa: F401

__all__ = [
    "FakeSocialGraph",
    "RecordingHandler",
    "build_client",
    "make_friend",
    "make_posts",
    "user_payload",
]
