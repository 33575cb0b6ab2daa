from __future__ import annotations

import random
import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
ROOT = TESTS_DIR.parent
for extra in (TESTS_DIR, ROOT / "src"):
    path_str = str(extra)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from fixtures import FakeSocialGraph, make_friend, make_posts  # noqa: E402
from whocast.models import Friend  # noqa: E402


@pytest.fixture
def friends() -> list[Friend]:
    """Five distinct friends, the size of a quiz selection."""

    names = ["alice", "bob", "carol", "dave", "erin"]
    return [make_friend(index + 1, name) for index, name in enumerate(names)]


@pytest.fixture
def graph(friends: list[Friend]) -> FakeSocialGraph:
    """A social graph where every selected friend has four eligible casts."""

    return FakeSocialGraph(
        posts={friend.id: make_posts(friend.id, 4) for friend in friends}
    )


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setenv("WHOCAST_HOME", str(tmp_path / "whocast-home"))
    monkeypatch.delenv("WHOCAST_CONFIG", raising=False)
    yield
