from __future__ import annotations

import pytest

from fixtures import FakeSocialGraph, make_friend
from whocast.directory import FriendDirectory, filter_friends, load_friends
from whocast.errors import DirectoryUnavailableError, MissingCredentialsError
from whocast.models import Friend
from whocast.neynar import FriendPage


def _page(fids, next_cursor=None):
    return FriendPage(
        friends=tuple(make_friend(fid) for fid in fids), next_cursor=next_cursor
    )


def test_load_friends_merges_pages_and_dedupes_first_seen():
    graph = FakeSocialGraph(
        pages={
            None: _page([1, 2, 3], "c1"),
            "c1": FriendPage(
                friends=(
                    Friend(3, "imposter", "Other Three"),
                    make_friend(4),
                ),
                next_cursor=None,
            ),
        }
    )

    friends = load_friends(graph, owner_id=99)

    assert [f.id for f in friends] == [1, 2, 3, 4]
    assert friends[2].username == "friend3"
    assert [call[1] for call in graph.friend_calls] == [None, "c1"]


def test_load_friends_stops_at_target_count():
    graph = FakeSocialGraph(
        pages={
            None: _page(range(1, 4), "c1"),
            "c1": _page(range(4, 7), "c2"),
            "c2": _page(range(7, 10)),
        }
    )

    friends = load_friends(graph, owner_id=99, target_count=5, page_size=3)

    assert [f.id for f in friends] == [1, 2, 3, 4, 5]
    # Second request only asks for what is still missing.
    assert graph.friend_calls == [(99, None, 3), (99, "c1", 2)]


def test_load_friends_stops_on_repeated_cursor():
    graph = FakeSocialGraph(
        pages={
            None: _page([1], "loop"),
            "loop": _page([2], "loop"),
        }
    )

    friends = load_friends(graph, owner_id=5)

    assert [f.id for f in friends] == [1, 2]
    assert len(graph.friend_calls) == 2


def test_load_friends_respects_max_pages():
    graph = FakeSocialGraph(
        pages={
            None: _page([1], "a"),
            "a": _page([2], "b"),
            "b": _page([3], "c"),
        }
    )

    friends = load_friends(graph, owner_id=5, max_pages=2)

    assert [f.id for f in friends] == [1, 2]


def test_load_friends_failure_discards_partial_result():
    graph = FakeSocialGraph(
        pages={None: _page([1, 2], "next")},
        failing_cursors={"next"},
    )

    with pytest.raises(DirectoryUnavailableError) as excinfo:
        load_friends(graph, owner_id=5)

    assert "fid 5" in str(excinfo.value)


def test_load_friends_lets_configuration_errors_through():
    class _Unconfigured:
        def list_friends(self, owner_id, cursor, limit):
            raise MissingCredentialsError("NEYNAR_API_KEY not found")

    with pytest.raises(MissingCredentialsError):
        load_friends(_Unconfigured(), owner_id=5)


def test_load_friends_rejects_invalid_owner():
    with pytest.raises(ValueError):
        load_friends(FakeSocialGraph(), owner_id=0)


def test_load_friends_applies_query():
    graph = FakeSocialGraph(
        pages={
            None: FriendPage(
                friends=(
                    Friend(1, "vitalik", "Vitalik Buterin"),
                    Friend(2, "dwr", "Dan Romero"),
                    Friend(3, "v", "Varun"),
                )
            )
        }
    )

    assert [f.id for f in load_friends(graph, 9, "ROMERO")] == [2]
    assert [f.id for f in load_friends(graph, 9, "  ")] == [1, 2, 3]


def test_filter_friends_matches_username_or_display_name():
    friends = [
        Friend(1, "alice", "Alice Liddell"),
        Friend(2, "bob", "Robert"),
        Friend(3, "carol", "Caroline Alison"),
    ]

    assert [f.id for f in filter_friends(friends, "ali")] == [1, 3]
    assert [f.id for f in filter_friends(friends, "ROB")] == [2]
    assert filter_friends(friends, "zzz") == []
    assert filter_friends(friends, None) == friends


def test_directory_searches_snapshot_without_refetching():
    graph = FakeSocialGraph(pages={None: _page([1, 2, 3])})
    directory = FriendDirectory(graph, owner_id=7)

    assert not directory.loaded
    directory.load()
    calls = len(graph.friend_calls)

    assert [f.id for f in directory.search("friend2")] == [2]
    assert [f.id for f in directory.search("")] == [1, 2, 3]
    assert len(graph.friend_calls) == calls
    assert directory.get(3) == make_friend(3)
    assert directory.get(42) is None
    assert len(directory) == 3


def test_directory_keeps_previous_snapshot_when_reload_fails():
    graph = FakeSocialGraph(pages={None: _page([1, 2])})
    directory = FriendDirectory(graph, owner_id=7)
    directory.load()

    graph.failing_cursors.add(None)
    with pytest.raises(DirectoryUnavailableError):
        directory.load()

    assert [f.id for f in directory.friends] == [1, 2]
