"""In-memory social graph used in place of the Neynar API."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from whocast.errors import TransportError
from whocast.models import Friend
from whocast.neynar import FriendPage


def make_friend(fid: int, username: Optional[str] = None) -> Friend:
    name = username or f"friend{fid}"
    return Friend(
        id=fid,
        username=name,
        display_name=name.title(),
        avatar_url=f"https://img.example/{fid}.png",
    )


def make_posts(
    fid: int, count: int, *, text: str = "this is a perfectly ordinary cast"
) -> List[Dict[str, Any]]:
    return [
        {
            "id": f"0x{fid:x}{index:02d}",
            "text": f"{text} #{index} from {fid}",
            "timestamp": f"2025-01-0{index % 9 + 1}T12:00:00Z",
        }
        for index in range(count)
    ]


@dataclass
class FakeSocialGraph:
    """Scriptable stand-in for :class:`whocast.neynar.NeynarClient`.

    ``pages`` maps a cursor (``None`` for the first page) to the page
    returned for it. ``posts`` maps friend ids to raw post payloads and
    ``failing`` lists friend ids whose post fetch raises.
    """

    pages: Dict[Optional[str], FriendPage] = field(default_factory=dict)
    posts: Dict[int, Sequence[Mapping[str, Any]]] = field(default_factory=dict)
    failing: set = field(default_factory=set)
    failing_cursors: set = field(default_factory=set)
    friend_calls: List[tuple] = field(default_factory=list)
    post_calls: List[tuple] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def list_friends(
        self, owner_id: int, cursor: Optional[str], limit: int
    ) -> FriendPage:
        self.friend_calls.append((owner_id, cursor, limit))
        if cursor in self.failing_cursors:
            raise TransportError("boom", status_code=502)
        return self.pages.get(cursor, FriendPage())

    def list_posts(self, friend_id: int, limit: int):
        with self._lock:
            self.post_calls.append((friend_id, limit))
        if friend_id in self.failing:
            raise TransportError(f"casts for {friend_id} unavailable")
        return list(self.posts.get(friend_id, ()))[:limit]

    def __enter__(self) -> "FakeSocialGraph":
        return self

    def __exit__(self, *exc_info: object) -> None:
        return None
