"""Load and search the list of accounts a user follows."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from .errors import DirectoryUnavailableError, TransportError
from .models import Friend
from .neynar import SocialGraph

__all__ = [
    "FriendDirectory",
    "filter_friends",
    "load_friends",
]

_LOGGER = logging.getLogger(__name__)


def filter_friends(
    friends: Iterable[Friend], query: Optional[str]
) -> List[Friend]:
    """Return friends whose username or display name contains ``query``.

    Matching is a case-insensitive substring test. A blank query keeps
    everything.
    """

    needle = (query or "").strip().casefold()
    if not needle:
        return list(friends)
    return [
        friend
        for friend in friends
        if needle in friend.username.casefold()
        or needle in friend.display_name.casefold()
    ]


def load_friends(
    source: SocialGraph,
    owner_id: int,
    query: Optional[str] = None,
    *,
    target_count: int = 500,
    page_size: int = 100,
    max_pages: Optional[int] = None,
    logger: Optional[logging.Logger] = None,
) -> List[Friend]:
    """Page through ``owner_id``'s following list.

    Paging stops once ``target_count`` distinct friends are collected, the
    collaborator reports no further cursor, a cursor repeats, or
    ``max_pages`` is reached. The first occurrence of a friend id wins.

    A failed page aborts the whole load with
    :class:`~whocast.errors.DirectoryUnavailableError`; nothing fetched so
    far is returned.
    """

    log = logger or _LOGGER
    if owner_id <= 0:
        raise ValueError("owner_id must be a positive fid")
    if target_count <= 0 or page_size <= 0:
        raise ValueError("target_count and page_size must be positive")

    collected: dict[int, Friend] = {}
    seen_cursors: set[str] = set()
    cursor: Optional[str] = None
    pages = 0

    while len(collected) < target_count:
        if max_pages is not None and pages >= max_pages:
            log.warning(
                "Stopping friend directory load at page limit",
                extra={"owner_id": owner_id, "max_pages": max_pages},
            )
            break
        limit = min(page_size, target_count - len(collected))
        try:
            page = source.list_friends(owner_id, cursor, limit)
        except TransportError as exc:
            log.error(
                "Friend directory page failed",
                extra={"owner_id": owner_id, "page": pages, "error": str(exc)},
            )
            raise DirectoryUnavailableError(
                f"Could not load the accounts followed by fid {owner_id}: {exc}"
            ) from exc
        pages += 1
        for friend in page.friends:
            collected.setdefault(friend.id, friend)

        next_cursor = page.next_cursor
        if not next_cursor:
            break
        if next_cursor in seen_cursors:
            log.warning(
                "Friend directory cursor repeated; stopping",
                extra={"owner_id": owner_id, "cursor": next_cursor},
            )
            break
        seen_cursors.add(next_cursor)
        cursor = next_cursor

    friends = list(collected.values())[:target_count]
    log.info(
        "Loaded friend directory",
        extra={"owner_id": owner_id, "pages": pages, "count": len(friends)},
    )
    return filter_friends(friends, query)


class FriendDirectory:
    """A fetched snapshot of a user's friends that can be searched locally."""

    def __init__(
        self,
        source: SocialGraph,
        owner_id: int,
        *,
        target_count: int = 500,
        page_size: int = 100,
        max_pages: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._source = source
        self.owner_id = owner_id
        self._target_count = target_count
        self._page_size = page_size
        self._max_pages = max_pages
        self._logger = logger or _LOGGER
        self._friends: tuple[Friend, ...] = ()
        self._loaded = False

    @property
    def friends(self) -> tuple[Friend, ...]:
        return self._friends

    @property
    def loaded(self) -> bool:
        return self._loaded

    def load(self) -> tuple[Friend, ...]:
        """Fetch a fresh snapshot; a failure keeps the previous one."""

        friends = load_friends(
            self._source,
            self.owner_id,
            target_count=self._target_count,
            page_size=self._page_size,
            max_pages=self._max_pages,
            logger=self._logger,
        )
        self._friends = tuple(friends)
        self._loaded = True
        return self._friends

    def search(self, query: Optional[str]) -> List[Friend]:
        return filter_friends(self._friends, query)

    def get(self, friend_id: int) -> Optional[Friend]:
        for friend in self._friends:
            if friend.id == friend_id:
                return friend
        return None

    def __len__(self) -> int:
        return len(self._friends)
