"""Neynar-backed access to the Farcaster social graph.

Only two operations are needed by the game: paging through the accounts a
user follows and reading a friend's most recent casts. Both are described by
the :class:`SocialGraph` protocol so tests and alternative backends can stand
in for :class:`NeynarClient`.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Protocol, Sequence

import httpx
from dotenv import load_dotenv

from .config import MAX_PAGE_SIZE, NeynarConfig
from .errors import MissingCredentialsError, TransportError
from .models import Friend

__all__ = [
    "FriendPage",
    "SocialGraph",
    "NeynarClient",
    "load_client",
    "parse_friend",
]

FOLLOWING_PATH = "/v2/farcaster/following"
CASTS_PATH = "/v2/farcaster/feed/user/replies_and_recasts"

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class FriendPage:
    """One page of the following list."""

    friends: tuple[Friend, ...] = ()
    next_cursor: Optional[str] = None


class SocialGraph(Protocol):
    def list_friends(
        self, owner_id: int, cursor: Optional[str], limit: int
    ) -> FriendPage: ...

    def list_posts(
        self, friend_id: int, limit: int
    ) -> Sequence[Mapping[str, Any]]: ...


@dataclass
class NeynarClient:
    """Thin synchronous client over the Neynar v2 REST API.

    The underlying ``httpx.Client`` is safe to share between the worker
    threads used for fetching casts.
    """

    api_key: str
    base_url: str = "https://api.neynar.com"
    timeout: float = 10.0
    http_client: Optional[httpx.Client] = None
    logger: logging.Logger = field(default=_LOGGER, repr=False)

    def __post_init__(self) -> None:
        if self.http_client is None:
            self.http_client = httpx.Client(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={
                    "x-api-key": self.api_key,
                    "accept": "application/json",
                },
            )

    def __enter__(self) -> "NeynarClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self.http_client is not None:
            self.http_client.close()

    def list_friends(
        self, owner_id: int, cursor: Optional[str] = None, limit: int = 100
    ) -> FriendPage:
        params: dict[str, Any] = {
            "fid": owner_id,
            "limit": _clamp_limit(limit),
        }
        if cursor:
            params["cursor"] = cursor
        payload = self._get_json(FOLLOWING_PATH, params)
        friends = tuple(
            friend
            for friend in (parse_friend(item) for item in _as_list(payload, "users"))
            if friend is not None
        )
        next_block = payload.get("next") or {}
        next_cursor = (
            next_block.get("cursor") if isinstance(next_block, Mapping) else None
        )
        return FriendPage(friends=friends, next_cursor=next_cursor or None)

    def list_posts(self, friend_id: int, limit: int = 10) -> list[dict[str, Any]]:
        params = {
            "fid": friend_id,
            "limit": _clamp_limit(limit),
            "filter": "all",
        }
        payload = self._get_json(CASTS_PATH, params)
        posts: list[dict[str, Any]] = []
        for cast in _as_list(payload, "casts"):
            if not isinstance(cast, Mapping):
                continue
            posts.append(
                {
                    "id": cast.get("hash"),
                    "text": cast.get("text"),
                    "timestamp": cast.get("timestamp") or "",
                }
            )
        return posts

    def _get_json(self, path: str, params: Mapping[str, Any]) -> Mapping[str, Any]:
        assert self.http_client is not None
        try:
            response = self.http_client.get(path, params=params)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            self.logger.warning(
                "Neynar request timed out", extra={"path": path}
            )
            raise TransportError(f"Neynar request to {path} timed out") from exc
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            self.logger.warning(
                "Neynar request failed",
                extra={"path": path, "status_code": status},
            )
            raise TransportError(
                f"Neynar API error {status} for {path}", status_code=status
            ) from exc
        except httpx.HTTPError as exc:
            self.logger.warning(
                "Neynar request errored",
                extra={"path": path, "error": str(exc)},
            )
            raise TransportError(f"Neynar request to {path} failed: {exc}") from exc
        try:
            payload = response.json()
        except ValueError as exc:
            raise TransportError(
                f"Neynar returned invalid JSON for {path}",
                status_code=response.status_code,
            ) from exc
        if not isinstance(payload, Mapping):
            raise TransportError(
                f"Neynar returned an unexpected payload for {path}",
                status_code=response.status_code,
            )
        return payload


def parse_friend(item: Any) -> Optional[Friend]:
    """Build a :class:`Friend` from a following-list entry.

    Entries are usually ``{"user": {...}}`` follow objects; bare user objects
    are accepted as well. Entries without a usable fid are dropped.
    """

    if not isinstance(item, Mapping):
        return None
    user = item.get("user", item)
    if not isinstance(user, Mapping):
        return None
    fid = user.get("fid")
    if isinstance(fid, bool):
        return None
    try:
        fid = int(fid)
    except (TypeError, ValueError):
        return None
    username = str(user.get("username") or "")
    return Friend(
        id=fid,
        username=username,
        display_name=str(user.get("display_name") or username),
        avatar_url=str(user.get("pfp_url") or ""),
    )


def load_client(
    config: NeynarConfig, *, env: Mapping[str, str] | None = None
) -> NeynarClient:
    """Create a client using the API key from the environment or ``.env``."""

    if env is None:
        load_dotenv()
        env = os.environ
    api_key = (env.get(config.api_key_env) or "").strip()
    if not api_key:
        raise MissingCredentialsError(
            f"{config.api_key_env} not found in environment. "
            "Set it or add it to .env"
        )
    return NeynarClient(
        api_key=api_key,
        base_url=config.base_url,
        timeout=config.timeout_seconds,
    )


def _clamp_limit(limit: int) -> int:
    return max(1, min(int(limit), MAX_PAGE_SIZE))


def _as_list(payload: Mapping[str, Any], key: str) -> list[Any]:
    value = payload.get(key)
    return list(value) if isinstance(value, list) else []
