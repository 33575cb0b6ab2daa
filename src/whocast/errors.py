"""Exception hierarchy surfaced by whocast operations."""

from __future__ import annotations

__all__ = [
    "WhoCastError",
    "ConfigError",
    "MissingCredentialsError",
    "TransportError",
    "DirectoryUnavailableError",
    "InsufficientContentError",
]


class WhoCastError(RuntimeError):
    """Base class for errors that carry a user-facing message."""


class ConfigError(WhoCastError):
    """Raised when configuration parsing or validation fails."""


class MissingCredentialsError(ConfigError):
    """Raised when the Neynar API key cannot be resolved."""


class TransportError(WhoCastError):
    """Raised when a request to the social graph API fails or times out."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class DirectoryUnavailableError(WhoCastError):
    """Raised when the friend directory could not be loaded in full."""


class InsufficientContentError(WhoCastError):
    """Raised when too few eligible casts exist to build the quiz.

    The condition is retryable: picking different friends or trying again
    later may succeed.
    """

    retryable = True

    def __init__(self, available: int, required: int):
        super().__init__(
            "Not enough casts found "
            f"({available} usable, {required} needed). "
            "Please try again or pick different friends."
        )
        self.available = available
        self.required = required
