"""Exception types raised by the search pipeline."""
from __future__ import annotations

from typing import Optional


class SearchError(Exception):
    """Base class for all search pipeline errors."""


class ClientError(SearchError):
    """The incoming search request is invalid."""


class ConfigurationError(SearchError):
    """Required process configuration is missing or malformed."""


class ProviderUnavailable(SearchError):
    """The provider answered with a non-success status or could not be reached."""

    def __init__(self, message: str, status: Optional[int] = None, body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.body = body

    def __str__(self) -> str:
        base = super().__str__()
        if self.status is None:
            return base
        return f"{base} (HTTP {self.status}): {self.body[:200]}"


class ProviderJobFailed(SearchError):
    """The provider reported the run as failed or aborted."""

    def __init__(self, status: str) -> None:
        super().__init__(f"Provider run ended with status {status}")
        self.status = status


class ProviderJobTimedOut(SearchError):
    """The attempt budget ran out before the run reached a terminal status."""

    def __init__(self, attempts: int, last_status: str = "UNKNOWN") -> None:
        super().__init__(f"Provider run still {last_status} after {attempts} status checks")
        self.attempts = attempts
        self.last_status = last_status


class RecordMalformed(SearchError):
    """A single provider record cannot be normalised."""
