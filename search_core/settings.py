"""Process-wide configuration for provider access and polling policy."""
from __future__ import annotations

from dataclasses import dataclass, field
import os
from typing import Mapping, Optional

from .errors import ConfigurationError

DEFAULT_BASE_URL = "https://api.apify.com/v2"
_TOKEN_VARIABLES = ("APIFY_API_TOKEN", "APIFY_TOKEN")


@dataclass(frozen=True)
class PollPolicy:
    """How often and for how long a run is polled."""

    interval: float = 10.0
    max_attempts: int = 15
    wall_clock_limit: Optional[float] = None


@dataclass(frozen=True)
class Settings:
    """Read-only configuration handed to the provider client by reference."""

    api_token: str
    base_url: str = DEFAULT_BASE_URL
    http_timeout: float = 30.0
    missing_price: float = 0.0
    hotel_poll: PollPolicy = field(default_factory=PollPolicy)
    flight_poll: PollPolicy = field(default_factory=lambda: PollPolicy(max_attempts=24))

    def __post_init__(self) -> None:
        if not self.api_token or not self.api_token.strip():
            raise ConfigurationError("Provider API token is missing")
        if self.missing_price < 0:
            raise ConfigurationError("Missing-price default must not be negative")

    def __repr__(self) -> str:
        return f"Settings(base_url={self.base_url!r}, api_token='***')"


def _read_float(environ: Mapping[str, str], name: str, default: Optional[float]) -> Optional[float]:
    value = environ.get(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from exc


def _read_int(environ: Mapping[str, str], name: str, default: int) -> int:
    value = environ.get(name)
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from exc
    if parsed < 1:
        raise ConfigurationError(f"{name} must be at least 1")
    return parsed


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build :class:`Settings` from environment variables.

    Raises :class:`ConfigurationError` when the provider token is absent so
    that the problem surfaces before any outbound request is attempted.
    """

    env = os.environ if environ is None else environ
    token = next((env[name].strip() for name in _TOKEN_VARIABLES if env.get(name, "").strip()), "")
    if not token:
        raise ConfigurationError("APIFY_API_TOKEN is not configured")

    interval = _read_float(env, "SEARCH_POLL_INTERVAL", 10.0) or 0.0
    wall_clock = _read_float(env, "SEARCH_WALL_CLOCK_LIMIT", None)
    return Settings(
        api_token=token,
        base_url=(env.get("APIFY_BASE_URL") or DEFAULT_BASE_URL).rstrip("/"),
        http_timeout=_read_float(env, "SEARCH_HTTP_TIMEOUT", 30.0) or 30.0,
        missing_price=_read_float(env, "SEARCH_MISSING_PRICE", 0.0) or 0.0,
        hotel_poll=PollPolicy(
            interval=interval,
            max_attempts=_read_int(env, "HOTEL_POLL_MAX_ATTEMPTS", 15),
            wall_clock_limit=wall_clock,
        ),
        flight_poll=PollPolicy(
            interval=interval,
            max_attempts=_read_int(env, "FLIGHT_POLL_MAX_ATTEMPTS", 24),
            wall_clock_limit=wall_clock,
        ),
    )
