"""Search core package exposing the provider-backed search pipeline."""
from .config import SearchRequest, create_flight_request, create_hotel_request, create_request
from .errors import (
    ClientError,
    ConfigurationError,
    ProviderJobFailed,
    ProviderJobTimedOut,
    ProviderUnavailable,
    RecordMalformed,
    SearchError,
)
from .models import RunHandle, RunStatus, SearchKind, SearchResponse
from .settings import PollPolicy, Settings, load_settings
from .workflow import SearchOrchestrator, run_search, search_flights, search_hotels

__all__ = [
    "ClientError",
    "ConfigurationError",
    "PollPolicy",
    "ProviderJobFailed",
    "ProviderJobTimedOut",
    "ProviderUnavailable",
    "RecordMalformed",
    "RunHandle",
    "RunStatus",
    "SearchError",
    "SearchKind",
    "SearchOrchestrator",
    "SearchRequest",
    "SearchResponse",
    "Settings",
    "create_flight_request",
    "create_hotel_request",
    "create_request",
    "load_settings",
    "run_search",
    "search_flights",
    "search_hotels",
]
