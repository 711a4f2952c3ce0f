"""Registry of search sources keyed by search kind."""
from __future__ import annotations

from typing import Dict

from search_core.models import SearchKind

from .base import SourceConfig
from .flights import FLIGHT_SOURCE, build_flight_input
from .hotels import HOTEL_SOURCE, build_hotel_input

SOURCES: Dict[SearchKind, SourceConfig] = {
    SearchKind.HOTEL: HOTEL_SOURCE,
    SearchKind.FLIGHT: FLIGHT_SOURCE,
}

__all__ = [
    "FLIGHT_SOURCE",
    "HOTEL_SOURCE",
    "SOURCES",
    "SourceConfig",
    "build_flight_input",
    "build_hotel_input",
]
