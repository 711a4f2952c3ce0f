"""TripAdvisor hotel listings via the scraping provider."""
from __future__ import annotations

from typing import Any, Dict

from search_core.config import SearchRequest
from search_core.normalizer import REVIEW_SCALE, HotelNormalizer

from .base import SourceConfig

MAX_ITEMS = 20


def build_hotel_input(request: SearchRequest) -> Dict[str, Any]:
    return {
        "searchTerm": request.destination,
        "contentType": "hotels",
        "checkInDate": request.start_date.isoformat(),
        "checkOutDate": request.end_date.isoformat() if request.end_date else "",
        "adults": request.party_count,
        "rooms": request.room_count,
        "maxItems": MAX_ITEMS,
        "language": "en",
        "currency": "USD",
    }


HOTEL_SOURCE = SourceConfig(
    name="tripadvisor-hotels",
    # the slash form is the legacy actor identity, kept as the alternate
    actor_ids=("maxcopell~tripadvisor", "maxcopell/tripadvisor"),
    build_input=build_hotel_input,
    normalizer=HotelNormalizer,
    poll_policy=lambda settings: settings.hotel_poll,
    rating_scale=REVIEW_SCALE,
    default_currency="USD",
    max_results=MAX_ITEMS,
)
