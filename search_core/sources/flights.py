"""Skyscanner flight offers via the scraping provider."""
from __future__ import annotations

from typing import Any, Dict

from search_core.config import SearchRequest
from search_core.normalizer import REVIEW_SCALE, FlightNormalizer

from .base import SourceConfig


def build_flight_input(request: SearchRequest) -> Dict[str, Any]:
    """Outbound leg always; the return leg only for round trips."""

    payload: Dict[str, Any] = {
        "origin.0": request.origin or "",
        "target.0": request.destination,
        "depart.0": request.start_date.isoformat(),
    }
    if request.end_date is not None:
        payload.update(
            {
                "origin.1": request.destination,
                "target.1": request.origin or "",
                "depart.1": request.end_date.isoformat(),
            }
        )
    return payload


FLIGHT_SOURCE = SourceConfig(
    name="skyscanner-flights",
    actor_ids=("jupri~skyscanner-flight",),
    build_input=build_flight_input,
    normalizer=FlightNormalizer,
    poll_policy=lambda settings: settings.flight_poll,
    rating_scale=REVIEW_SCALE,
    default_currency="USD",
    max_results=20,
)
