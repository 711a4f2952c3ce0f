"""Deterministic placeholder results used when the provider path fails."""
from __future__ import annotations

import logging
from typing import List, Optional
from urllib.parse import quote_plus

from .config import SearchRequest
from .models import (
    Airline,
    FlightEndpoint,
    FlightResult,
    HotelResult,
    Location,
    NormalizedResult,
    Price,
    SearchKind,
)
from .normalizer import REVIEW_SCALE, RatingScale, format_money

LOGGER = logging.getLogger(__name__)

# (label, nightly price, rating as share of the scale maximum, neighbourhood, amenities)
_HOTELS = [
    ("Grand Palace Hotel", 320.0, 0.91, "Old Town", ["Free WiFi", "Pool", "Spa", "Restaurant"]),
    ("City Center Inn", 180.0, 0.83, "City Centre", ["Free WiFi", "Breakfast", "Bar"]),
    ("Riverside Boutique Suites", 240.0, 0.76, "Riverside", ["Free WiFi", "Gym", "Room Service"]),
]

# (airline, code, fare, departure, arrival, duration, stops)
_FLIGHTS = [
    ("American Airlines", "AA", 420.0, "07:15", "12:15", "5h 0m", 0),
    ("Delta Air Lines", "DL", 515.0, "12:40", "19:10", "6h 30m", 1),
    ("Lufthansa", "LH", 610.0, "18:05", "02:20", "8h 15m", 1),
]


class FallbackProvider:
    """Produce a small, clearly labelled result set that satisfies the result schema."""

    def __init__(self, rating_scale: RatingScale = REVIEW_SCALE, default_currency: str = "USD") -> None:
        self.rating_scale = rating_scale
        self.default_currency = default_currency

    def generate(self, request: SearchRequest, reason: Optional[str] = None) -> List[NormalizedResult]:
        LOGGER.debug("Falling back to placeholder %s results: %s", request.kind.value, reason or "no details")
        if request.kind is SearchKind.HOTEL:
            return list(self._hotels(request))
        return list(self._flights(request))

    def _price(self, amount: float, units: int) -> Price:
        total = amount * max(units, 1)
        currency = self.default_currency
        return Price(
            amount=amount,
            currency=currency,
            formatted=format_money(amount, currency),
            total=total,
            total_formatted=format_money(total, currency, decimals=0),
        )

    def _hotels(self, request: SearchRequest) -> List[HotelResult]:
        hotels: List[HotelResult] = []
        for idx, (label, amount, share, neighborhood, amenities) in enumerate(_HOTELS, start=1):
            rating = round(self.rating_scale.maximum * share, 1)
            hotels.append(
                HotelResult(
                    id=f"fallback_hotel_{idx}",
                    name=f"{label} {request.destination}",
                    price=self._price(amount, request.nights),
                    rating=rating,
                    rating_text=self.rating_scale.describe(rating),
                    review_count=0,
                    location=Location(
                        address=f"{neighborhood}, {request.destination}",
                        neighborhood=neighborhood,
                        distance_from_center="",
                    ),
                    amenities=list(amenities),
                    url=f"https://www.tripadvisor.com/Search?q={quote_plus(request.destination)}",
                    description="Sample listing shown while live availability is unavailable.",
                    search_params=request.search_params(),
                )
            )
        return hotels

    def _flights(self, request: SearchRequest) -> List[FlightResult]:
        origin = request.origin or ""
        depart_date = request.start_date.isoformat()
        flights: List[FlightResult] = []
        for idx, (name, code, fare, departs, arrives, duration, stops) in enumerate(_FLIGHTS, start=1):
            flights.append(
                FlightResult(
                    id=f"fallback_flight_{idx}",
                    airline=Airline(
                        name=name,
                        code=code,
                        logo=f"https://logos.skyscnr.com/images/airlines/favicon/{code}.png",
                    ),
                    flight_number=f"{code}{1000 + idx}",
                    departure=FlightEndpoint(time=departs, date=depart_date, airport=origin, city=origin),
                    arrival=FlightEndpoint(
                        time=arrives, date=depart_date, airport=request.destination, city=request.destination
                    ),
                    duration=duration,
                    stops=stops,
                    price=self._price(fare, request.party_count),
                    rating=0.0,
                    rating_text=self.rating_scale.describe(0.0),
                    location=Location(address=origin),
                    booking_url=(
                        f"https://www.skyscanner.com/transport/flights/{quote_plus(origin)}/"
                        f"{quote_plus(request.destination)}/{depart_date}/?adults={request.party_count}"
                    ),
                    search_params=request.search_params(),
                )
            )
        return flights
