"""Shared data structures used across polling, normalisation and responses."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from .errors import ProviderJobFailed, ProviderJobTimedOut

RawRecord = Mapping[str, Any]


class SearchKind(str, Enum):
    """The two kinds of search the service runs."""

    HOTEL = "hotel"
    FLIGHT = "flight"

    @property
    def result_key(self) -> str:
        """Key holding the result list in the wire response."""

        return "hotels" if self is SearchKind.HOTEL else "flights"


class RunStatus(str, Enum):
    """Run states reported by the job provider."""

    READY = "READY"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    ABORTED = "ABORTED"
    TIMING_OUT = "TIMING-OUT"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: Any) -> "RunStatus":
        """Map a provider status string to a member; unrecognised values are ``UNKNOWN``."""

        text = str(value or "").strip().upper().replace("_", "-")
        if text == "TIMED-OUT":
            return cls.TIMING_OUT
        for member in cls:
            if member.value == text:
                return member
        return cls.UNKNOWN

    @property
    def is_failure(self) -> bool:
        return self in (RunStatus.FAILED, RunStatus.ABORTED, RunStatus.TIMING_OUT)

    @property
    def is_terminal(self) -> bool:
        """Polling stops once a run reaches one of these states."""

        return self is RunStatus.SUCCEEDED or self.is_failure


@dataclass(frozen=True)
class RunHandle:
    """Identifies one in-flight provider run."""

    run_id: str
    dataset_id: str
    actor_id: str = ""


@dataclass(frozen=True)
class PollOutcome:
    """Result of resolving a run handle to a terminal state."""

    status: RunStatus
    attempts: int
    timed_out: bool = False

    @property
    def succeeded(self) -> bool:
        return not self.timed_out and self.status is RunStatus.SUCCEEDED

    @property
    def failed(self) -> bool:
        return not self.timed_out and self.status.is_failure

    def raise_for_status(self) -> None:
        """Raise unless the run succeeded."""

        if self.timed_out:
            raise ProviderJobTimedOut(self.attempts, self.status.value)
        if not self.succeeded:
            raise ProviderJobFailed(self.status.value)


@dataclass
class Price:
    amount: float
    currency: str
    formatted: str
    total: float
    total_formatted: str
    price_range: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "amount": self.amount,
            "currency": self.currency,
            "formatted": self.formatted,
            "total": self.total,
            "totalFormatted": self.total_formatted,
            "priceRange": self.price_range,
        }


@dataclass
class Location:
    address: str = ""
    neighborhood: str = ""
    distance_from_center: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "neighborhood": self.neighborhood,
            "distanceFromCenter": self.distance_from_center,
        }


@dataclass
class HotelResult:
    """Normalised hotel listing.

    Every field is populated even when the provider record omitted it, so
    consumers can rely on the shape regardless of where the result came from.
    """

    id: str
    name: str
    price: Price
    rating: float
    rating_text: str
    review_count: int
    location: Location
    images: List[str] = field(default_factory=list)
    amenities: List[str] = field(default_factory=list)
    url: str = ""
    ranking_position: str = ""
    awards: List[Any] = field(default_factory=list)
    description: str = ""
    hotel_class: float = 0.0
    search_params: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price.to_dict(),
            "rating": self.rating,
            "ratingText": self.rating_text,
            "reviewCount": self.review_count,
            "location": self.location.to_dict(),
            "images": list(self.images),
            "amenities": list(self.amenities),
            "url": self.url,
            "rankingPosition": self.ranking_position,
            "awards": list(self.awards),
            "description": self.description,
            "hotelClass": self.hotel_class,
            "searchParams": dict(self.search_params),
        }


@dataclass
class Airline:
    name: str
    code: str
    logo: str

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "code": self.code, "logo": self.logo}


@dataclass
class FlightEndpoint:
    time: str
    date: str
    airport: str
    city: str

    def to_dict(self) -> Dict[str, Any]:
        return {"time": self.time, "date": self.date, "airport": self.airport, "city": self.city}


@dataclass
class FlightResult:
    """Normalised flight option.

    Carries the rating, location and amenities fields of :class:`HotelResult`
    so both kinds share one result shape.
    """

    id: str
    airline: Airline
    flight_number: str
    departure: FlightEndpoint
    arrival: FlightEndpoint
    duration: str
    stops: int
    price: Price
    rating: float
    rating_text: str
    location: Location
    amenities: List[str] = field(default_factory=list)
    booking_url: str = ""
    search_params: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "airline": self.airline.to_dict(),
            "flightNumber": self.flight_number,
            "departure": self.departure.to_dict(),
            "arrival": self.arrival.to_dict(),
            "duration": self.duration,
            "stops": self.stops,
            "price": self.price.to_dict(),
            "rating": self.rating,
            "ratingText": self.rating_text,
            "location": self.location.to_dict(),
            "amenities": list(self.amenities),
            "bookingUrl": self.booking_url,
            "searchParams": dict(self.search_params),
        }


NormalizedResult = Union[HotelResult, FlightResult]

SOURCE_PROVIDER = "provider"
SOURCE_FALLBACK = "fallback"


@dataclass
class SearchResponse:
    """Uniform envelope returned for every completed search."""

    kind: SearchKind
    results: List[NormalizedResult]
    search_params: Dict[str, Any]
    source: str
    summary: Dict[str, float] = field(default_factory=dict)
    success: bool = True
    warning: Optional[str] = None

    @property
    def total_results(self) -> int:
        return len(self.results)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "success": self.success,
            self.kind.result_key: [result.to_dict() for result in self.results],
            "searchParams": dict(self.search_params),
            "totalResults": self.total_results,
            "source": self.source,
            "summary": dict(self.summary),
        }
        if self.warning:
            payload["warning"] = self.warning
        return payload
