"""Search request parsing and validation."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
import re
from typing import Any, Dict, Mapping, Optional

from .errors import ClientError
from .models import SearchKind

_DATE_FORMATS = ["%Y-%m-%d", "%d.%m.%Y", "%d/%m/%Y", "%d.%m.%y"]
_SORT_KEYS = {"price", "-price", "rating", "-rating"}


@dataclass(frozen=True)
class SearchRequest:
    """Immutable description of one hotel or flight search."""

    kind: SearchKind
    destination: str
    start_date: date
    end_date: Optional[date] = None
    origin: Optional[str] = None
    party_count: int = 2
    room_count: int = 1
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_rating: Optional[float] = None
    sort_by: Optional[str] = None
    limit: Optional[int] = None
    raw_request: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def nights(self) -> int:
        if self.end_date is None:
            return 0
        return (self.end_date - self.start_date).days

    def search_params(self) -> Dict[str, Any]:
        """Echo of the request plus derived fields, in wire format."""

        if self.kind is SearchKind.HOTEL:
            return {
                "destination": self.destination,
                "checkInDate": self.start_date.isoformat(),
                "checkOutDate": self.end_date.isoformat() if self.end_date else "",
                "numberOfPeople": self.party_count,
                "rooms": self.room_count,
                "nights": self.nights,
            }
        return {
            "from": self.origin or "",
            "to": self.destination,
            "departDate": self.start_date.isoformat(),
            "returnDate": self.end_date.isoformat() if self.end_date else "",
            "passengers": self.party_count,
            "duration": self.nights,
        }


def _parse_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        return None
    text = str(value).strip()
    # ISO timestamps such as 2024-05-01T00:00:00Z carry the date in front
    if "T" in text:
        text = text.split("T", 1)[0]
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def _parse_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    cleaned = str(value).replace("€", "").replace("$", "").replace("%", "").strip()
    cleaned = re.sub(r"(?<=\d)\.(?=\d{3}(?:\D|$))", "", cleaned)
    cleaned = cleaned.replace(",", ".")
    try:
        return float(cleaned)
    except ValueError:
        return None


def _parse_int(value: Any, default: int, name: str) -> int:
    if value is None or value == "":
        return default
    try:
        parsed = int(float(value))
    except (TypeError, ValueError, OverflowError) as exc:
        raise ClientError(f"{name} must be a number") from exc
    if parsed < 1:
        raise ClientError(f"{name} must be at least 1")
    return parsed


def _required_date(payload: Mapping[str, Any], key: str) -> date:
    parsed = _parse_date(payload.get(key))
    if parsed is None:
        raise ClientError(f"{key} must be a valid date (YYYY-MM-DD)")
    return parsed


def _refinements(payload: Mapping[str, Any]) -> Dict[str, Any]:
    sort_by = payload.get("sortBy") or None
    if sort_by is not None and (not isinstance(sort_by, str) or sort_by not in _SORT_KEYS):
        raise ClientError(f"sortBy must be one of {', '.join(sorted(_SORT_KEYS))}")
    limit = payload.get("limit")
    return {
        "min_price": _parse_float(payload.get("minPrice")),
        "max_price": _parse_float(payload.get("maxPrice")),
        "min_rating": _parse_float(payload.get("minRating")),
        "sort_by": sort_by,
        "limit": _parse_int(limit, 0, "limit") if limit not in (None, "") else None,
    }


def create_hotel_request(payload: Mapping[str, Any]) -> SearchRequest:
    """Build and validate a hotel search from a JSON or form payload."""

    destination = str(payload.get("destination") or "").strip()
    if not destination or not payload.get("checkInDate") or not payload.get("checkOutDate"):
        raise ClientError("Missing required fields: destination, checkInDate, checkOutDate")

    check_in = _required_date(payload, "checkInDate")
    check_out = _required_date(payload, "checkOutDate")
    if check_out <= check_in:
        raise ClientError("Check-out date must be after check-in date")

    return SearchRequest(
        kind=SearchKind.HOTEL,
        destination=destination,
        start_date=check_in,
        end_date=check_out,
        party_count=_parse_int(payload.get("numberOfPeople"), 2, "numberOfPeople"),
        room_count=_parse_int(payload.get("rooms"), 1, "rooms"),
        raw_request=dict(payload),
        **_refinements(payload),
    )


def create_flight_request(payload: Mapping[str, Any]) -> SearchRequest:
    """Build and validate a flight search from a JSON or form payload."""

    origin = str(payload.get("from") or "").strip()
    destination = str(payload.get("to") or "").strip()
    if not origin or not destination or not payload.get("departDate"):
        raise ClientError("from, to, and departDate are required")

    depart = _required_date(payload, "departDate")
    return_date = None
    if payload.get("returnDate"):
        return_date = _required_date(payload, "returnDate")
        if return_date <= depart:
            raise ClientError("Return date must be after departure date")

    return SearchRequest(
        kind=SearchKind.FLIGHT,
        destination=destination,
        origin=origin,
        start_date=depart,
        end_date=return_date,
        party_count=_parse_int(payload.get("passengers"), 1, "passengers"),
        raw_request=dict(payload),
        **_refinements(payload),
    )


def create_request(kind: SearchKind | str, payload: Any) -> SearchRequest:
    """Unified helper dispatching on the search kind."""

    if not isinstance(payload, Mapping):
        raise ClientError("Request body must be a JSON object")
    if SearchKind(kind) is SearchKind.HOTEL:
        return create_hotel_request(payload)
    return create_flight_request(payload)
