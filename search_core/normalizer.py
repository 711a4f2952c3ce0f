"""Conversion of loosely typed provider records into stable result objects.

Every normalised field is resolved through an ordered list of
:class:`Candidate` lookups. The first candidate whose value parses wins;
when none does, the field receives a fixed default. Records that cannot be
identified at all are dropped instead of aborting the batch.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
import math
import re
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence, Tuple

from .config import SearchRequest
from .errors import RecordMalformed
from .models import (
    Airline,
    FlightEndpoint,
    FlightResult,
    HotelResult,
    Location,
    NormalizedResult,
    Price,
    RawRecord,
)

LOGGER = logging.getLogger(__name__)

_NUMBER_PATTERN = re.compile(r"\d[\d.,]*")
_THOUSANDS_COMMA = re.compile(r"\d{1,3}(?:,\d{3})+")
_THOUSANDS_DOT = re.compile(r"\d{1,3}(?:\.\d{3})+")
_CURRENCY_CODE_PATTERN = re.compile(r"\b([A-Z]{3})\b")
_CURRENCY_SYMBOLS = (("€", "EUR"), ("£", "GBP"), ("₹", "INR"), ("$", "USD"))
_SYMBOL_FOR_CURRENCY = {"USD": "$", "EUR": "€", "GBP": "£", "INR": "₹"}
PRICE_ON_REQUEST = "Price on request"

Parser = Callable[[Any], Any]


# -- primitive parsers -------------------------------------------------------
# Each parser returns ``None`` when the value is unusable so the next
# candidate gets a chance.


def parse_amount(value: Any) -> Optional[float]:
    """Extract the first non-negative number from a numeric or display value."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        match = _NUMBER_PATTERN.search(value)
        if not match:
            return None
        number_text = match.group().rstrip(".,")
        if "," in number_text and "." in number_text:
            if number_text.rfind(",") > number_text.rfind("."):
                number_text = number_text.replace(".", "").replace(",", ".")
            else:
                number_text = number_text.replace(",", "")
        elif "," in number_text:
            if _THOUSANDS_COMMA.fullmatch(number_text):
                number_text = number_text.replace(",", "")
            else:
                number_text = number_text.replace(",", ".")
        elif _THOUSANDS_DOT.fullmatch(number_text):
            number_text = number_text.replace(".", "")
        try:
            number = float(number_text)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number) or number < 0:
        return None
    return number


def as_int(value: Any) -> Optional[int]:
    number = parse_amount(value)
    return None if number is None else int(number)


def as_text(value: Any) -> Optional[str]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return None


def as_list(value: Any) -> Optional[List[Any]]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return None


def as_string_list(value: Any) -> Optional[List[str]]:
    """Accept lists of strings or of ``{"name": ...}`` mappings."""

    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()] or None
    if not isinstance(value, (list, tuple)):
        return None
    items: List[str] = []
    for item in value:
        if isinstance(item, Mapping):
            item = item.get("name") or item.get("title")
        text = as_text(item)
        if text:
            items.append(text)
    return items


def as_image_list(value: Any) -> Optional[List[str]]:
    if isinstance(value, str):
        return [value] if value.strip() else None
    if not isinstance(value, (list, tuple)):
        return None
    images: List[str] = []
    for item in value:
        if isinstance(item, Mapping):
            template = lookup(item, "photoSizeDynamic.urlTemplate") or item.get("urlTemplate")
            if isinstance(template, str):
                item = template.replace("{width}", "400").replace("{height}", "300")
            else:
                item = item.get("url") or lookup(item, "images.large.url")
        text = as_text(item)
        if text:
            images.append(text)
    return images


def as_duration(value: Any) -> Optional[str]:
    """Minutes become ``"Xh Ym"``; display strings pass through."""

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if not math.isfinite(value) or value < 0:
            return None
        hours, minutes = divmod(int(value), 60)
        return f"{hours}h {minutes}m"
    return as_text(value)


def as_currency_code(value: Any) -> Optional[str]:
    text = as_text(value)
    if text and re.fullmatch(r"[A-Za-z]{3}", text):
        return text.upper()
    return None


def as_airline_code(value: Any) -> Optional[str]:
    text = as_text(value)
    if text and re.fullmatch(r"[A-Za-z0-9]{2,3}", text):
        return text.upper()
    return None


def stops_from_segments(value: Any) -> Optional[int]:
    if isinstance(value, (list, tuple)):
        return max(0, len(value) - 1)
    return None


# -- candidate chains ---------------------------------------------------------


def lookup(record: Any, path: str) -> Any:
    """Follow a dotted path through mappings and list indices."""

    current = record
    for key in path.split("."):
        if isinstance(current, Mapping):
            if key not in current:
                return None
            current = current[key]
        elif isinstance(current, (list, tuple)) and key.isdigit():
            index = int(key)
            if index >= len(current):
                return None
            current = current[index]
        else:
            return None
    return current


@dataclass(frozen=True)
class Candidate:
    """One place a normalised field may be read from.

    Rating candidates may name the :class:`RatingScale` their values are
    reported on; otherwise the normaliser's own scale applies.
    """

    path: str
    parser: Parser = as_text
    scale: Optional["RatingScale"] = None

    def read(self, record: RawRecord) -> Any:
        raw = lookup(record, self.path)
        if raw is None:
            return None
        return self.parser(raw)


def first_of(record: RawRecord, candidates: Iterable[Candidate], default: Any = None) -> Any:
    """Return the first successfully parsed candidate value, else ``default``."""

    for candidate in candidates:
        value = candidate.read(record)
        if value is not None:
            return value
    return default


def _texts(*paths: str) -> Tuple[Candidate, ...]:
    return tuple(Candidate(path) for path in paths)


def _numbers(*paths: str) -> Tuple[Candidate, ...]:
    return tuple(Candidate(path, parse_amount) for path in paths)


# -- price and rating ----------------------------------------------------------


def detect_currency(text: Any, default: Optional[str] = None) -> Optional[str]:
    """Guess the currency of a display price by symbol, then by ISO code."""

    if not isinstance(text, str):
        return default
    for symbol, code in _CURRENCY_SYMBOLS:
        if symbol in text:
            return code
    match = _CURRENCY_CODE_PATTERN.search(text)
    if match:
        return match.group(1)
    return default


def format_money(amount: float, currency: str, decimals: Optional[int] = None) -> str:
    symbol = _SYMBOL_FOR_CURRENCY.get(currency, f"{currency} ")
    if decimals is None:
        number = ("%.2f" % amount).rstrip("0").rstrip(".")
    else:
        number = f"{amount:.{decimals}f}"
    return f"{symbol}{number}"


def build_price(
    record: RawRecord,
    amount_candidates: Sequence[Candidate],
    currency_candidates: Sequence[Candidate],
    units: int,
    default_currency: str,
    missing_amount: float,
    price_range: str = "",
) -> Price:
    """Resolve amount and currency together so the symbol scan sees the same text."""

    amount: Optional[float] = None
    source_text: Any = None
    for candidate in amount_candidates:
        raw = lookup(record, candidate.path)
        parsed = candidate.parser(raw) if raw is not None else None
        if parsed is not None:
            amount, source_text = parsed, raw
            break
    if amount is None:
        amount = missing_amount

    currency = first_of(record, currency_candidates) or detect_currency(source_text) or default_currency
    total = amount * max(units, 1)
    return Price(
        amount=amount,
        currency=currency,
        formatted=format_money(amount, currency) if amount > 0 else PRICE_ON_REQUEST,
        total=total,
        total_formatted=format_money(total, currency, decimals=0) if total > 0 else PRICE_ON_REQUEST,
        price_range=price_range,
    )


@dataclass(frozen=True)
class RatingScale:
    """Ordered threshold table turning a numeric rating into a label."""

    name: str
    thresholds: Tuple[Tuple[float, str], ...]
    maximum: float = 10.0
    positive_label: str = "Fair"
    empty_label: str = "No rating"

    def describe(self, rating: float) -> str:
        for threshold, label in self.thresholds:
            if rating >= threshold:
                return label
        return self.positive_label if rating > 0 else self.empty_label


REVIEW_SCALE = RatingScale(
    "review", ((9.0, "Excellent"), (8.0, "Very Good"), (7.0, "Good"), (6.0, "Average"))
)
STAR_SCALE = RatingScale(
    "star", ((4.5, "Excellent"), (4.0, "Very Good"), (3.5, "Good"), (3.0, "Average")), maximum=5.0
)


# -- record normalisers -----------------------------------------------------------


class ResultNormalizer:
    """Shared batch loop: preserve provider order, drop unusable records."""

    def __init__(
        self,
        rating_scale: RatingScale = REVIEW_SCALE,
        default_currency: str = "USD",
        missing_price: float = 0.0,
    ) -> None:
        self.rating_scale = rating_scale
        self.default_currency = default_currency
        self.missing_price = missing_price

    def normalize(self, records: Iterable[Any], request: SearchRequest) -> List[NormalizedResult]:
        results: List[NormalizedResult] = []
        dropped = 0
        for index, record in enumerate(records or []):
            if not isinstance(record, Mapping):
                dropped += 1
                continue
            try:
                results.append(self.normalize_record(record, index, request))
            except RecordMalformed as exc:
                LOGGER.debug("Dropping record %d: %s", index, exc)
                dropped += 1
            except (ArithmeticError, TypeError, ValueError, KeyError, AttributeError) as exc:
                LOGGER.warning("Failed to normalise record %d: %s", index, exc)
                dropped += 1
        if dropped:
            LOGGER.info("Dropped %d of %d provider records", dropped, dropped + len(results))
        return results

    def normalize_record(self, record: RawRecord, index: int, request: SearchRequest) -> NormalizedResult:
        raise NotImplementedError

    def _rating(self, record: RawRecord, candidates: Sequence[Candidate]) -> Tuple[float, str]:
        for candidate in candidates:
            value = candidate.read(record)
            if value is not None:
                rating = float(value)
                return rating, (candidate.scale or self.rating_scale).describe(rating)
        return 0.0, self.rating_scale.describe(0.0)


class HotelNormalizer(ResultNormalizer):
    NAME = _texts("name", "title", "hotelName")
    ID = _texts("id", "locationId", "hotelId")
    PRICE = (
        Candidate("price", parse_amount),
        Candidate("price.amount", parse_amount),
        Candidate("price.display", parse_amount),
        Candidate("priceForDisplay", parse_amount),
        Candidate("pricePerNight", parse_amount),
        Candidate("priceFrom", parse_amount),
        Candidate("priceRange", parse_amount),
    )
    CURRENCY = (Candidate("currency", as_currency_code), Candidate("price.currency", as_currency_code))
    PRICE_RANGE = _texts("priceRange", "priceLevel")
    # guest scores are out of 10, TripAdvisor bubbles out of 5
    RATING = (
        Candidate("guestRating", parse_amount, REVIEW_SCALE),
        Candidate("rating", parse_amount, STAR_SCALE),
        Candidate("reviewScore", parse_amount, REVIEW_SCALE),
        Candidate("bubbleRating.rating", parse_amount, STAR_SCALE),
        Candidate("averageRating", parse_amount, STAR_SCALE),
    )
    REVIEW_COUNT = tuple(
        Candidate(path, as_int)
        for path in ("numberOfReviews", "reviewCount", "numReviews", "reviews", "bubbleRating.count")
    )
    ADDRESS = _texts("address", "locationString", "location", "addressObj.street1")
    NEIGHBORHOOD = _texts("neighborhood", "neighbourhood", "neighborhoodLocations.0.name")
    DISTANCE = _texts("distanceFromCenter", "distance")
    IMAGES = (
        Candidate("images", as_image_list),
        Candidate("photos", as_image_list),
        Candidate("photo.images.large.url", as_image_list),
        Candidate("image", as_image_list),
        Candidate("imageUrl", as_image_list),
    )
    AMENITIES = (Candidate("amenities", as_string_list), Candidate("features", as_string_list))
    URL = _texts("url", "webUrl", "link")
    RANKING = _texts("ranking", "rankingPosition", "rankingString")
    AWARDS = (Candidate("awards", as_list),)
    DESCRIPTION = _texts("description")
    HOTEL_CLASS = _numbers("hotelClass", "stars", "starRating")

    def normalize_record(self, record: RawRecord, index: int, request: SearchRequest) -> HotelResult:
        name = first_of(record, self.NAME)
        if not name:
            raise RecordMalformed("hotel record has no name")

        rating, rating_text = self._rating(record, self.RATING)
        return HotelResult(
            id=first_of(record, self.ID, f"hotel_{index}"),
            name=name,
            price=build_price(
                record,
                self.PRICE,
                self.CURRENCY,
                units=request.nights,
                default_currency=self.default_currency,
                missing_amount=self.missing_price,
                price_range=first_of(record, self.PRICE_RANGE, ""),
            ),
            rating=rating,
            rating_text=rating_text,
            review_count=first_of(record, self.REVIEW_COUNT, 0),
            location=Location(
                address=first_of(record, self.ADDRESS, ""),
                neighborhood=first_of(record, self.NEIGHBORHOOD, ""),
                distance_from_center=first_of(record, self.DISTANCE, ""),
            ),
            images=first_of(record, self.IMAGES, []),
            amenities=first_of(record, self.AMENITIES, []),
            url=first_of(record, self.URL, ""),
            ranking_position=first_of(record, self.RANKING, ""),
            awards=first_of(record, self.AWARDS, []),
            description=first_of(record, self.DESCRIPTION, ""),
            hotel_class=first_of(record, self.HOTEL_CLASS, 0.0),
            search_params=request.search_params(),
        )


class FlightNormalizer(ResultNormalizer):
    AIRLINE = _texts("airline", "carrier", "carrierName", "operatingAirline", "airline.name")
    AIRLINE_CODE = tuple(
        Candidate(path, as_airline_code) for path in ("airlineCode", "carrierCode", "airline.code")
    )
    PRICE = (
        Candidate("price", parse_amount),
        Candidate("price_amount", parse_amount),
        Candidate("price.amount", parse_amount),
        Candidate("price_text", parse_amount),
        Candidate("price.formatted", parse_amount),
    )
    CURRENCY = (
        Candidate("currency", as_currency_code),
        Candidate("price_currency", as_currency_code),
        Candidate("price.currency", as_currency_code),
    )
    IDENTITY = AIRLINE + (
        Candidate("flightNumber"),
        Candidate("flight_number"),
        Candidate("legs", as_list),
    ) + PRICE
    ID = _texts("id", "flightId")
    FLIGHT_NUMBER = _texts("flightNumber", "flight_number")
    DEPARTURE_TIME = _texts(
        "departureTime", "departure_time", "outbound.departureTime", "legs.0.departure.time", "departure.time"
    )
    ARRIVAL_TIME = _texts(
        "arrivalTime", "arrival_time", "outbound.arrivalTime", "legs.0.arrival.time", "arrival.time"
    )
    ARRIVAL_DATE = _texts("arrivalDate", "arrival_date", "legs.0.arrival.date", "arrival.date")
    DEPARTURE_AIRPORT = _texts("departureAirport", "legs.0.departure.airport", "departure.airport")
    ARRIVAL_AIRPORT = _texts("arrivalAirport", "legs.0.arrival.airport", "arrival.airport")
    DEPARTURE_CITY = _texts("departureCity", "fromCity", "departure.city")
    ARRIVAL_CITY = _texts("arrivalCity", "toCity", "arrival.city")
    DURATION = tuple(
        Candidate(path, as_duration) for path in ("duration", "duration_text", "totalDuration", "legs.0.duration")
    )
    STOPS = (
        Candidate("stops", as_int),
        Candidate("stopCount", as_int),
        Candidate("stop_count", as_int),
        Candidate("legs.0.segments", stops_from_segments),
    )
    BOOKING_URL = _texts("bookingUrl", "booking_url", "deeplink", "deepLink")
    RATING = _numbers("rating", "score")
    AMENITIES = (Candidate("amenities", as_string_list), Candidate("features", as_string_list))

    def _route_currency(self, request: SearchRequest) -> str:
        origin = request.origin or ""
        if origin.endswith(", India") and request.destination.endswith(", India"):
            return "INR"
        return self.default_currency

    def normalize_record(self, record: RawRecord, index: int, request: SearchRequest) -> FlightResult:
        if first_of(record, self.IDENTITY) is None:
            raise RecordMalformed("flight record has no airline, flight number or price")

        origin = request.origin or ""
        depart_date = request.start_date.isoformat()
        airline_name = first_of(record, self.AIRLINE, "Unknown Airline")
        airline_code = first_of(record, self.AIRLINE_CODE) or (airline_name[:2].upper() or "XX")
        departure_city = first_of(record, self.DEPARTURE_CITY, origin)
        rating, rating_text = self._rating(record, self.RATING)

        return FlightResult(
            id=first_of(record, self.ID, f"flight_{index}"),
            airline=Airline(
                name=airline_name,
                code=airline_code,
                logo=f"https://logos.skyscnr.com/images/airlines/favicon/{airline_code}.png",
            ),
            flight_number=first_of(record, self.FLIGHT_NUMBER, f"{airline_code}{1000 + index}"),
            departure=FlightEndpoint(
                time=first_of(record, self.DEPARTURE_TIME, "08:00"),
                date=depart_date,
                airport=first_of(record, self.DEPARTURE_AIRPORT, origin),
                city=departure_city,
            ),
            arrival=FlightEndpoint(
                time=first_of(record, self.ARRIVAL_TIME, "12:00"),
                date=first_of(record, self.ARRIVAL_DATE, depart_date),
                airport=first_of(record, self.ARRIVAL_AIRPORT, request.destination),
                city=first_of(record, self.ARRIVAL_CITY, request.destination),
            ),
            duration=first_of(record, self.DURATION, "4h 0m"),
            stops=first_of(record, self.STOPS, 0),
            price=build_price(
                record,
                self.PRICE,
                self.CURRENCY,
                units=request.party_count,
                default_currency=self._route_currency(request),
                missing_amount=self.missing_price,
            ),
            rating=rating,
            rating_text=rating_text,
            location=Location(address=departure_city),
            amenities=first_of(record, self.AMENITIES, []),
            booking_url=first_of(
                record,
                self.BOOKING_URL,
                f"https://www.skyscanner.com/transport/flights/{origin}/{request.destination}/"
                f"{depart_date}/?adults={request.party_count}",
            ),
            search_params=request.search_params(),
        )
