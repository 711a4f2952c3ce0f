import unittest
from datetime import date

from search_core.config import _parse_date, _parse_float, create_flight_request, create_hotel_request, create_request
from search_core.errors import ClientError, ConfigurationError
from search_core.models import SearchKind
from search_core.settings import load_settings


class ParseHelperTests(unittest.TestCase):
    def test_parse_float_accepts_european_formats(self) -> None:
        for raw, expected in [("1.200€", 1200.0), ("1.200,50", 1200.5), ("$250", 250.0), (80, 80.0)]:
            with self.subTest(raw=raw):
                self.assertEqual(_parse_float(raw), expected)

    def test_parse_date_accepts_common_formats(self) -> None:
        for raw in ["2025-07-01", "01.07.2025", "01/07/2025", "2025-07-01T00:00:00Z"]:
            with self.subTest(raw=raw):
                self.assertEqual(_parse_date(raw), date(2025, 7, 1))
        self.assertIsNone(_parse_date("next tuesday"))


class HotelRequestTests(unittest.TestCase):
    def test_defaults_and_derived_nights(self) -> None:
        request = create_hotel_request(
            {"destination": " Paris ", "checkInDate": "2025-07-01", "checkOutDate": "2025-07-05"}
        )
        self.assertEqual(request.kind, SearchKind.HOTEL)
        self.assertEqual(request.destination, "Paris")
        self.assertEqual(request.party_count, 2)
        self.assertEqual(request.room_count, 1)
        self.assertEqual(request.nights, 4)
        self.assertEqual(
            request.search_params(),
            {
                "destination": "Paris",
                "checkInDate": "2025-07-01",
                "checkOutDate": "2025-07-05",
                "numberOfPeople": 2,
                "rooms": 1,
                "nights": 4,
            },
        )

    def test_missing_destination_is_rejected(self) -> None:
        with self.assertRaises(ClientError):
            create_hotel_request({"checkInDate": "2025-07-01", "checkOutDate": "2025-07-05"})

    def test_check_out_must_follow_check_in(self) -> None:
        for check_out in ["2025-07-01", "2025-06-30"]:
            with self.subTest(check_out=check_out):
                with self.assertRaises(ClientError):
                    create_hotel_request(
                        {"destination": "Paris", "checkInDate": "2025-07-01", "checkOutDate": check_out}
                    )

    def test_unparseable_dates_and_counts_are_rejected(self) -> None:
        base = {"destination": "Paris", "checkInDate": "2025-07-01", "checkOutDate": "2025-07-05"}
        for override in [{"checkInDate": "soon"}, {"numberOfPeople": "many"}, {"rooms": 0}, {"sortBy": "name"}]:
            with self.subTest(override=override):
                with self.assertRaises(ClientError):
                    create_hotel_request(dict(base, **override))

    def test_out_of_range_and_non_string_values_are_client_errors(self) -> None:
        base = {"destination": "Paris", "checkInDate": "2025-07-01", "checkOutDate": "2025-07-05"}
        overrides = [
            {"numberOfPeople": "1e400"},
            {"rooms": 1e400},
            {"limit": "1e400"},
            {"sortBy": ["price"]},
            {"sortBy": {"price": "asc"}},
        ]
        for override in overrides:
            with self.subTest(override=override):
                with self.assertRaises(ClientError):
                    create_hotel_request(dict(base, **override))
        with self.assertRaises(ClientError):
            create_flight_request({"from": "JFK", "to": "CDG", "departDate": "2025-07-01", "passengers": "1e400"})

    def test_refinement_fields_are_parsed(self) -> None:
        request = create_hotel_request(
            {
                "destination": "Paris",
                "checkInDate": "2025-07-01",
                "checkOutDate": "2025-07-05",
                "minPrice": "50",
                "maxPrice": "1.200€",
                "minRating": "8,5",
                "sortBy": "-rating",
                "limit": "5",
            }
        )
        self.assertEqual(request.min_price, 50.0)
        self.assertEqual(request.max_price, 1200.0)
        self.assertEqual(request.min_rating, 8.5)
        self.assertEqual(request.sort_by, "-rating")
        self.assertEqual(request.limit, 5)


class FlightRequestTests(unittest.TestCase):
    def test_one_way_flight(self) -> None:
        request = create_flight_request({"from": "JFK", "to": "CDG", "departDate": "2025-07-01"})
        self.assertEqual(request.origin, "JFK")
        self.assertEqual(request.party_count, 1)
        self.assertIsNone(request.end_date)
        self.assertEqual(request.search_params()["returnDate"], "")
        self.assertEqual(request.search_params()["duration"], 0)

    def test_return_must_follow_departure(self) -> None:
        with self.assertRaises(ClientError):
            create_flight_request(
                {"from": "JFK", "to": "CDG", "departDate": "2025-07-05", "returnDate": "2025-07-01"}
            )

    def test_missing_route_is_rejected(self) -> None:
        with self.assertRaises(ClientError):
            create_flight_request({"to": "CDG", "departDate": "2025-07-01"})

    def test_non_mapping_payload_is_rejected(self) -> None:
        with self.assertRaises(ClientError):
            create_request(SearchKind.FLIGHT, ["JFK", "CDG"])


class LoadSettingsTests(unittest.TestCase):
    def test_missing_token_is_a_configuration_error(self) -> None:
        for environ in [{}, {"APIFY_API_TOKEN": "   "}]:
            with self.subTest(environ=environ):
                with self.assertRaises(ConfigurationError):
                    load_settings(environ)

    def test_defaults_follow_provider_policy(self) -> None:
        settings = load_settings({"APIFY_TOKEN": "abc"})
        self.assertEqual(settings.api_token, "abc")
        self.assertEqual(settings.base_url, "https://api.apify.com/v2")
        self.assertEqual(settings.hotel_poll.interval, 10.0)
        self.assertEqual(settings.hotel_poll.max_attempts, 15)
        self.assertEqual(settings.flight_poll.max_attempts, 24)
        self.assertIsNone(settings.flight_poll.wall_clock_limit)
        self.assertEqual(settings.missing_price, 0.0)

    def test_overrides_are_read_from_environment(self) -> None:
        settings = load_settings(
            {
                "APIFY_API_TOKEN": "abc",
                "APIFY_BASE_URL": "https://mirror.test/v2/",
                "SEARCH_POLL_INTERVAL": "2.5",
                "HOTEL_POLL_MAX_ATTEMPTS": "3",
                "SEARCH_WALL_CLOCK_LIMIT": "60",
                "SEARCH_MISSING_PRICE": "99",
            }
        )
        self.assertEqual(settings.base_url, "https://mirror.test/v2")
        self.assertEqual(settings.hotel_poll.interval, 2.5)
        self.assertEqual(settings.hotel_poll.max_attempts, 3)
        self.assertEqual(settings.hotel_poll.wall_clock_limit, 60.0)
        self.assertEqual(settings.missing_price, 99.0)

    def test_malformed_numbers_are_configuration_errors(self) -> None:
        for name, value in [("SEARCH_POLL_INTERVAL", "soon"), ("FLIGHT_POLL_MAX_ATTEMPTS", "0")]:
            with self.subTest(name=name):
                with self.assertRaises(ConfigurationError):
                    load_settings({"APIFY_API_TOKEN": "abc", name: value})


if __name__ == "__main__":
    unittest.main()
