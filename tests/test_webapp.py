import unittest
from unittest.mock import patch

from provider_stubs import FakeProvider, make_settings

import webapp

HOTEL_BODY = {"destination": "Lisbon", "checkInDate": "2025-06-01", "checkOutDate": "2025-06-04"}
FLIGHT_BODY = {"from": "Delhi, India", "to": "Mumbai, India", "departDate": "2025-06-01"}


class WebappTests(unittest.TestCase):
    def setUp(self) -> None:
        self._saved = (webapp.app.config.get("SEARCH_SETTINGS"), webapp.app.config.get("SEARCH_SETTINGS_ERROR"))
        webapp.app.config["SEARCH_SETTINGS"] = make_settings()
        webapp.app.config["SEARCH_SETTINGS_ERROR"] = None
        self.client = webapp.app.test_client()

    def tearDown(self) -> None:
        webapp.app.config["SEARCH_SETTINGS"], webapp.app.config["SEARCH_SETTINGS_ERROR"] = self._saved

    def test_hotel_search_returns_provider_results(self) -> None:
        provider = FakeProvider(items=[{"name": "Casa Azul", "price": 95, "rating": 4.6}])
        with patch("webapp.open_session", lambda settings: provider):
            response = self.client.post("/api/search/hotels", json=HOTEL_BODY)

        self.assertEqual(response.status_code, 200)
        payload = response.get_json()
        self.assertTrue(payload["success"])
        self.assertEqual(payload["source"], "provider")
        self.assertEqual(payload["totalResults"], 1)
        self.assertEqual(payload["hotels"][0]["name"], "Casa Azul")
        self.assertEqual(payload["searchParams"]["nights"], 3)
        self.assertEqual(response.headers["Access-Control-Allow-Origin"], "*")

    def test_unavailable_provider_still_answers_with_fallback(self) -> None:
        with patch("webapp.open_session", lambda settings: FakeProvider(failing_actors=["*"])):
            response = self.client.post("/api/search/flights", json=FLIGHT_BODY)

        self.assertEqual(response.status_code, 200)
        payload = response.get_json()
        self.assertTrue(payload["success"])
        self.assertEqual(payload["source"], "fallback")
        self.assertEqual(len(payload["flights"]), 3)
        self.assertIn("warning", payload)

    def test_form_bodies_are_accepted(self) -> None:
        with patch("webapp.open_session", lambda settings: FakeProvider(failing_actors=["*"])):
            response = self.client.post("/api/search/hotels", data=HOTEL_BODY)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["searchParams"]["destination"], "Lisbon")

    def test_invalid_requests_are_rejected(self) -> None:
        cases = [
            ("/api/search/hotels", dict(HOTEL_BODY, checkOutDate="2025-06-01"), "hotels"),
            ("/api/search/hotels", {"checkInDate": "2025-06-01"}, "hotels"),
            ("/api/search/flights", ["Delhi", "Mumbai"], "flights"),
        ]
        for url, body, key in cases:
            with self.subTest(body=body):
                response = self.client.post(url, json=body)
                self.assertEqual(response.status_code, 400)
                payload = response.get_json()
                self.assertFalse(payload["success"])
                self.assertTrue(payload["error"])
                self.assertEqual(payload[key], [])

    def test_rejected_requests_make_no_provider_calls(self) -> None:
        provider = FakeProvider()
        bodies = [
            dict(HOTEL_BODY, checkOutDate=HOTEL_BODY["checkInDate"]),
            dict(HOTEL_BODY, numberOfPeople="1e400"),
            dict(HOTEL_BODY, sortBy=["price"]),
        ]
        with patch("webapp.open_session", lambda settings: provider):
            for body in bodies:
                with self.subTest(body=body):
                    response = self.client.post("/api/search/hotels", json=body)
                    self.assertEqual(response.status_code, 400)
                    self.assertFalse(response.get_json()["success"])
            repeated = self.client.post("/api/search/hotels", data=dict(HOTEL_BODY, sortBy=["price", "rating"]))

        self.assertEqual(repeated.status_code, 400)
        self.assertEqual(provider.calls, [])

    def test_missing_configuration_is_a_server_error(self) -> None:
        webapp.app.config["SEARCH_SETTINGS"] = None
        webapp.app.config["SEARCH_SETTINGS_ERROR"] = "APIFY_API_TOKEN is not set"

        response = self.client.post("/api/search/hotels", json=HOTEL_BODY)

        self.assertEqual(response.status_code, 500)
        payload = response.get_json()
        self.assertFalse(payload["success"])
        self.assertIn("API configuration error", payload["error"])
        self.assertEqual(payload["hotels"], [])

    def test_health_reports_configuration(self) -> None:
        response = self.client.get("/api/health")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json(), {"status": "ok", "configured": True})


if __name__ == "__main__":
    unittest.main()
