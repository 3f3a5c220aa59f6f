import unittest
from datetime import date

import requests

from wxdash import create_app, proxy
from wxdash.config import (
    AIR_QUALITY_URL,
    FORECAST_URL,
    GEOCODE_URL,
    RADAR_LISTING_URL,
    REVERSE_GEOCODE_URL,
    WARNINGS_URL,
)

from tests.fakes import FakeResponse, FakeSession


FORECAST_PAYLOAD = {
    "timezone": "America/Chicago",
    "current": {"time": "2024-06-01T10:00", "temperature_2m": 75.2, "weather_code": 1, "is_day": 1},
    "hourly": {"time": ["2024-06-01T10:00"], "temperature_2m": [75.2]},
    "daily": {"time": ["2024-06-01"], "temperature_2m_max": [80]},
}


class ProxyRouteTestCase(unittest.TestCase):
    routes = {}

    def setUp(self):
        self.session = FakeSession(self.routes)
        self.client = create_app({"session": self.session}).test_client()


class WeatherRouteTest(ProxyRouteTestCase):
    routes = {FORECAST_URL: FakeResponse(200, FORECAST_PAYLOAD)}

    def test_passes_forecast_through(self):
        resp = self.client.get("/weather?lat=30.27&lon=-97.74&unit=metric")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json()["timezone"], "America/Chicago")
        self.assertEqual(resp.headers["Cache-Control"], "no-store")
        params = self.session.params_for(FORECAST_URL)
        self.assertEqual(params["temperature_unit"], "celsius")
        self.assertEqual(params["wind_speed_unit"], "kmh")
        self.assertEqual(params["timezone"], "auto")

    def test_defaults_to_us_units(self):
        self.client.get("/weather?lat=30&lon=-97&unit=kelvin")
        params = self.session.params_for(FORECAST_URL)
        self.assertEqual(params["temperature_unit"], "fahrenheit")
        self.assertEqual(params["precipitation_unit"], "inch")

    def test_invalid_coordinates(self):
        for query in ("", "?lat=30", "?lat=abc&lon=1", "?lat=91&lon=0", "?lat=0&lon=181", "?lat=nan&lon=0"):
            resp = self.client.get(f"/weather{query}")
            self.assertEqual(resp.status_code, 400, query)
            self.assertEqual(resp.get_json()["error"], "invalid_lat_lon")
        self.assertEqual(self.session.calls, [])

    def test_seven_day_window(self):
        params = proxy.forecast_params(1.0, 2.0, "us", today=date(2024, 12, 28))
        self.assertEqual(params["start_date"], "2024-12-28")
        self.assertEqual(params["end_date"], "2025-01-03")
        self.assertNotIn("past_days", params)


class WeatherUpstreamFailureTest(ProxyRouteTestCase):
    routes = {FORECAST_URL: FakeResponse(429, text="rate limited", url="https://api.open-meteo.com/v1/forecast?x")}

    def test_upstream_status_passes_through(self):
        resp = self.client.get("/weather?lat=1&lon=2")
        self.assertEqual(resp.status_code, 429)
        body = resp.get_json()
        self.assertEqual(body["error"], "upstream_error")
        self.assertEqual(body["status"], 429)
        self.assertEqual(body["body"], "rate limited")


class WeatherNetworkFailureTest(ProxyRouteTestCase):
    routes = {FORECAST_URL: requests.ConnectionError("down")}

    def test_network_error_is_server_error(self):
        resp = self.client.get("/weather?lat=1&lon=2")
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.get_json(), {"error": "server_error"})


class DayRouteTest(ProxyRouteTestCase):
    routes = {FORECAST_URL: FakeResponse(200, FORECAST_PAYLOAD)}

    def test_day_bundle(self):
        resp = self.client.get("/day?lat=1&lon=2&tz=America/Denver")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(set(resp.get_json()), {"timezone", "hourly", "daily"})
        params = self.session.params_for(FORECAST_URL)
        self.assertEqual(params["timezone"], "America/Denver")
        self.assertIn("uv_index", params["hourly"])
        self.assertEqual(params["forecast_days"], "7")

    def test_day_requires_coordinates(self):
        self.assertEqual(self.client.get("/day?lat=1").status_code, 400)


class GeocodeRouteTest(ProxyRouteTestCase):
    routes = {
        GEOCODE_URL: FakeResponse(
            200,
            {
                "results": [
                    {
                        "name": "Springfield",
                        "admin1": "Illinois",
                        "country": "United States",
                        "latitude": 39.8,
                        "longitude": -89.64,
                        "population": 116250,
                        "timezone": "America/Chicago",
                    },
                    {"name": "Springfield", "latitude": 37.2, "longitude": -93.3},
                    {"name": "Broken"},
                ]
            },
        )
    }

    def test_results_are_normalized(self):
        resp = self.client.get("/geocode?q=%20Springfield%20")
        results = resp.get_json()["results"]
        self.assertEqual(len(results), 2)
        self.assertEqual(results[0]["admin1"], "Illinois")
        self.assertEqual(results[0]["population"], 116250)
        self.assertIsNone(results[1]["population"])
        self.assertIsNone(results[1]["timezone"])
        self.assertEqual(self.session.params_for(GEOCODE_URL)["name"], "Springfield")

    def test_count_is_clamped(self):
        for raw, expected in (("0", "1"), ("50", "20"), ("abc", "10"), (None, "10"), ("5", "5")):
            query = "/geocode?q=x" + (f"&count={raw}" if raw is not None else "")
            self.client.get(query)
            self.assertEqual(self.session.params_for(GEOCODE_URL)["count"], expected)

    def test_empty_query(self):
        resp = self.client.get("/geocode?q=%20%20")
        self.assertEqual(resp.get_json(), {"results": []})
        self.assertEqual(self.session.calls, [])


class GeocodeFailureTest(ProxyRouteTestCase):
    routes = {GEOCODE_URL: FakeResponse(200, text="<html>")}

    def test_malformed_json_is_empty(self):
        resp = self.client.get("/geocode?q=x")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json(), {"results": []})


class ReverseGeocodeRouteTest(ProxyRouteTestCase):
    routes = {
        REVERSE_GEOCODE_URL: FakeResponse(
            200, {"results": [{"name": "Austin", "admin1": "Texas", "country": "United States"}]}
        )
    }

    def test_requires_lat_and_lon(self):
        resp = self.client.get("/reverse-geocode?lon=2")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.get_json(), {"error": "lat and lon are required"})

    def test_joins_name_parts(self):
        resp = self.client.get("/reverse-geocode?lat=30.27&lon=-97.74")
        self.assertEqual(resp.get_json(), {"name": "Austin, Texas, United States"})

    def test_upstream_failure_is_null_name(self):
        self.session.routes[REVERSE_GEOCODE_URL] = FakeResponse(503, {})
        resp = self.client.get("/reverse-geocode?lat=1&lon=2")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json(), {"name": None})

    def test_no_results_is_null_name(self):
        self.session.routes[REVERSE_GEOCODE_URL] = FakeResponse(200, {"results": []})
        self.assertEqual(self.client.get("/reverse-geocode?lat=1&lon=2").get_json(), {"name": None})


class AirRouteTest(ProxyRouteTestCase):
    routes = {
        AIR_QUALITY_URL: FakeResponse(
            200, {"hourly": {"us_aqi": [42, 50], "pm2_5": [8.1], "pm10": []}}
        )
    }

    def test_first_hourly_values(self):
        resp = self.client.get("/air?lat=1&lon=2")
        self.assertEqual(resp.get_json(), {"aqi": 42, "pm25": 8.1, "pm10": None})

    def test_upstream_500_is_all_nulls(self):
        self.session.routes[AIR_QUALITY_URL] = FakeResponse(500, {"error": True})
        resp = self.client.get("/air?lat=1&lon=2")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json(), {"aqi": None, "pm25": None, "pm10": None})

    def test_network_error_is_all_nulls(self):
        self.session.routes[AIR_QUALITY_URL] = requests.Timeout("slow")
        resp = self.client.get("/air?lat=1&lon=2")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json(), {"aqi": None, "pm25": None, "pm10": None})

    def test_missing_coordinates(self):
        resp = self.client.get("/air")
        self.assertEqual(resp.get_json(), {"aqi": None, "pm25": None, "pm10": None})
        self.assertEqual(self.session.calls, [])


class AlertsRouteTest(ProxyRouteTestCase):
    routes = {
        WARNINGS_URL: FakeResponse(
            200,
            {
                "warnings": [
                    {
                        "id": "w1",
                        "event": "Heat Advisory",
                        "severity": "Moderate",
                        "start": "2024-06-01T12:00",
                        "end": "2024-06-01T20:00",
                        "headline": "Heat Advisory until 8 PM",
                        "description": "Hot.",
                        "sender": "NWS Austin",
                        "uri": "https://example.test/w1",
                    },
                    {"event": "Flood Watch", "severity": "Severe", "start": "2024-06-02T00:00"},
                ]
            },
        )
    }

    def test_normalizes_alerts(self):
        alerts = self.client.get("/alerts?lat=1&lon=2&lang=de").get_json()["alerts"]
        self.assertEqual(len(alerts), 2)
        self.assertEqual(alerts[0]["sender"], "NWS Austin")
        second = alerts[1]
        self.assertEqual(second["id"], "Flood Watch-Severe-2024-06-02T00:00")
        self.assertEqual(second["headline"], "Flood Watch")
        self.assertEqual(second["description"], "")
        self.assertEqual(second["sender"], "")
        self.assertIsNone(second["uri"])
        self.assertIsNone(second["end"])
        self.assertEqual(self.session.params_for(WARNINGS_URL)["language"], "de")

    def test_failure_is_empty_list(self):
        self.session.routes[WARNINGS_URL] = FakeResponse(404, text="not found")
        resp = self.client.get("/alerts?lat=1&lon=2")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json(), {"alerts": []})
        self.assertEqual(self.client.get("/alerts").get_json(), {"alerts": []})


class RadarFramesRouteTest(ProxyRouteTestCase):
    routes = {
        RADAR_LISTING_URL: FakeResponse(
            200, {"radar": {"past": [{"time": 100, "path": "/a"}], "nowcast": [{"time": 700, "path": "/b"}]}}
        )
    }

    def test_lists_frames(self):
        body = self.client.get("/radar/frames").get_json()
        self.assertEqual(body["frames"], [{"time": 100, "path": "/a"}, {"time": 700, "path": "/b"}])
        self.assertIn("{path}", body["tileTemplate"])
        self.assertIn("{z}", body["tileTemplate"])

    def test_failure_is_empty(self):
        self.session.routes[RADAR_LISTING_URL] = requests.ConnectionError("down")
        resp = self.client.get("/radar/frames")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json()["frames"], [])


if __name__ == "__main__":
    unittest.main()
