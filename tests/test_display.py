import unittest

from wxdash.display import (
    PLACEHOLDER,
    describe,
    format_number,
    format_population,
    format_precip,
    format_summary,
    sparkline_points,
    sparkline_svg,
    theme_for,
    unit_labels,
    weather_icon,
)
from wxdash.forecast import NO_DATA, summarize
from wxdash.models import GeoResult


class WeatherCodeTest(unittest.TestCase):
    def test_describe(self):
        self.assertEqual(describe(0), "Clear sky")
        self.assertEqual(describe(77), "Code 77")
        self.assertEqual(describe(None), "Unknown")

    def test_icons(self):
        self.assertEqual(weather_icon(95), "⛈️")
        self.assertEqual(weather_icon(1234), "🌡️")

    def test_themes(self):
        self.assertEqual(theme_for(1, True), "clear-day")
        self.assertEqual(theme_for(1, False), "clear-night")
        self.assertEqual(theme_for(63), "rain")
        self.assertEqual(theme_for(86), "snow")
        self.assertEqual(theme_for(99), "thunder")
        self.assertEqual(theme_for(48), "fog")
        self.assertEqual(theme_for(), "default")


class FormatTest(unittest.TestCase):
    def test_no_data_renders_placeholder(self):
        self.assertEqual(format_summary(NO_DATA), {"min": PLACEHOLDER, "max": PLACEHOLDER, "avg": PLACEHOLDER})
        self.assertEqual(format_number(None, suffix="%"), PLACEHOLDER)

    def test_non_finite_renders_placeholder(self):
        self.assertEqual(format_number(float("nan"), suffix="°F"), PLACEHOLDER)
        self.assertEqual(format_number(float("inf")), PLACEHOLDER)
        self.assertEqual(format_precip(float("nan"), "us"), PLACEHOLDER)

    def test_numbers(self):
        self.assertEqual(format_summary(summarize([10, 12]), suffix="°F"), {"min": "10°F", "max": "12°F", "avg": "11°F"})
        self.assertEqual(format_number(0.0), "0")
        self.assertEqual(format_precip(0.256, "us"), "0.26")
        self.assertEqual(format_precip(3.04, "metric"), "3.0")
        self.assertEqual(format_precip(None, "us"), PLACEHOLDER)

    def test_unit_labels(self):
        self.assertEqual(unit_labels("us"), {"temp": "°F", "wind": "mph", "precip": "in"})
        self.assertEqual(unit_labels("metric")["wind"], "km/h")

    def test_population(self):
        self.assertEqual(format_population(116250), "pop 116,250")
        self.assertIsNone(format_population(0))
        self.assertIsNone(format_population(None))

    def test_place_label(self):
        place = GeoResult(name="Paris", latitude=48.85, longitude=2.35, country="France")
        self.assertEqual(place.label, "Paris, France")


class SparklineTest(unittest.TestCase):
    def test_points_span_viewbox(self):
        points = sparkline_points([1, 3, 2])
        self.assertEqual(points, [(0.0, 100.0), (50.0, 0.0), (100.0, 50.0)])

    def test_flat_series(self):
        self.assertEqual(sparkline_points([5, 5]), [(0.0, 100.0), (100.0, 100.0)])

    def test_empty(self):
        self.assertEqual(sparkline_points([]), [])
        self.assertEqual(sparkline_svg([None]), "")

    def test_svg(self):
        svg = sparkline_svg([1, 2], height=4)
        self.assertIn('height="10"', svg)
        self.assertIn('points="0,100 100,0"', svg)


if __name__ == "__main__":
    unittest.main()
