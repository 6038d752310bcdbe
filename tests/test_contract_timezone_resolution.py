from __future__ import annotations

import datetime as dt
import os
import unittest
from unittest.mock import patch

from plantable.util.timeparse import parse_datetime, parse_workhours
from plantable.util.tz import TZ_ENV, normalize_tz_name, resolve_tz


class TestTimezoneResolutionContract(unittest.TestCase):
    def test_valid_timezone_identifiers_resolve(self) -> None:
        self.assertEqual(resolve_tz("UTC"), dt.timezone.utc)
        self.assertIsNotNone(resolve_tz("local"))
        self.assertEqual(resolve_tz("+02:00"), dt.timezone(dt.timedelta(hours=2)))
        self.assertEqual(resolve_tz("-0530"), dt.timezone(-dt.timedelta(hours=5, minutes=30)))

    def test_invalid_timezone_identifiers_raise(self) -> None:
        with self.assertRaises(ValueError):
            resolve_tz("No/Such_Zone")
        with self.assertRaises(ValueError):
            resolve_tz("+25:00")

    def test_default_comes_from_environment_then_utc(self) -> None:
        with patch.dict(os.environ, {TZ_ENV: "+01:00"}):
            self.assertEqual(normalize_tz_name(None), "+01:00")
        with patch.dict(os.environ, {}, clear=True):
            self.assertEqual(normalize_tz_name(""), "UTC")


class TestTimeParseContract(unittest.TestCase):
    def test_bare_dates_are_midnight_in_tz(self) -> None:
        tz = dt.timezone(dt.timedelta(hours=2))
        self.assertEqual(parse_datetime("2024-01-02", tz), dt.datetime(2024, 1, 2, tzinfo=tz))
        self.assertIsNone(parse_datetime("", tz))

    def test_offsets_are_converted_into_tz(self) -> None:
        t = parse_datetime("2024-01-02T10:00Z", dt.timezone(dt.timedelta(hours=2)))
        self.assertEqual((t.hour, t.utcoffset()), (12, dt.timedelta(hours=2)))

    def test_workhours(self) -> None:
        self.assertEqual(parse_workhours("09:00-17:30"), (540, 1050))
        self.assertEqual(parse_workhours("00:00-24:00"), (0, 1440))
        with self.assertRaises(ValueError):
            parse_workhours("17:00-09:00")
        with self.assertRaises(ValueError):
            parse_datetime("yesterday", dt.timezone.utc)


if __name__ == "__main__":
    unittest.main(verbosity=2)
