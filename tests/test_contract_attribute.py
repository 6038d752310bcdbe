from __future__ import annotations

import datetime as dt
import unittest

from plantable.attribute import AttributeKind, AttributeType, AttributeValue, Provenance, RichText
from plantable.errors import DataError
from plantable.interval import Interval, overlaps_report
from plantable.model import Project

UTC = dt.timezone.utc


class TestAttributeContract(unittest.TestCase):
    def test_coercion_per_kind(self) -> None:
        self.assertEqual(AttributeType("n", "N", AttributeKind.INTEGER).coerce("7"), 7)
        self.assertEqual(AttributeType("f", "F", AttributeKind.FLOAT).coerce(2), 2.0)
        self.assertEqual(AttributeType("l", "L", AttributeKind.LIST).coerce("x"), ("x",))
        self.assertEqual(AttributeType("r", "R", AttributeKind.RICHTEXT).coerce("*hi*"), RichText("*hi*"))
        with self.assertRaises(TypeError):
            AttributeType("d", "D", AttributeKind.DATE).coerce("2024-01-01")

    def test_provenance_follows_the_last_write(self) -> None:
        av = AttributeValue(AttributeType("priority", "Priority", AttributeKind.INTEGER, 500))
        self.assertEqual((av.value, av.provenance, av.is_set()), (500, Provenance.DEFAULT, False))
        av.set_value(700, Provenance.INHERITED)
        self.assertEqual(av.provenance, Provenance.INHERITED)
        av.set_value(900)
        self.assertEqual((av.provided, av.inherited), (True, False))
        self.assertEqual(av.to_declaration_string(), "priority 900")

    def test_scenario_specific_values_are_separate(self) -> None:
        p = Project("p", "P", dt.datetime(2024, 1, 1, tzinfo=UTC), dt.datetime(2024, 2, 1, tzinfo=UTC))
        t = p.add_task("A", "Alpha")
        t.set("priority", 900, 0)
        self.assertEqual(t.get("priority", 0), 900)
        self.assertTrue(t.provided("priority", 0))
        self.assertEqual(t.get("name", 0), "Alpha")
        with self.assertRaises(DataError):
            t.get("priority", 3)
        with self.assertRaises(DataError):
            t.get("email")


class TestIntervalContract(unittest.TestCase):
    def test_half_open_overlap(self) -> None:
        d = lambda day: dt.datetime(2024, 1, day, tzinfo=UTC)  # noqa: E731
        report = Interval(d(1), d(10))
        self.assertTrue(overlaps_report(Interval(d(9), d(12)), report))
        self.assertFalse(overlaps_report(Interval(d(10), d(12)), report))
        self.assertTrue(overlaps_report(Interval(d(10), d(10)), report))
        self.assertTrue(overlaps_report(Interval(d(1), d(1)), report))
        self.assertFalse(overlaps_report(Interval(d(11), d(11)), report))
        self.assertEqual(Interval(d(1), d(3)).overlap_seconds(Interval(d(2), d(5))), 86400.0)


if __name__ == "__main__":
    unittest.main(verbosity=2)
