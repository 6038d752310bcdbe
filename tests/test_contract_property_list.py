from __future__ import annotations

import datetime as dt
import unittest

from plantable.model import Project
from plantable.property_list import OrderedPropertyList, SortLevel

UTC = dt.timezone.utc


def _d(day: int) -> dt.datetime:
    return dt.datetime(2024, 1, day, tzinfo=UTC)


def _project() -> Project:
    p = Project("p", "P", _d(1), dt.datetime(2024, 3, 1, tzinfo=UTC))
    a = p.add_task("A", "Alpha")
    p.add_task("A.2", "Zulu", a).set("start", _d(9))
    p.add_task("A.1", "Mike", a).set("start", _d(3))
    b = p.add_task("B", "Bravo")
    b.set("start", _d(3))
    p.add_task("C", "Charlie")  # no start date
    return p


class TestOrderedPropertyListContract(unittest.TestCase):
    def test_default_order_is_declaration_order(self) -> None:
        p = _project()
        lst = OrderedPropertyList(p.tasks)
        self.assertEqual(lst.ids(), ["A", "A.2", "A.1", "B", "C"])
        self.assertFalse(lst.tree_mode())

    def test_ties_keep_previous_relative_order(self) -> None:
        p = _project()
        lst = OrderedPropertyList(p.tasks)
        lst.set_sorting([("start", True, 0)])
        # A and C have no start; A.1 and B tie on Jan 3.
        self.assertEqual(lst.ids(), ["A", "C", "A.1", "B", "A.2"])

    def test_sorting_twice_is_idempotent(self) -> None:
        p = _project()
        lst = OrderedPropertyList(p.tasks)
        lst.set_sorting([("name", False, -1)])
        first = lst.ids()
        lst.sort()
        self.assertEqual(lst.ids(), first)
        self.assertEqual(first, ["A.2", "A.1", "C", "B", "A"])

    def test_missing_values_sort_last_when_descending(self) -> None:
        p = _project()
        lst = OrderedPropertyList(p.tasks)
        lst.set_sorting([("start", False, 0)])
        self.assertEqual(lst.ids()[0], "A.2")
        self.assertEqual(set(lst.ids()[-2:]), {"A", "C"})

    def test_tree_sort_puts_children_under_parents(self) -> None:
        p = _project()
        lst = OrderedPropertyList(p.tasks)
        lst.set_sorting(["tree", ("start", True, 0)])
        self.assertTrue(lst.tree_mode())
        self.assertEqual(lst.ids(), ["A", "A.2", "A.1", "B", "C"])

    def test_rich_text_attributes_sort_by_their_text(self) -> None:
        p = _project()
        p.tasks["A"].set("note", "zeta")
        p.tasks["B"].set("note", "alpha")
        lst = OrderedPropertyList(p.tasks)
        lst.set_sorting([("note", True, -1)])
        self.assertEqual(lst.ids(), ["A.2", "A.1", "C", "B", "A"])
        lst.set_sorting([("note", False, -1)])
        self.assertEqual(lst.ids()[:2], ["A", "B"])

    def test_copy_keeps_sorting_and_append_skips_members(self) -> None:
        p = _project()
        lst = OrderedPropertyList(p.tasks)
        lst.set_sorting(["tree"])
        copy = OrderedPropertyList(lst)
        self.assertEqual(copy.sorting, (SortLevel("tree"),))
        copy.delete_if(lambda t: t.id == "B")
        copy.append([p.tasks["B"], p.tasks["A"]])
        self.assertEqual(copy.ids(), ["A", "A.2", "A.1", "C", "B"])
        self.assertEqual(len(lst), 5)


if __name__ == "__main__":
    unittest.main(verbosity=2)
