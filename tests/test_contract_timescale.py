from __future__ import annotations

import datetime as dt
import unittest

from plantable.config import ColumnDefinition, ReportDefinition
from plantable.interval import Interval
from plantable.model import Project
from plantable.query import Query
from plantable.reports import make_builder
from plantable.table import ReportTable, ReportTableLegend
from plantable.timescale import (
    TimeScaleColumnBuilder,
    begin_of_quarter,
    begin_of_week,
    same_time_next_month,
)

UTC = dt.timezone.utc


def _t(y: int, m: int, d: int) -> dt.datetime:
    return dt.datetime(y, m, d, tzinfo=UTC)


def _scales(project: Project, start: dt.datetime, end: dt.datetime) -> TimeScaleColumnBuilder:
    return TimeScaleColumnBuilder(
        project, start, end,
        make_query=lambda **kw: Query(**kw),
        legend=ReportTableLegend(),
    )


class TestCalendarArithmeticContract(unittest.TestCase):
    def test_week_start(self) -> None:
        wed = _t(2024, 1, 10)
        self.assertEqual(begin_of_week(wed, True), _t(2024, 1, 8))
        self.assertEqual(begin_of_week(wed, False), _t(2024, 1, 7))

    def test_month_step_clamps_day(self) -> None:
        self.assertEqual(same_time_next_month(_t(2024, 1, 31)), _t(2024, 2, 29))
        self.assertEqual(same_time_next_month(_t(2024, 12, 15)), _t(2025, 1, 15))

    def test_quarter_start(self) -> None:
        self.assertEqual(begin_of_quarter(_t(2024, 8, 17)), _t(2024, 7, 1))


class TestCalendarHeaderContract(unittest.TestCase):
    def test_daily_header_for_january(self) -> None:
        p = Project("p", "P", _t(2024, 1, 1), _t(2024, 3, 1))
        ctable = _scales(p, _t(2024, 1, 1), _t(2024, 2, 1)).generate_header(ReportTable(), ColumnDefinition("daily"))

        self.assertEqual(len(ctable.columns), 31)
        first = ctable.columns[0]
        self.assertEqual(first.cell1.text, "Jan 2024")
        self.assertEqual(first.cell1.columns, 31)
        self.assertTrue(all(c.cell1.hidden for c in ctable.columns[1:]))
        self.assertEqual(ctable.lower_labels()[:3], ["1", "2", "3"])
        # 2024-01-06 is a Saturday.
        self.assertEqual(ctable.columns[5].cell2.category, "tabhead_offduty")
        self.assertIsNone(ctable.columns[0].cell2.category)
        self.assertEqual(first.cell1.data, "2024-01-01")

    def test_monthly_header_groups_by_year(self) -> None:
        p = Project("p", "P", _t(2024, 1, 1), _t(2025, 1, 1))
        ctable = _scales(p, _t(2024, 1, 1), _t(2025, 1, 1)).generate_header(ReportTable(), ColumnDefinition("monthly"))

        self.assertEqual(len(ctable.columns), 12)
        self.assertEqual(ctable.columns[0].cell1.text, "2024")
        self.assertEqual(ctable.columns[0].cell1.columns, 12)
        self.assertEqual(ctable.lower_labels()[0], "Jan")

    def test_weekly_slots_are_aligned_to_week_start(self) -> None:
        p = Project("p", "P", _t(2024, 1, 1), _t(2024, 3, 1))
        slots = list(_scales(p, _t(2024, 1, 3), _t(2024, 1, 20)).slots("weekly"))
        self.assertEqual([s.start.day for s in slots], [1, 8, 15])

    def test_header_upper_cells_split_at_label_change(self) -> None:
        p = Project("p", "P", _t(2024, 1, 1), _t(2024, 3, 1))
        ctable = _scales(p, _t(2024, 1, 30), _t(2024, 2, 3)).generate_header(ReportTable(), ColumnDefinition("daily"))
        visible = [(c.cell1.text, c.cell1.columns) for c in ctable.columns if not c.cell1.hidden]
        self.assertEqual(visible, [("Jan 2024", 2), ("Feb 2024", 2)])


class TestCalendarCellsContract(unittest.TestCase):
    def _calendar_line(self, content: str = "load"):
        p = Project("p", "P", _t(2024, 1, 1), _t(2024, 3, 1))
        t = p.add_task("T", "Task")
        t.set("start", _t(2024, 1, 10))
        t.set("end", _t(2024, 1, 15))
        report = ReportDefinition(
            "cal",
            columns=[ColumnDefinition("daily", content=content)],
            start=_t(2024, 1, 1),
            end=_t(2024, 2, 1),
        )
        builder = make_builder(p, report).generate()
        line = builder.table.lines[0]
        return builder, line.cells[0].special

    def test_task_slots_merge_into_spans(self) -> None:
        builder, tc_line = self._calendar_line()
        visible = tc_line.visible_cells()
        self.assertEqual(sum(c.columns for c in visible), 31)

        task_spans = [c for c in visible if c.category == "caltask1"]
        self.assertEqual(len(task_spans), 1)
        self.assertEqual(task_spans[0].columns, 5)

        self.assertEqual([(c.category, c.columns) for c in visible[:3]], [("taskcell1", 5), ("offduty1", 2), ("taskcell1", 2)])
        self.assertIn(("Task", "caltask1"), builder.legend.items)

    def test_calendar_line_is_committed_to_the_column_table(self) -> None:
        builder, tc_line = self._calendar_line("empty")
        ctable = builder.table.columns[0].cell1.special
        self.assertEqual(ctable.lines, [tc_line])
        self.assertTrue(all(c.text == "" for c in tc_line.cells))


class TestResourceCalendarCellsContract(unittest.TestCase):
    """Jan 1 2024 is a Monday; the default working day is 09:00-17:00."""

    def _project(self):
        p = Project("p", "P", _t(2024, 1, 1), _t(2024, 3, 1))
        t = p.add_task("T", "Task")
        t.set("start", _t(2024, 1, 2))
        t.set("end", _t(2024, 1, 4))
        u = p.add_task("U", "Other")
        u.set("start", _t(2024, 1, 4))
        u.set("end", _t(2024, 1, 5))
        r = p.add_resource("R", "Res")
        r.book(0, t, Interval(_t(2024, 1, 2) + dt.timedelta(hours=9), _t(2024, 1, 2) + dt.timedelta(hours=17)))
        r.book(0, t, Interval(_t(2024, 1, 3) + dt.timedelta(hours=9), _t(2024, 1, 3) + dt.timedelta(hours=13)))
        return p, t, u, r

    @staticmethod
    def _summary(cal_line):
        return [(c.text, c.category, c.columns) for c in cal_line.visible_cells()]

    def test_unscoped_resource_cells_classify_load(self) -> None:
        p, _, _, r = self._project()
        report = ReportDefinition(
            "res",
            kind="resourcereport",
            columns=[ColumnDefinition("name"), ColumnDefinition("daily")],
            start=_t(2024, 1, 1),
            end=_t(2024, 1, 8),
        )
        builder = make_builder(p, report).generate()
        line = builder.table.lines[0]
        self.assertIs(line.property, r)
        cal_line = line.cells[1].special

        self.assertEqual(len(cal_line.cells), 7)
        self.assertEqual(
            self._summary(cal_line),
            [
                ("", "free1", 1),
                ("1.0", "busy1", 1),
                ("0.5", "loaded1", 1),
                ("", "free1", 2),
                ("", "offduty1", 2),
            ],
        )
        self.assertIn(("Resource is fully loaded", "busy1"), builder.legend.items)

    def test_task_scoped_resource_cells_follow_the_task(self) -> None:
        p, t, u, r = self._project()
        r.book(0, u, Interval(_t(2024, 1, 4) + dt.timedelta(hours=9), _t(2024, 1, 4) + dt.timedelta(hours=17)))
        report = ReportDefinition(
            "tasks",
            columns=[ColumnDefinition("name"), ColumnDefinition("daily")],
            start=_t(2024, 1, 1),
            end=_t(2024, 1, 8),
            hide_resource="false",
        )
        builder = make_builder(p, report).generate()
        line = next(l for l in builder.table.lines if l.property is r and l.scope_property is t)
        cal_line = line.cells[1].special

        # Jan 4 is fully booked for another task: no text, plain resource cell.
        self.assertEqual(
            self._summary(cal_line),
            [
                ("", "free1", 1),
                ("1.0", "busy1", 1),
                ("0.5", "loaded1", 1),
                ("", "resourcecell1", 1),
                ("", "free1", 1),
                ("", "offduty1", 2),
            ],
        )


if __name__ == "__main__":
    unittest.main(verbosity=2)
