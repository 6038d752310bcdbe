from __future__ import annotations

import datetime as dt
import io
import unittest

from plantable.config import ColumnDefinition, ReportDefinition
from plantable.model import Project
from plantable.render.csv import table_to_csv, write_csv
from plantable.reports import make_builder
from plantable.table import ReportTable, ReportTableColumn

UTC = dt.timezone.utc


def _d(day: int) -> dt.datetime:
    return dt.datetime(2024, 1, day, tzinfo=UTC)


def _table_with_cells(*specs) -> ReportTable:
    """specs: (text, columns, hidden) per cell of a single line."""
    p = Project("p", "P", _d(1), _d(31))
    task = p.add_task("A", "A")
    table = ReportTable()
    for i in range(len(specs)):
        ReportTableColumn(table, None, f"c{i}")
    line = table.new_line(task)
    for text, columns, hidden in specs:
        cell = line.new_cell(text)
        cell.columns = columns
        cell.hidden = hidden
    table.add_line(line)
    return table


class TestCsvContract(unittest.TestCase):
    def test_spanning_cell_is_padded_with_blanks(self) -> None:
        table = _table_with_cells(("a", 3, False), ("", 1, True), ("", 1, True), ("d", 1, False))
        self.assertEqual(table_to_csv(table), [["c0", "c1", "c2", "c3"], ["a", "", "", "d"]])

    def test_uncovered_hidden_cell_becomes_blank(self) -> None:
        table = _table_with_cells(("", 1, True), ("b", 1, False))
        self.assertEqual(table_to_csv(table)[1], ["", "b"])

    def test_missing_text_becomes_blank(self) -> None:
        table = _table_with_cells((None, 1, False), ("b", 1, False))
        self.assertEqual(table_to_csv(table)[1], ["", "b"])

    def test_calendar_cells_expand_to_one_field_per_slot(self) -> None:
        p = Project("p", "P", _d(1), dt.datetime(2024, 3, 1, tzinfo=UTC))
        t = p.add_task("T", "Task")
        t.set("start", _d(3))
        t.set("end", _d(5))
        report = ReportDefinition(
            "cal",
            columns=[ColumnDefinition("name"), ColumnDefinition("daily", content="empty")],
            start=_d(1),
            end=_d(9),
        )
        rows = table_to_csv(make_builder(p, report).generate().begin_render())

        self.assertEqual(rows[0], ["Name", "1", "2", "3", "4", "5", "6", "7", "8"])
        self.assertEqual(len(rows[1]), 9)
        self.assertEqual(rows[1][0], "Task")
        self.assertEqual(set(rows[1][1:]), {""})

    def test_write_csv_uses_delimiter_and_quotes(self) -> None:
        buf = io.StringIO()
        write_csv([["a", "b;c"], ["1", ""]], buf)
        self.assertEqual(buf.getvalue(), 'a;"b;c"\n1;\n')

        buf = io.StringIO()
        write_csv([["a", "b"]], buf, delimiter=",")
        self.assertEqual(buf.getvalue(), "a,b\n")


if __name__ == "__main__":
    unittest.main(verbosity=2)
