# plantable/table.py
"""Output independent intermediate form of a tabular report.

A ReportTable has header columns (two header cells each) and lines of cells.
Calendar columns embed a ColumnTable; chart columns own a ChartContext. Both
are produced at header generation time and handed to row generation
explicitly.
"""
from __future__ import annotations

import datetime as dt
import weakref
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from .interval import Interval
from .model import PropertyNode

DEFAULT_HEADER_LINE_HEIGHT = 19
DEFAULT_LINE_HEIGHT = 21
CALENDAR_CELL_WIDTH = 20


class ReportTableCell:
    """One cell of a line or one of the two header cells of a column."""

    def __init__(self, line: Optional["ReportTableLine"] = None, text: Optional[str] = "") -> None:
        self.line = line
        self.text = text
        self.hidden = False
        self.indent = 0
        self.alignment = "center"
        self.category: Optional[str] = None
        self.columns = 1
        self.rows = 1
        self.url: Optional[str] = None
        self.special: Any = None
        self.bold = False
        self.font_size: Optional[int] = None
        self.font_color: Optional[int] = None
        self.data: Optional[str] = None
        self.width: Optional[int] = None

    def same_look(self, other: "ReportTableCell") -> bool:
        """Cells that would render identically and can share one span."""
        return (
            self.text == other.text
            and self.category == other.category
            and self.bold == other.bold
            and self.url == other.url
        )

    def __repr__(self) -> str:
        flags = " hidden" if self.hidden else ""
        return f"<ReportTableCell {self.text!r} cat={self.category} span={self.columns}x{self.rows}{flags}>"


class ReportTableLine:
    """A row for one property in one scenario."""

    def __init__(self, table: "ReportTable", property: PropertyNode, scope_line: Optional["ReportTableLine"] = None) -> None:
        self.table = table
        self.property = property
        # Scope lines are owned by the table; do not keep them alive from here.
        self._scope_line = weakref.ref(scope_line) if scope_line is not None else None
        self.no: Optional[int] = None
        self.line_no = 0
        self.sub_line_no = 0
        self.indentation = 0
        self.height = table.line_height
        self.cells: List[ReportTableCell] = []

    @property
    def scope_line(self) -> Optional["ReportTableLine"]:
        return self._scope_line() if self._scope_line is not None else None

    @property
    def scope_property(self) -> Optional[PropertyNode]:
        sl = self.scope_line
        return sl.property if sl is not None else None

    def new_cell(self, text: Optional[str] = "") -> ReportTableCell:
        cell = ReportTableCell(self, text)
        self.cells.append(cell)
        return cell

    def last_visible_cell(self, skip_last: bool = True) -> Optional[ReportTableCell]:
        cells = self.cells[:-1] if skip_last else self.cells
        for c in reversed(cells):
            if not c.hidden:
                return c
        return None

    def visible_cells(self) -> List[ReportTableCell]:
        return [c for c in self.cells if not c.hidden]


class ReportTableColumn:
    """A header column. cell1 is the upper header row, cell2 the lower one."""

    def __init__(self, table: "ReportTable", definition: Any, title: str = "") -> None:
        self.table = table
        self.definition = definition
        self.cell1 = ReportTableCell(None, title)
        self.cell2 = ReportTableCell(None, "")
        self.scrollbar = False
        table.columns.append(self)


class ReportTable:
    def __init__(self, *, header_line_height: int = DEFAULT_HEADER_LINE_HEIGHT, line_height: int = DEFAULT_LINE_HEIGHT) -> None:
        self.columns: List[ReportTableColumn] = []
        self.lines: List[ReportTableLine] = []
        self.equi_lines = False
        self.header_line_height = header_line_height
        self.line_height = line_height

    def new_line(self, property: PropertyNode, scope_line: Optional[ReportTableLine] = None) -> ReportTableLine:
        """Create a line that is not yet part of the table; see add_line()."""
        line = ReportTableLine(self, property, scope_line)
        line.sub_line_no = len(self.lines) + 1
        return line

    def add_line(self, line: ReportTableLine) -> None:
        self.lines.append(line)


class ColumnTable(ReportTable):
    """The table embedded in a calendar column; one column per time slot."""

    def __init__(self, max_width: Optional[int] = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.max_width = max_width
        self.equi_lines = True

    def lower_labels(self) -> List[str]:
        return [c.cell2.text or "" for c in self.columns]


class ReportTableLegend:
    """Calendar color legend, filled while calendar cells are generated."""

    def __init__(self) -> None:
        self._items: List[Tuple[str, str]] = []

    def add_calendar_item(self, name: str, category: str) -> None:
        if (name, category) not in self._items:
            self._items.append((name, category))

    @property
    def items(self) -> List[Tuple[str, str]]:
        return list(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)


@dataclass(frozen=True)
class ChartAnnotation:
    property: PropertyNode
    scope_property: Optional[PropertyNode]
    scenario_idx: int
    y: int
    height: int


@dataclass
class ChartContext:
    """State of a chart column shared between its header and its rows.

    The chart geometry beyond a time-to-x mapping is left to the renderer.
    """

    start: dt.datetime
    end: dt.datetime
    scale: str = "day"
    width: Optional[int] = None
    now: Optional[dt.datetime] = None
    week_starts_monday: bool = True
    header_height: int = 2 * DEFAULT_HEADER_LINE_HEIGHT + 1
    annotations: List[ChartAnnotation] = field(default_factory=list)

    _PX_PER_DAY = {"hour": 480.0, "day": 20.0, "week": 20.0 / 7, "month": 20.0 / 30, "quarter": 20.0 / 91, "year": 20.0 / 365}

    @property
    def chart_width(self) -> int:
        days = (self.end - self.start).total_seconds() / 86400.0
        return max(1, int(round(days * self._PX_PER_DAY.get(self.scale, 20.0))))

    def has_scrollbar(self) -> bool:
        return self.width is not None and self.chart_width > self.width

    def x_of(self, t: dt.datetime) -> int:
        total = (self.end - self.start).total_seconds()
        frac = (t - self.start).total_seconds() / total if total > 0 else 0.0
        frac = min(1.0, max(0.0, frac))
        return int(round(frac * self.chart_width))

    def bar(self, iv: Interval) -> Tuple[int, int]:
        """Left offset and width in pixels of an interval; width is at least 1."""
        x0 = self.x_of(iv.start)
        x1 = self.x_of(iv.end)
        return x0, max(1, x1 - x0)

    def add(self, annotation: ChartAnnotation) -> None:
        self.annotations.append(annotation)


__all__ = [
    "CALENDAR_CELL_WIDTH",
    "ChartAnnotation",
    "ChartContext",
    "ColumnTable",
    "ReportTable",
    "ReportTableCell",
    "ReportTableColumn",
    "ReportTableLegend",
    "ReportTableLine",
]
