# plantable/timescale.py
"""Calendar columns: hourly .. yearly time slots with a two level header."""
from __future__ import annotations

import calendar
import datetime as dt
from dataclasses import dataclass
from typing import Any, Callable, Iterator, List, Optional

from .config import ColumnDefinition
from .interval import Interval
from .model import PropertyKind
from .table import CALENDAR_CELL_WIDTH, ColumnTable, ReportTableCell, ReportTableColumn, ReportTableLegend, ReportTableLine

# --- calendar arithmetic -----------------------------------------------------
# All helpers keep the tzinfo of their argument and work on wall clock time.


def midnight(t: dt.datetime) -> dt.datetime:
    return t.replace(hour=0, minute=0, second=0, microsecond=0)


def begin_of_week(t: dt.datetime, starts_monday: bool = True) -> dt.datetime:
    offset = t.weekday() if starts_monday else (t.weekday() + 1) % 7
    return midnight(t) - dt.timedelta(days=offset)


def begin_of_month(t: dt.datetime) -> dt.datetime:
    return midnight(t).replace(day=1)


def begin_of_quarter(t: dt.datetime) -> dt.datetime:
    return begin_of_month(t).replace(month=(t.month - 1) // 3 * 3 + 1)


def begin_of_year(t: dt.datetime) -> dt.datetime:
    return begin_of_month(t).replace(month=1)


def _add_months(t: dt.datetime, months: int) -> dt.datetime:
    m = t.month - 1 + months
    year = t.year + m // 12
    month = m % 12 + 1
    day = min(t.day, calendar.monthrange(year, month)[1])
    return t.replace(year=year, month=month, day=day)


def same_time_next_hour(t: dt.datetime) -> dt.datetime:
    # Absolute hour so that DST transitions neither repeat nor skip slots.
    tz = t.tzinfo
    if tz is None:
        return t + dt.timedelta(hours=1)
    return (t.astimezone(dt.timezone.utc) + dt.timedelta(hours=1)).astimezone(tz)


def same_time_next_day(t: dt.datetime) -> dt.datetime:
    return t + dt.timedelta(days=1)


def same_time_next_week(t: dt.datetime) -> dt.datetime:
    return t + dt.timedelta(days=7)


def same_time_next_month(t: dt.datetime) -> dt.datetime:
    return _add_months(t, 1)


def same_time_next_quarter(t: dt.datetime) -> dt.datetime:
    return _add_months(t, 3)


def same_time_next_year(t: dt.datetime) -> dt.datetime:
    return t.replace(year=t.year + 1)


# --- labels ------------------------------------------------------------------


def weekday_and_date(t: dt.datetime) -> str:
    return t.strftime("%a %Y-%m-%d")


def short_month_and_year(t: dt.datetime) -> str:
    return t.strftime("%b %Y")


def short_month_name(t: dt.datetime) -> str:
    return t.strftime("%b")


def quarter_name(t: dt.datetime) -> str:
    return f"Q{(t.month - 1) // 3 + 1}"


def hour_label(t: dt.datetime) -> str:
    return str(t.hour)


def day_label(t: dt.datetime) -> str:
    return str(t.day)


def year_label(t: dt.datetime) -> str:
    return str(t.year)


@dataclass(frozen=True)
class TimeScale:
    kind: str
    align: Callable[[dt.datetime, bool], dt.datetime]
    step: Callable[[dt.datetime], dt.datetime]
    upper: Optional[Callable[[dt.datetime], str]]
    lower: Callable[[dt.datetime], str]


SCALES = {
    "hourly": TimeScale("hourly", lambda t, m: midnight(t), same_time_next_hour, weekday_and_date, hour_label),
    "daily": TimeScale("daily", lambda t, m: midnight(t), same_time_next_day, short_month_and_year, day_label),
    "weekly": TimeScale("weekly", begin_of_week, same_time_next_week, short_month_and_year, day_label),
    "monthly": TimeScale("monthly", lambda t, m: begin_of_month(t), same_time_next_month, year_label, short_month_name),
    "quarterly": TimeScale("quarterly", lambda t, m: begin_of_quarter(t), same_time_next_quarter, year_label, quarter_name),
    "yearly": TimeScale("yearly", lambda t, m: begin_of_year(t), same_time_next_year, None, year_label),
}


def try_merge(cell: ReportTableCell, line: ReportTableLine, first_cell: Optional[ReportTableCell]) -> None:
    """Fold an empty cell into the previous visible cell if both look the same."""
    if cell.text != "" or first_cell is None:
        return
    prev = line.last_visible_cell()
    if prev is not None and prev.same_look(cell):
        cell.hidden = True
        prev.columns += 1


class TimeScaleColumnBuilder:
    """Generates calendar headers and per property calendar cells.

    make_query(**fields) must return a fresh, unprocessed query object
    carrying the report's formatting options.
    """

    def __init__(
        self,
        project: Any,
        start: dt.datetime,
        end: dt.datetime,
        *,
        make_query: Callable[..., Any],
        legend: ReportTableLegend,
        time_format: str = "%Y-%m-%d",
        week_starts_monday: bool = True,
    ) -> None:
        self.project = project
        self.start = start
        self.end = end
        self.make_query = make_query
        self.legend = legend
        self.time_format = time_format
        self.week_starts_monday = week_starts_monday

    def first_slot_start(self, kind: str) -> dt.datetime:
        return SCALES[kind].align(self.start, self.week_starts_monday)

    def slots(self, kind: str) -> Iterator[Interval]:
        scale = SCALES[kind]
        t = self.first_slot_start(kind)
        while t < self.end:
            nt = scale.step(t)
            yield Interval(t, nt)
            t = nt

    # --- header --------------------------------------------------------------

    def generate_header(self, table: Any, column_def: ColumnDefinition) -> ColumnTable:
        """Add the calendar column to table and return its embedded table."""
        scale = SCALES[column_def.id]
        table_column = ReportTableColumn(table, column_def, "")
        table.equi_lines = True
        # Embedded tables have an unpredictable width.
        table_column.scrollbar = True

        ctable = ColumnTable(max_width=column_def.width)
        table_column.cell1.special = ctable
        table_column.cell2.hidden = True

        t = self.first_slot_start(column_def.id)
        while t < self.end:
            label = scale.upper(t) if scale.upper else None
            group: List[dt.datetime] = []
            while t < self.end and (scale.upper is None or scale.upper(t) == label):
                group.append(t)
                t = scale.step(t)
            for i, st in enumerate(group):
                column = ReportTableColumn(ctable, None, "")
                column.cell1.data = st.strftime(self.time_format)
                if i == 0:
                    column.cell1.text = label or ""
                    column.cell1.columns = len(group)
                else:
                    column.cell1.hidden = True
                column.cell2.text = scale.lower(st)
                column.cell2.width = CALENDAR_CELL_WIDTH
                if not self.project.is_working_time(Interval(st, scale.step(st))):
                    column.cell2.category = "tabhead_offduty"
        return ctable

    # --- body ----------------------------------------------------------------

    def generate_cells(self, line: ReportTableLine, column_def: ColumnDefinition, scenario_idx: int) -> None:
        if line.property.kind == PropertyKind.TASK:
            self.task_cells(line, column_def, scenario_idx)
        else:
            self.resource_cells(line, column_def, scenario_idx)

    @staticmethod
    def _parity(line: ReportTableLine) -> str:
        return "1" if line.property.index % 2 == 1 else "2"

    @staticmethod
    def _new_cell(line: ReportTableLine) -> ReportTableCell:
        cell = line.new_cell("")
        cell.bold = line.property.is_container()
        return cell

    def task_cells(self, line: ReportTableLine, column_def: ColumnDefinition, scenario_idx: int) -> None:
        task = line.property
        scope = line.scope_property
        resource = scope if scope is not None and scope.kind == PropertyKind.RESOURCE else None
        task_iv = task.effective_interval(scenario_idx)

        first: Optional[ReportTableCell] = None
        for cell_iv in self.slots(column_def.id):
            cell = self._new_cell(line)
            if column_def.content == "load":
                q = self.make_query(
                    property=task, scope_property=resource, attribute_id="effort",
                    scenario_idx=scenario_idx, start=cell_iv.start, end=cell_iv.end,
                )
                q.process()
                # Zero values are left out for readability.
                if q.ok and q.numerical_result > 0.0:
                    cell.text = q.result

            if cell_iv.overlaps(task_iv):
                category = "calconttask" if task.is_container() else "caltask"
            elif not self.project.is_working_time(cell_iv):
                category = "offduty"
            else:
                category = "taskcell"
            cell.category = category + self._parity(line)

            try_merge(cell, line, first)
            if first is None:
                first = cell

        self.legend.add_calendar_item("Container Task", "calconttask1")
        self.legend.add_calendar_item("Task", "caltask1")
        self.legend.add_calendar_item("Off duty time", "offduty")

    def resource_cells(self, line: ReportTableLine, column_def: ColumnDefinition, scenario_idx: int) -> None:
        resource = line.property
        scope = line.scope_property
        task = scope if scope is not None and scope.kind == PropertyKind.TASK else None
        task_iv = task.effective_interval(scenario_idx) if task is not None else None

        first: Optional[ReportTableCell] = None
        for cell_iv in self.slots(column_def.id):
            cell = self._new_cell(line)

            def _load(attr: str, scope_prop: Any) -> Any:
                q = self.make_query(
                    property=resource, scope_property=scope_prop, attribute_id=attr,
                    scenario_idx=scenario_idx, start=cell_iv.start, end=cell_iv.end,
                )
                return q.process()

            q_all = _load("effort", None)
            work_load = q_all.numerical_result
            scaled = q_all.result
            if task is not None:
                q_task = _load("effort", task)
                work_load_task = q_task.numerical_result
                scaled = q_task.result
            else:
                work_load_task = 0.0
            free_load = _load("freework", None).numerical_result

            if column_def.content == "load":
                shown = work_load_task if task is not None else work_load
                if shown > 0.0:
                    cell.text = scaled

            if task is not None:
                if cell_iv.overlaps(task_iv):  # type: ignore[arg-type]
                    if work_load_task > 0.0 and free_load == 0.0:
                        category = "busy"
                    elif work_load == 0.0 and free_load == 0.0:
                        category = "offduty"
                    else:
                        category = "loaded"
                elif free_load > 0.0:
                    category = "free"
                elif work_load == 0.0 and free_load == 0.0:
                    category = "offduty"
                else:
                    category = "resourcecell"
            elif work_load > 0.0 and free_load == 0.0:
                category = "busy"
            elif work_load > 0.0 and free_load > 0.0:
                category = "loaded"
            elif work_load == 0.0 and free_load > 0.0:
                category = "free"
            else:
                category = "offduty"
            cell.category = category + self._parity(line)

            try_merge(cell, line, first)
            if first is None:
                first = cell

        self.legend.add_calendar_item("Resource is fully loaded", "busy1")
        self.legend.add_calendar_item("Resource is partially loaded", "loaded1")
        self.legend.add_calendar_item("Resource is available", "free1")
        self.legend.add_calendar_item("Off duty time", "offduty")


__all__ = [
    "SCALES",
    "TimeScale",
    "TimeScaleColumnBuilder",
    "begin_of_month",
    "begin_of_quarter",
    "begin_of_week",
    "begin_of_year",
    "midnight",
    "try_merge",
]
