# plantable/builder.py
"""Turns filtered, sorted property lists into a ReportTable.

A TableBuilder runs one generation session:

    IDLE -> FILTERING -> SORTING -> ROW_GENERATION -> RENDERED

Report kinds (see plantable.reports) supply the filtering and the top level
row generation; this module owns header cells, line numbering, indentation
and the four kinds of cells (chart, calendar, calculated, standard).
"""
from __future__ import annotations

import datetime as dt
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from .attribute import AttributeKind
from .config import CALENDAR_KINDS, AppInfo, ColumnDefinition, ReportDefinition
from .errors import DataError, EvaluationError, UsageError
from .filter import FilterEngine
from .macro import expand_macros
from .model import PropertyKind, PropertyNode
from .predicate import compile_predicate, evaluate
from .property_list import TREE, OrderedPropertyList
from .query import Query
from .table import ChartAnnotation, ChartContext, ColumnTable, ReportTable, ReportTableCell, ReportTableColumn, ReportTableLegend, ReportTableLine
from .timescale import TimeScaleColumnBuilder

logger = logging.getLogger(__name__)

KEEPALIVE_LINES = 10
ERROR_TEXT = "<Error>"
ERROR_COLOR = 0xFF0000

# id: (header, indent, alignment, calculated, scenario specific)
PROPERTIES_BY_ID: Dict[str, Tuple[str, bool, str, bool, bool]] = {
    "complete": ("Completion", False, "right", True, True),
    "cost": ("Cost", True, "right", True, True),
    "duration": ("Duration", True, "right", True, True),
    "effort": ("Effort", True, "right", True, True),
    "id": ("Id", False, "left", True, False),
    "line": ("Line No.", False, "right", True, False),
    "name": ("Name", True, "left", False, False),
    "no": ("No.", False, "right", True, False),
    "rate": ("Rate", True, "right", True, True),
    "revenue": ("Revenue", True, "right", True, True),
    "wbs": ("WBS", False, "left", True, False),
}

# kind: (indent, alignment)
PROPERTIES_BY_KIND: Dict[AttributeKind, Tuple[bool, str]] = {
    AttributeKind.DATE: (False, "left"),
    AttributeKind.INTEGER: (False, "right"),
    AttributeKind.FLOAT: (False, "right"),
    AttributeKind.RICHTEXT: (False, "left"),
    AttributeKind.STRING: (False, "left"),
}

SPECIAL_COLUMNS = ("chart",) + CALENDAR_KINDS


class SessionState(str, Enum):
    IDLE = "idle"
    FILTERING = "filtering"
    SORTING = "sorting"
    ROW_GENERATION = "row_generation"
    RENDERED = "rendered"


_TRANSITIONS = {
    SessionState.IDLE: (SessionState.FILTERING,),
    SessionState.FILTERING: (SessionState.SORTING,),
    SessionState.SORTING: (SessionState.ROW_GENERATION,),
    SessionState.ROW_GENERATION: (SessionState.RENDERED,),
    SessionState.RENDERED: (SessionState.RENDERED,),
}


def default_column_title(project: Any, col_id: str) -> Optional[str]:
    if col_id in SPECIAL_COLUMNS:
        return ""
    if col_id in PROPERTIES_BY_ID:
        return PROPERTIES_BY_ID[col_id][0]
    return project.tasks.attribute_name(col_id) or project.resources.attribute_name(col_id)


def supported_columns() -> List[str]:
    return list(PROPERTIES_BY_ID)


def calculated(col_id: str) -> bool:
    return col_id in PROPERTIES_BY_ID and PROPERTIES_BY_ID[col_id][3]


def scenario_specific(col_id: str) -> bool:
    return col_id in PROPERTIES_BY_ID and PROPERTIES_BY_ID[col_id][4]


def indent(col_id: str, kind: Optional[AttributeKind]) -> bool:
    if col_id in PROPERTIES_BY_ID:
        return PROPERTIES_BY_ID[col_id][1]
    if kind in PROPERTIES_BY_KIND:
        return PROPERTIES_BY_KIND[kind][0]  # type: ignore[index]
    return False


def alignment(col_id: str, kind: Optional[AttributeKind]) -> str:
    if col_id in PROPERTIES_BY_ID:
        return PROPERTIES_BY_ID[col_id][2]
    if kind in PROPERTIES_BY_KIND:
        return PROPERTIES_BY_KIND[kind][1]  # type: ignore[index]
    return "center"


class TableBuilder:
    """Base class of the table report kinds.

    query_factory builds value queries (defaults to plantable.query.Query);
    activity is called with the running line number every 10 lines.
    """

    def __init__(
        self,
        project: Any,
        report: ReportDefinition,
        *,
        query_factory: Callable[..., Any] = Query,
        activity: Optional[Callable[[int], None]] = None,
        app_info: Optional[AppInfo] = None,
    ) -> None:
        self.project = project
        self.report = report
        self.query_factory = query_factory
        self.activity = activity
        self.app_info = app_info or AppInfo()
        self.state = SessionState.IDLE

        self.start: dt.datetime = report.start or project.start
        self.end: dt.datetime = report.end or project.end
        if self.end <= self.start:
            raise UsageError(f"Report {report.id!r}: end must be after start")
        for sc in report.scenarios:
            if not 0 <= sc < len(project.scenarios):
                raise UsageError(f"Report {report.id!r}: unknown scenario index {sc}")

        self._check_sorting(project.tasks, report.sort_tasks, "sort_tasks")
        self._check_sorting(project.resources, report.sort_resources, "sort_resources")
        self.task_root = self._lookup_root(project.tasks, report.task_root, "task")
        self.resource_root = self._lookup_root(project.resources, report.resource_root, "resource")

        sc0 = report.scenarios[0]
        self.hide_task = compile_predicate(report.hide_task, scenario_idx=sc0)
        self.rollup_task = compile_predicate(report.rollup_task, scenario_idx=sc0)
        self.hide_resource = compile_predicate(report.hide_resource, scenario_idx=sc0)
        self.rollup_resource = compile_predicate(report.rollup_resource, scenario_idx=sc0)
        self._hide_cell_text = [compile_predicate(c.hide_cell_text, scenario_idx=sc0) for c in report.columns]

        self.legend = ReportTableLegend()
        self.table: Optional[ReportTable] = None
        self.filter = self._make_filter()
        self._contexts: List[Any] = []
        self._rows_complete = False

    def _check_sorting(self, props: Any, levels: Any, what: str) -> None:
        for level in levels:
            if level.criterion != TREE and props.attribute_type(level.criterion) is None:
                raise UsageError(f"Report {self.report.id!r}: unknown {what} criterion {level.criterion!r}")
            if level.scenario_idx >= len(self.project.scenarios):
                raise UsageError(f"Report {self.report.id!r}: unknown scenario index {level.scenario_idx} in {what}")

    @staticmethod
    def _lookup_root(props: Any, root_id: Optional[str], what: str) -> Optional[PropertyNode]:
        if not root_id:
            return None
        node = props.get(root_id)
        if node is None:
            raise UsageError(f"Unknown {what} root: {root_id!r}")
        return node

    def _make_filter(self) -> FilterEngine:
        return FilterEngine(
            self.project,
            self.report.scenarios,
            self.start,
            self.end,
            task_root=self.task_root,
            resource_root=self.resource_root,
        )

    # --- session -------------------------------------------------------------

    def _enter(self, state: SessionState) -> None:
        if state not in _TRANSITIONS[self.state]:
            raise UsageError(f"Cannot go from {self.state.value} to {state.value}")
        logger.debug("report %s: %s -> %s", self.report.id, self.state.value, state.value)
        self.state = state

    def filter_lists(self) -> None:
        self._enter(SessionState.FILTERING)
        self._filter()

    def sort_lists(self) -> None:
        self._enter(SessionState.SORTING)
        self._sort()

    def generate_rows(self) -> ReportTable:
        self._enter(SessionState.ROW_GENERATION)
        self.table = ReportTable()
        self.filter = self._make_filter()
        self.timescale = TimeScaleColumnBuilder(
            self.project,
            self.start,
            self.end,
            make_query=self._query,
            legend=self.legend,
            time_format=self.report.time_format,
            week_starts_monday=self.report.week_starts_monday,
        )
        self._contexts = [self.generate_header_cell(c) for c in self.report.columns]
        self._generate()
        self._rows_complete = True
        return self.table

    def _current_table(self) -> ReportTable:
        if self.table is None:
            raise UsageError("No table yet: rows are generated by generate_rows()")
        return self.table

    def generate(self) -> "TableBuilder":
        """Run the whole session up to a finished table."""
        self.filter_lists()
        self.sort_lists()
        self.generate_rows()
        return self

    def begin_render(self) -> ReportTable:
        if not self._rows_complete or self.table is None:
            raise UsageError("The table has not been generated yet")
        self._enter(SessionState.RENDERED)
        return self.table

    def _filter(self) -> None:
        raise NotImplementedError

    def _sort(self) -> None:
        raise NotImplementedError

    def _generate(self) -> None:
        raise NotImplementedError

    # --- helpers ---------------------------------------------------------------

    def _query(self, **fields: Any) -> Any:
        kw: Dict[str, Any] = dict(
            property=None,
            scope_property=None,
            attribute_id=None,
            scenario_idx=self.report.scenarios[0],
            load_unit=self.report.load_unit,
            number_format=self.report.number_format,
            currency_format=self.report.currency_format,
            time_format=self.report.time_format,
            start=self.start,
            end=self.end,
            cost_account=self.report.cost_account,
            revenue_account=self.report.revenue_account,
        )
        kw.update(fields)
        return self.query_factory(**kw)

    def _keepalive(self, line_no: int) -> None:
        logger.debug("report %s: %d lines generated", self.report.id, line_no)
        if self.activity is not None:
            self.activity(line_no)

    def adjust_report_period(self, tasks: OrderedPropertyList) -> None:
        """Fit the report period to tasks, padded by 10% on both ends."""
        if not tasks:
            return
        scenarios = self.report.scenarios
        start = min(task.get("start", sc) or self.project.start for sc in scenarios for task in tasks)
        end = max(task.get("end", sc) or self.project.end for sc in scenarios for task in tasks)
        one_day = dt.timedelta(days=1)
        if end < start + one_day:
            end = start + one_day
        padding = dt.timedelta(seconds=int((end - start).total_seconds() * 0.10))
        self.start = start - padding
        self.end = end + padding
        logger.debug("report %s: period adjusted to %s - %s", self.report.id, self.start, self.end)

    # --- header --------------------------------------------------------------

    def generate_header_cell(self, column_def: ColumnDefinition) -> Any:
        """Add the header column; returns the column's context (or None)."""
        table = self._current_table()
        if column_def.is_chart:
            chart = ChartContext(
                self.start,
                self.end,
                scale=column_def.scale,
                width=column_def.width,
                now=self.project.now,
                week_starts_monday=self.report.week_starts_monday,
                header_height=table.header_line_height * 2 + 1,
            )
            column = ReportTableColumn(table, column_def, "")
            column.cell1.special = chart
            column.cell2.hidden = True
            column.scrollbar = chart.has_scrollbar()
            table.equi_lines = True
            return chart
        if column_def.is_calendar:
            return self.timescale.generate_header(table, column_def)

        title = column_def.title
        if title is None:
            title = default_column_title(self.project, column_def.id) or column_def.id
        column = ReportTableColumn(table, column_def, title)
        column.cell1.rows = 2
        column.cell2.hidden = True
        return None

    # --- rows ----------------------------------------------------------------

    def generate_task_list(
        self,
        task_list: OrderedPropertyList,
        resource_list: Optional[OrderedPropertyList],
        scope_line: Optional[ReportTableLine],
    ) -> int:
        """Lines for task_list, each followed by its nested resources.

        Returns the last line number used.
        """
        task_list.sort()

        no = 0
        line_no = scope_line.line_no if scope_line else 0
        line = None
        for task in task_list:
            no += 1
            if line_no % KEEPALIVE_LINES == 0:
                self._keepalive(line_no)
            line_no += 1
            for sc in self.report.scenarios:
                line = self._generate_line(task, scope_line, sc, no, line_no, self.task_root, task_list.tree_mode())

            if resource_list is not None:
                resource_list.set_sorting(self.report.sort_resources)
                assigned = self.filter.filter_resource_list(resource_list, task, self.hide_resource, self.rollup_resource)
                assigned.sort()
                line_no = self.generate_resource_list(assigned, None, line)
        return line_no

    def generate_resource_list(
        self,
        resource_list: OrderedPropertyList,
        task_list: Optional[OrderedPropertyList],
        scope_line: Optional[ReportTableLine],
    ) -> int:
        """Lines for resource_list, each followed by its nested tasks."""
        resource_list.sort()

        no = 0
        line_no = scope_line.line_no if scope_line else 0
        line = None
        for resource in resource_list:
            no += 1
            if line_no % KEEPALIVE_LINES == 0:
                self._keepalive(line_no)
            line_no += 1
            for sc in self.report.scenarios:
                line = self._generate_line(resource, scope_line, sc, no, line_no, self.resource_root, resource_list.tree_mode())

            if task_list is not None:
                task_list.set_sorting(self.report.sort_tasks)
                assigned = self.filter.filter_task_list(task_list, resource, self.hide_task, self.rollup_task)
                assigned.sort()
                line_no = self.generate_task_list(assigned, None, line)
        return line_no

    def _generate_line(
        self,
        prop: PropertyNode,
        scope_line: Optional[ReportTableLine],
        scenario_idx: int,
        no: int,
        line_no: int,
        root: Optional[PropertyNode],
        tree_mode: bool,
    ) -> ReportTableLine:
        table = self._current_table()
        line = table.new_line(prop, scope_line)
        if scope_line is None:
            line.no = no
        line.line_no = line_no
        self.set_indent(line, root, tree_mode)

        # Side effects on column contexts are only applied once all cells exist.
        pending: List[Callable[[], None]] = []
        for idx, column_def in enumerate(self.report.columns):
            self.generate_table_cell(line, prop, idx, column_def, scenario_idx, self._contexts[idx], pending)
        table.add_line(line)
        for commit in pending:
            commit()
        return line

    def set_indent(self, line: ReportTableLine, root: Optional[PropertyNode], tree_mode: bool) -> None:
        prop = line.property
        level = prop.level - (root.level if root is not None else 0)
        scope_line = line.scope_line
        if scope_line is not None:
            line.indentation = scope_line.indentation + 1
        if tree_mode:
            line.indentation += level

    # --- cells ---------------------------------------------------------------

    def generate_table_cell(
        self,
        line: ReportTableLine,
        prop: PropertyNode,
        col_idx: int,
        column_def: ColumnDefinition,
        scenario_idx: int,
        context: Any,
        pending: List[Callable[[], None]],
    ) -> bool:
        """Add the cell(s) of one column to line. False means a hidden cell."""
        if column_def.is_chart:
            cell = line.new_cell(None)
            cell.hidden = True
            annotation = ChartAnnotation(
                prop,
                line.scope_property,
                scenario_idx,
                (line.sub_line_no - 1) * (line.height + 1),
                line.height,
            )
            pending.append(lambda: context.add(annotation))
            return True

        if column_def.is_calendar:
            ctable: ColumnTable = context
            tc_line = ctable.new_line(prop, line.scope_line)
            self.timescale.generate_cells(tc_line, column_def, scenario_idx)
            cell = self._new_cell(line, "")
            cell.special = tc_line
            pending.append(lambda: ctable.add_line(tc_line))
            return True

        if calculated(column_def.id):
            return self.gen_calculated_cell(scenario_idx, line, col_idx, column_def, prop)
        return self.gen_standard_cell(scenario_idx, line, column_def)

    def _new_cell(self, line: ReportTableLine, text: Optional[str] = "") -> ReportTableCell:
        cell = line.new_cell(text)
        # Containers use a bold font face.
        if line.property.is_container():
            cell.bold = True
        return cell

    def cell_text(self, prop: PropertyNode, scenario_idx: int, col_id: str) -> Optional[str]:
        """Default attribute to text conversion. None marks a missing date."""
        props = prop.property_set
        attr_type = props.attribute_type(col_id)
        if attr_type is None:
            other = self.project.resources if prop.kind == PropertyKind.TASK else self.project.tasks
            if other.attribute_type(col_id) is not None:
                # Attribute of the other property kind; nothing to show here.
                return ""
            raise DataError(f"Unknown attribute {col_id!r}")

        value = prop.get(col_id, scenario_idx if attr_type.scenario_specific else None)
        if value is None:
            return None if attr_type.kind == AttributeKind.DATE else ""
        if attr_type.kind == AttributeKind.DATE:
            return value.strftime(self.report.time_format)
        if attr_type.kind == AttributeKind.RICHTEXT:
            return value.value
        if attr_type.kind == AttributeKind.LIST:
            return ", ".join(str(x) for x in value)
        return str(value)

    def _set_standard_cell_attributes(
        self, cell: ReportTableCell, column_def: ColumnDefinition, kind: Optional[AttributeKind], line: ReportTableLine
    ) -> None:
        if indent(column_def.id, kind):
            cell.indent = line.indentation
        cell.alignment = alignment(column_def.id, kind)
        parity = "1" if line.property.index % 2 == 1 else "2"
        base = "taskcell" if line.property.kind == PropertyKind.TASK else "resourcecell"
        cell.category = base + parity

    def gen_standard_cell(self, scenario_idx: int, line: ReportTableLine, column_def: ColumnDefinition) -> bool:
        prop = line.property
        props = prop.property_set
        try:
            text = self.cell_text(prop, scenario_idx, column_def.id)
        except DataError as e:
            logger.debug("line %d, column %s: %s", line.line_no, column_def.id, e)
            text = None
        cell = self._new_cell(line, text)

        scenarios = self.report.scenarios
        if len(scenarios) > 1 and not props.scenario_specific(column_def.id):
            if scenario_idx == scenarios[0]:
                cell.font_size = 15
            else:
                cell.hidden = True
                return False
            cell.rows = len(scenarios)

        attr_type = props.attribute_type(column_def.id)
        self._set_standard_cell_attributes(cell, column_def, attr_type.kind if attr_type else None, line)

        query = self._query(
            property=prop,
            scope_property=line.scope_property,
            attribute_id=column_def.id,
            scenario_idx=scenario_idx,
        )
        if cell.text is not None:
            if column_def.cell_text:
                cell.text = expand_macros(column_def.cell_text, cell.text, query)
        else:
            cell.text = ERROR_TEXT
            cell.font_color = ERROR_COLOR
            cell.category = "error"

        self.set_cell_url(cell, column_def, query)
        return True

    def gen_calculated_cell(
        self, scenario_idx: int, line: ReportTableLine, col_idx: int, column_def: ColumnDefinition, prop: PropertyNode
    ) -> bool:
        cell = self._new_cell(line)

        scenarios = self.report.scenarios
        if not scenario_specific(column_def.id):
            if scenario_idx != scenarios[0]:
                cell.hidden = True
                return False
            cell.rows = len(scenarios)

        self._set_standard_cell_attributes(cell, column_def, None, line)

        scope = line.scope_property
        hide_text = self._hide_cell_text[col_idx]
        if hide_text is not None and evaluate(hide_text, prop, scope):
            return True

        query = self._query(
            property=prop,
            scope_property=scope,
            attribute_id=column_def.id,
            scenario_idx=scenario_idx,
        )
        query.process()
        if not query.ok:
            raise EvaluationError(query.error_message or f"Cannot compute {column_def.id!r} for {prop.id}")
        cell.text = query.result

        if column_def.id == "line":
            cell.text = str(line.line_no)
        elif column_def.id == "no":
            cell.text = "" if line.no is None else str(line.no)
        elif column_def.id == "wbs" and line.scope_line is not None:
            cell.indent = 2

        if column_def.cell_text:
            cell.text = expand_macros(column_def.cell_text, cell.text, query)
        self.set_cell_url(cell, column_def, query)
        return True

    def set_cell_url(self, cell: ReportTableCell, column_def: ColumnDefinition, query: Any) -> None:
        if not column_def.cell_url:
            return
        url = expand_macros(column_def.cell_url, cell.text or "", query)
        if url:
            cell.url = url


__all__ = [
    "PROPERTIES_BY_ID",
    "PROPERTIES_BY_KIND",
    "SessionState",
    "TableBuilder",
    "alignment",
    "calculated",
    "default_column_title",
    "indent",
    "scenario_specific",
    "supported_columns",
]
