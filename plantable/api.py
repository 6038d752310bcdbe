"""plantable.api

Stable *library* entrypoint for plantable.

Policy:
  - Only names listed in __all__ are considered public API.
  - Everything else is internal and may change without notice.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Callable, Dict, List, Optional, Union

from .builder import TableBuilder
from .config import AppInfo, ColumnDefinition, ReportDefinition
from .errors import DataError, EvaluationError, PlantableError, UsageError
from .loader import load_project, load_project_from_json
from .model import Project, ReportContext
from .render.csv import table_to_csv, write_csv
from .render.html import html_document, report_to_html as _frame_to_html
from .render.html_tree import HtmlElement
from .reports import make_builder
from .validate import ProjectValidationError, assert_valid_project, validate_project
from .version import __version__

logger = logging.getLogger(__name__)

ReportRef = Union[str, ReportDefinition]


def _resolve_report(project: Project, report: ReportRef) -> ReportDefinition:
    if isinstance(report, ReportDefinition):
        return report
    found = project.report(report)
    if found is None:
        raise UsageError(f"Unknown report: {report!r}")
    return found


def generate_report(
    project: Project,
    report: ReportRef,
    *,
    query_factory: Optional[Callable[..., Any]] = None,
    activity: Optional[Callable[[int], None]] = None,
    app_info: Optional[AppInfo] = None,
) -> TableBuilder:
    """Filter, sort and generate the table of a report. Returns the builder."""
    definition = _resolve_report(project, report)
    kw: Dict[str, Any] = {"activity": activity, "app_info": app_info}
    if query_factory is not None:
        kw["query_factory"] = query_factory
    builder = make_builder(project, definition, **kw)
    builder.filter_lists()
    builder.sort_lists()
    table = builder.generate_rows()
    logger.info("report %s: %d lines", definition.id, len(table.lines))
    return builder


def report_to_html(project: Project, report: ReportRef, *, now: Optional[dt.datetime] = None, **kwargs: Any) -> str:
    """A complete HTML document for the report."""
    builder = generate_report(project, report, **kwargs)
    elements = _frame_to_html(builder, now=now)
    title = builder.report.headline or f"{project.name} - {builder.report.id}"
    return html_document(elements, title)


def report_to_csv(project: Project, report: ReportRef, **kwargs: Any) -> List[List[str]]:
    builder = generate_report(project, report, **kwargs)
    return table_to_csv(builder.begin_render())


def render_report(project: Project, args: Dict[str, Any], *, now: Optional[dt.datetime] = None) -> List[HtmlElement]:
    """Render the report named by args["id"] into a list of HTML elements.

    The project's report context is replaced for the duration of the call and
    restored afterwards, so reports may be rendered from within other reports.
    """
    report_id = args.get("id") if isinstance(args, dict) else None
    if not report_id:
        raise UsageError("Argument 'id' missing to specify the report to be used.")
    definition = project.report(report_id)
    if definition is None:
        raise UsageError(f"Unknown report {report_id}")

    saved = project.report_context
    project.report_context = ReportContext(project, definition, dict(args))
    try:
        builder = generate_report(project, definition)
        return _frame_to_html(builder, now=now)
    finally:
        project.report_context = saved


# --- Public API exports (locked by contract tests) ------------------------
# Keep changes intentional and reviewable.
# Prefer append-only unless you are intentionally reshaping the public surface.
_PUBLIC_EXPORTS = (
    "AppInfo",
    "ColumnDefinition",
    "DataError",
    "EvaluationError",
    "PlantableError",
    "ProjectValidationError",
    "ReportDefinition",
    "UsageError",
    "__version__",
    "assert_valid_project",
    "generate_report",
    "load_project",
    "load_project_from_json",
    "render_report",
    "report_to_csv",
    "report_to_html",
    "validate_project",
    "write_csv",
)

__all__ = [n for n in _PUBLIC_EXPORTS if n in globals()]
# --- /Public API exports --------------------------------------------------
