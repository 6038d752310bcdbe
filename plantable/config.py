# plantable/config.py
"""Report and column definitions, built from plain dicts."""
from __future__ import annotations

import datetime as dt
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .version import __version__
from .errors import UsageError
from .numfmt import DEFAULT_CURRENCY_FORMAT, DEFAULT_NUMBER_FORMAT, LOAD_UNITS, AUTO_UNITS, RealFormat
from .property_list import DEFAULT_SORTING, SortLevel

TIME_FORMAT_ENV = "PLANTABLE_TIME_FORMAT"
DEFAULT_TIME_FORMAT = "%Y-%m-%d"

CALENDAR_KINDS = ("hourly", "daily", "weekly", "monthly", "quarterly", "yearly")
CHART_SCALES = ("hour", "day", "week", "month", "quarter", "year")
REPORT_KINDS = ("taskreport", "resourcereport")


def default_time_format() -> str:
    return os.getenv(TIME_FORMAT_ENV) or DEFAULT_TIME_FORMAT


@dataclass(frozen=True)
class AppInfo:
    package_name: str = "plantable"
    version: str = __version__
    contact: str = "https://pypi.org/project/plantable/"
    copyright: Optional[str] = None


@dataclass(frozen=True)
class ColumnDefinition:
    id: str
    title: Optional[str] = None
    scale: str = "day"
    width: Optional[int] = None
    cell_text: Optional[str] = None
    cell_url: Optional[str] = None
    hide_cell_text: Any = None
    content: str = "load"

    @property
    def is_calendar(self) -> bool:
        return self.id in CALENDAR_KINDS

    @property
    def is_chart(self) -> bool:
        return self.id == "chart"

    @classmethod
    def from_dict(cls, raw: Any) -> "ColumnDefinition":
        if isinstance(raw, str):
            raw = {"id": raw}
        if not isinstance(raw, dict) or not raw.get("id"):
            raise UsageError(f"Column definition needs an id: {raw!r}")
        content = str(raw.get("content") or "load")
        if content not in ("load", "empty"):
            raise UsageError(f"Unknown column content {content!r} (expected load|empty)")
        scale = str(raw.get("scale") or "day")
        if scale not in CHART_SCALES:
            raise UsageError(f"Unknown chart scale {scale!r}")
        width = raw.get("width")
        return cls(
            id=str(raw["id"]),
            title=raw.get("title"),
            scale=scale,
            width=int(width) if width is not None else None,
            cell_text=raw.get("cell_text"),
            cell_url=raw.get("cell_url"),
            hide_cell_text=raw.get("hide_cell_text"),
            content=content,
        )


def _sorting(raw: Any, default: Sequence[Any]) -> Tuple[SortLevel, ...]:
    """Accept ["tree", "start.up", ["name", false, 0]] style sort lists."""
    if raw is None:
        return tuple(SortLevel.coerce(x) for x in default)
    out: List[SortLevel] = []
    for item in raw:
        if isinstance(item, str):
            crit, _, direction = item.partition(".")
            if direction not in ("", "up", "down"):
                raise UsageError(f"Bad sort direction in {item!r} (expected up|down)")
            out.append(SortLevel(crit, direction != "down", -1))
        else:
            out.append(SortLevel.coerce(item))
    return tuple(out)


@dataclass
class ReportDefinition:
    """Everything a table report needs besides the project.

    start/end left as None mean "not user defined": the builder then fits the
    report period to the listed tasks.
    """

    id: str
    kind: str = "taskreport"
    columns: List[ColumnDefinition] = field(default_factory=list)
    start: Optional[dt.datetime] = None
    end: Optional[dt.datetime] = None
    scenarios: List[int] = field(default_factory=lambda: [0])
    time_format: str = field(default_factory=default_time_format)
    week_starts_monday: bool = True
    load_unit: str = "days"
    number_format: RealFormat = DEFAULT_NUMBER_FORMAT
    currency_format: RealFormat = DEFAULT_CURRENCY_FORMAT
    sort_tasks: Tuple[SortLevel, ...] = tuple(SortLevel.coerce(x) for x in DEFAULT_SORTING)
    sort_resources: Tuple[SortLevel, ...] = tuple(SortLevel.coerce(x) for x in DEFAULT_SORTING)
    hide_task: Any = None
    rollup_task: Any = None
    hide_resource: Any = None
    rollup_resource: Any = None
    task_root: Optional[str] = None
    resource_root: Optional[str] = None
    headline: Optional[str] = None
    caption: Optional[str] = None
    prolog: Optional[str] = None
    epilog: Optional[str] = None
    cost_account: Optional[str] = None
    revenue_account: Optional[str] = None

    def __post_init__(self) -> None:
        if self.kind not in REPORT_KINDS:
            raise UsageError(f"Unknown report kind {self.kind!r} (expected one of {', '.join(REPORT_KINDS)})")
        if self.load_unit not in LOAD_UNITS + AUTO_UNITS:
            raise UsageError(f"Unknown load unit {self.load_unit!r}")
        if not self.scenarios:
            raise UsageError(f"Report {self.id!r} has no scenarios")
        # A task report lists no nested resources unless asked to, and vice versa.
        if self.kind == "taskreport" and self.hide_resource is None:
            self.hide_resource = "true"
        if self.kind == "resourcereport" and self.hide_task is None:
            self.hide_task = "true"

    @property
    def user_defined_period(self) -> bool:
        return self.start is not None or self.end is not None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any], *, scenario_ids: Sequence[str] = ("plan",), parse_date=None) -> "ReportDefinition":
        """Build from a dict; scenario ids are mapped to indices in scenario_ids."""
        if not isinstance(raw, dict) or not raw.get("id"):
            raise UsageError("Report definition needs an id")

        scenarios: List[int] = []
        for sid in raw.get("scenarios") or [scenario_ids[0]]:
            if sid not in scenario_ids:
                raise UsageError(f"Report {raw['id']!r}: unknown scenario {sid!r}")
            scenarios.append(list(scenario_ids).index(sid))

        def _date(key: str) -> Optional[dt.datetime]:
            v = raw.get(key)
            if v is None or parse_date is None:
                return v
            return parse_date(v)

        kw: Dict[str, Any] = dict(
            id=str(raw["id"]),
            kind=str(raw.get("kind") or "taskreport"),
            columns=[ColumnDefinition.from_dict(c) for c in raw.get("columns") or ["name"]],
            start=_date("start"),
            end=_date("end"),
            scenarios=scenarios,
            week_starts_monday=bool(raw.get("week_starts_monday", True)),
            load_unit=str(raw.get("load_unit") or "days"),
            number_format=RealFormat.from_dict(raw.get("number_format"), DEFAULT_NUMBER_FORMAT),
            currency_format=RealFormat.from_dict(raw.get("currency_format"), DEFAULT_CURRENCY_FORMAT),
            sort_tasks=_sorting(raw.get("sort_tasks"), DEFAULT_SORTING),
            sort_resources=_sorting(raw.get("sort_resources"), DEFAULT_SORTING),
        )
        if raw.get("time_format"):
            kw["time_format"] = str(raw["time_format"])
        for key in (
            "hide_task", "rollup_task", "hide_resource", "rollup_resource",
            "task_root", "resource_root", "headline", "caption", "prolog", "epilog",
            "cost_account", "revenue_account",
        ):
            if raw.get(key) is not None:
                kw[key] = raw[key]
        return cls(**kw)


__all__ = [
    "AppInfo",
    "CALENDAR_KINDS",
    "CHART_SCALES",
    "ColumnDefinition",
    "REPORT_KINDS",
    "ReportDefinition",
    "default_time_format",
]
