# plantable/loader.py
"""Build a Project from a JSON project document.

Document layout:

    {
      "project":   {"id", "name", "start", "end", "version", "copyright", "now",
                    "timezone", "scenarios": [{"id", "name"}],
                    "working_hours": "09:00-17:00", "working_days": [0, 1, 2, 3, 4]},
      "tasks":     [{"id", "name", <attributes>, "scenarios": {sid: {<attributes>}},
                     "children": [...]}],
      "resources": [same shape as tasks],
      "bookings":  [{"resource", "task", "start", "end", "scenario"}],
      "reports":   [<ReportDefinition dict>]
    }

Scenario specific attributes given at the top level of a property apply to
every scenario; the "scenarios" map overrides single scenarios.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

try:
    import orjson  # type: ignore
except Exception:  # pragma: no cover
    orjson = None  # type: ignore

from .attribute import AttributeKind, Provenance
from .config import ReportDefinition
from .errors import DataError
from .interval import Interval
from .model import PropertyNode, PropertySet, Project, Scenario, WorkingHours
from .util.timeparse import parse_datetime, parse_workhours
from .util.tz import resolve_tz
from .validate import assert_valid_project

logger = logging.getLogger(__name__)

JsonPath = Union[str, Path]

_STRUCTURAL_KEYS = frozenset({"id", "name", "children", "scenarios"})


def read_json(path: JsonPath) -> Any:
    p = Path(path)
    raw = p.read_bytes()
    if orjson is not None:
        return orjson.loads(raw)
    return json.loads(raw.decode("utf-8", errors="replace"))


def _set_attributes(node: PropertyNode, attrs: Dict[str, Any], scenarios: Iterable[int], tz) -> None:
    for key, raw in attrs.items():
        if key in _STRUCTURAL_KEYS:
            continue
        attr_type = node.property_set.attribute_type(key)
        if attr_type is None:
            raise DataError(f"{node.kind.value} {node.id!r}: unknown attribute {key!r}")
        value = parse_datetime(raw, tz) if attr_type.kind == AttributeKind.DATE else raw
        if attr_type.scenario_specific:
            for sc in scenarios:
                node.set(key, value, sc)
        else:
            node.set(key, value)


def _add_nodes(
    project: Project,
    items: Optional[List[Dict[str, Any]]],
    parent: Optional[PropertyNode],
    add,
) -> None:
    all_scenarios = range(len(project.scenarios))
    for item in items or []:
        node = add(str(item["id"]), str(item.get("name") or item["id"]), parent)
        _set_attributes(node, item, all_scenarios, project.tz)
        for sid, attrs in (item.get("scenarios") or {}).items():
            _set_attributes(node, attrs or {}, [project.scenario_idx(sid)], project.tz)
        _add_nodes(project, item.get("children"), node, add)


def propagate_inherited(props: PropertySet, scenario_count: int) -> int:
    """Copy inheritable values from parents to children that did not set them.

    Properties are visited in declaration order, so parents come first and
    values flow down the whole tree. Returns the number of values inherited.
    """
    count = 0
    inheritable = [t for t in props.attribute_types() if t.inheritable]
    for node in props:
        parent = node.parent
        if parent is None:
            continue
        for t in inheritable:
            scenarios: Iterable[Optional[int]] = range(scenario_count) if t.scenario_specific else (None,)
            for sc in scenarios:
                if node.provided(t.id, sc) or not parent.provided(t.id, sc):
                    continue
                node.set(t.id, parent.get(t.id, sc), sc, Provenance.INHERITED)
                count += 1
    return count


def load_project(data: Dict[str, Any], *, tz_name: Optional[str] = None, validate: bool = True) -> Project:
    """Build a Project (with its report definitions) from a parsed document."""
    if validate:
        assert_valid_project(data)

    p = data["project"]
    tz = resolve_tz(tz_name if tz_name is not None else p.get("timezone"))
    start = parse_datetime(p["start"], tz)
    end = parse_datetime(p["end"], tz)

    scenarios = [Scenario(str(s["id"]), str(s.get("name") or s["id"])) for s in p.get("scenarios") or []] or None

    wh_kw: Dict[str, Any] = {}
    if p.get("working_hours"):
        wh_kw["start_min"], wh_kw["end_min"] = parse_workhours(str(p["working_hours"]))
    if p.get("working_days") is not None:
        wh_kw["weekdays"] = frozenset(int(d) for d in p["working_days"])

    project = Project(
        str(p["id"]),
        str(p.get("name") or p["id"]),
        start,  # type: ignore[arg-type]
        end,  # type: ignore[arg-type]
        version=str(p.get("version") or "1.0"),
        copyright=p.get("copyright"),
        scenarios=scenarios,
        working_hours=WorkingHours(**wh_kw),
        now=parse_datetime(p.get("now"), tz),
        tz=tz,
    )

    _add_nodes(project, data.get("tasks"), None, project.add_task)
    _add_nodes(project, data.get("resources"), None, project.add_resource)

    n = propagate_inherited(project.tasks, len(project.scenarios))
    n += propagate_inherited(project.resources, len(project.scenarios))
    logger.debug("project %s: %d inherited attribute values", project.id, n)

    for b in data.get("bookings") or []:
        resource = project.resources[b["resource"]]
        task = project.tasks[b["task"]]
        sc = project.scenario_idx(b["scenario"]) if b.get("scenario") else 0
        iv = Interval(parse_datetime(b["start"], tz), parse_datetime(b["end"], tz))  # type: ignore[arg-type]
        if iv.is_empty():
            raise DataError(f"Booking of {resource.id!r} on {task.id!r} has end before start")
        resource.book(sc, task, iv)  # type: ignore[attr-defined]

    scenario_ids = [s.id for s in project.scenarios]
    for rep in data.get("reports") or []:
        project.add_report(
            ReportDefinition.from_dict(rep, scenario_ids=scenario_ids, parse_date=lambda s: parse_datetime(s, tz))
        )

    logger.debug(
        "loaded project %s: %d tasks, %d resources, %d reports",
        project.id, len(project.tasks), len(project.resources), len(project.reports),
    )
    return project


def load_project_from_json(path: JsonPath, *, tz_name: Optional[str] = None, validate: bool = True) -> Project:
    data = read_json(path)
    if not isinstance(data, dict):
        raise DataError(f"JSON project must be an object/dict; got {type(data).__name__}")
    return load_project(data, tz_name=tz_name, validate=validate)


__all__ = ["load_project", "load_project_from_json", "propagate_inherited", "read_json"]
