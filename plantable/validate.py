"""Project document validation helpers (library-facing)."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Set

from .config import REPORT_KINDS
from .errors import UsageError


class ProjectValidationError(UsageError):
    """Raised when a project document fails validation."""


def _require(cond: bool, msg: str, errs: List[str]) -> None:
    if not cond:
        errs.append(msg)


def _walk(nodes: Any, path: str, errs: List[str], seen: Set[str]) -> Iterable[Dict[str, Any]]:
    if nodes is None:
        return
    if not isinstance(nodes, list):
        errs.append(f"{path} must be list")
        return
    for i, n in enumerate(nodes):
        p = f"{path}[{i}]"
        if not isinstance(n, dict):
            errs.append(f"{p} must be dict")
            continue
        nid = n.get("id")
        if not (isinstance(nid, str) and nid.strip()):
            errs.append(f"{p}.id must be non-empty string")
        elif nid in seen:
            errs.append(f"{p}.id is a duplicate: {nid!r}")
        else:
            seen.add(nid)
        name = n.get("name")
        _require(name is None or isinstance(name, str), f"{p}.name must be string", errs)
        sc = n.get("scenarios")
        _require(sc is None or isinstance(sc, dict), f"{p}.scenarios must be dict", errs)
        yield n
        yield from _walk(n.get("children"), f"{p}.children", errs, seen)


def validate_project(data: Dict[str, Any], *, label: str = "project") -> List[str]:
    if not isinstance(data, dict):
        return [f"{label}: document must be a dict/object"]
    errs: List[str] = []

    proj = data.get("project")
    if not isinstance(proj, dict):
        return [f"{label}: project must be dict"]
    for k in ("id", "start", "end"):
        v = proj.get(k)
        _require(isinstance(v, str) and bool(v.strip()), f"{label}: project.{k} must be non-empty string", errs)

    scenario_ids: List[str] = ["plan"]
    scenarios = proj.get("scenarios")
    if scenarios is not None:
        if not isinstance(scenarios, list) or not scenarios:
            errs.append(f"{label}: project.scenarios must be non-empty list")
        else:
            scenario_ids = []
            for i, s in enumerate(scenarios):
                sid = s.get("id") if isinstance(s, dict) else None
                if not (isinstance(sid, str) and sid):
                    errs.append(f"{label}: project.scenarios[{i}].id must be non-empty string")
                    continue
                scenario_ids.append(sid)

    task_ids: Set[str] = set()
    for t in _walk(data.get("tasks"), f"{label}: tasks", errs, task_ids):
        for sid in (t.get("scenarios") or {}) if isinstance(t.get("scenarios"), dict) else ():
            _require(sid in scenario_ids, f"{label}: task {t.get('id')!r} uses unknown scenario {sid!r}", errs)

    resource_ids: Set[str] = set()
    for r in _walk(data.get("resources"), f"{label}: resources", errs, resource_ids):
        for sid in (r.get("scenarios") or {}) if isinstance(r.get("scenarios"), dict) else ():
            _require(sid in scenario_ids, f"{label}: resource {r.get('id')!r} uses unknown scenario {sid!r}", errs)

    bookings = data.get("bookings")
    if bookings is not None:
        if not isinstance(bookings, list):
            errs.append(f"{label}: bookings must be list")
        else:
            for i, b in enumerate(bookings):
                p = f"{label}: bookings[{i}]"
                if not isinstance(b, dict):
                    errs.append(f"{p} must be dict")
                    continue
                _require(b.get("resource") in resource_ids, f"{p}.resource is unknown: {b.get('resource')!r}", errs)
                _require(b.get("task") in task_ids, f"{p}.task is unknown: {b.get('task')!r}", errs)
                _require(isinstance(b.get("start"), str) and isinstance(b.get("end"), str), f"{p}.start/end must be strings", errs)
                sid = b.get("scenario")
                _require(sid is None or sid in scenario_ids, f"{p}.scenario is unknown: {sid!r}", errs)

    reports = data.get("reports")
    if reports is not None:
        if not isinstance(reports, list):
            errs.append(f"{label}: reports must be list")
        else:
            seen: Set[str] = set()
            for i, rep in enumerate(reports):
                p = f"{label}: reports[{i}]"
                if not isinstance(rep, dict):
                    errs.append(f"{p} must be dict")
                    continue
                rid = rep.get("id")
                if not (isinstance(rid, str) and rid):
                    errs.append(f"{p}.id must be non-empty string")
                elif rid in seen:
                    errs.append(f"{p}.id is a duplicate: {rid!r}")
                else:
                    seen.add(rid)
                kind = rep.get("kind", "taskreport")
                _require(kind in REPORT_KINDS, f"{p}.kind must be one of {', '.join(REPORT_KINDS)}", errs)
                cols = rep.get("columns")
                _require(cols is None or isinstance(cols, list), f"{p}.columns must be list", errs)

    return errs


def assert_valid_project(data: Dict[str, Any]) -> None:
    errs = validate_project(data)
    if errs:
        raise ProjectValidationError(errs[0])


__all__ = [
    "ProjectValidationError",
    "assert_valid_project",
    "validate_project",
]
