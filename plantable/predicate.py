# plantable/predicate.py
"""Hide/rollup predicates.

A small token language in the style of Taskwarrior filters. Tokens are
AND-ed together:

    true | 1              always matches
    false | 0             never matches
    id:A,B                property id is one of A, B
    name~RE / name!~RE    name matches / does not match regex
    +flag / -flag         flags attribute contains / lacks flag
    leaf | container      tree position
    milestone             task is a milestone in the scenario
    scope:ID              the enclosing scope property has id ID
    ATTR=VALUE            attribute string form equals VALUE
    depth<N, depth>=N ... comparison on the tree depth
"""
from __future__ import annotations

import operator
import re
import shlex
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, Optional, Tuple

from .errors import DataError, UsageError
from .model import PropertyKind, PropertyNode

_CMP_RE = re.compile(r"^depth(<=|>=|<|>|==)(\d+)$")
_ATTR_EQ_RE = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)=(.*)$")
_CMP_OPS = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "==": operator.eq,
}


@lru_cache(maxsize=256)
def _cached_regex(pat: str) -> re.Pattern:
    try:
        return re.compile(pat)
    except re.error as e:
        raise UsageError(f"Invalid regex in predicate: {e}") from e


def _split_csv(s: str) -> Tuple[str, ...]:
    return tuple(p.strip() for p in (s or "").split(",") if p.strip())


@dataclass(frozen=True)
class Predicate:
    expr: str = ""
    constant: Optional[bool] = None
    ids: Tuple[str, ...] = ()
    scope_ids: Tuple[str, ...] = ()
    name_re_all: Tuple[str, ...] = ()
    name_re_not: Tuple[str, ...] = ()
    flags_all: Tuple[str, ...] = ()
    flags_not: Tuple[str, ...] = ()
    leaf: Optional[bool] = None
    milestone: bool = False
    attr_eq: Tuple[Tuple[str, str], ...] = ()
    depth_cmp: Tuple[Tuple[str, int], ...] = ()
    scenario_idx: int = 0

    @classmethod
    def parse(cls, expr: str, *, scenario_idx: int = 0) -> "Predicate":
        expr = (expr or "").strip()
        if not expr:
            raise UsageError("Empty predicate expression")
        try:
            toks = shlex.split(expr, posix=True)
        except ValueError as e:
            raise UsageError(f"Could not parse predicate (quoting error): {e}") from e

        if len(toks) == 1 and toks[0].lower() in ("true", "1", "false", "0"):
            return cls(expr=expr, constant=toks[0].lower() in ("true", "1"), scenario_idx=scenario_idx)

        ids, scope_ids = [], []
        re_all, re_not = [], []
        flags_all, flags_not = [], []
        attr_eq, depth_cmp = [], []
        leaf: Optional[bool] = None
        milestone = False

        for tok in toks:
            if tok.startswith("id:"):
                ids.extend(_split_csv(tok[3:]))
            elif tok.startswith("scope:"):
                scope_ids.extend(_split_csv(tok[6:]))
            elif tok.startswith("name!~"):
                re_not.append(tok[6:])
                _cached_regex(tok[6:])
            elif tok.startswith("name~"):
                re_all.append(tok[5:])
                _cached_regex(tok[5:])
            elif tok.startswith("+") and len(tok) > 1:
                flags_all.extend(_split_csv(tok[1:]))
            elif tok.startswith("-") and len(tok) > 1:
                flags_not.extend(_split_csv(tok[1:]))
            elif tok == "leaf":
                leaf = True
            elif tok == "container":
                leaf = False
            elif tok == "milestone":
                milestone = True
            else:
                m = _CMP_RE.match(tok)
                if m:
                    depth_cmp.append((m.group(1), int(m.group(2))))
                    continue
                m = _ATTR_EQ_RE.match(tok)
                if m:
                    attr_eq.append((m.group(1), m.group(2)))
                    continue
                raise UsageError(f"Unknown predicate token: {tok!r}")

        return cls(
            expr=expr,
            ids=tuple(ids),
            scope_ids=tuple(scope_ids),
            name_re_all=tuple(re_all),
            name_re_not=tuple(re_not),
            flags_all=tuple(flags_all),
            flags_not=tuple(flags_not),
            leaf=leaf,
            milestone=milestone,
            attr_eq=tuple(attr_eq),
            depth_cmp=tuple(depth_cmp),
            scenario_idx=scenario_idx,
        )

    def eval(self, prop: PropertyNode, scope: Optional[PropertyNode] = None) -> bool:
        if self.constant is not None:
            return self.constant

        if self.ids and prop.id not in self.ids:
            return False
        if self.scope_ids and (scope is None or scope.id not in self.scope_ids):
            return False
        if self.leaf is not None and prop.is_leaf() != self.leaf:
            return False
        if self.milestone and not (prop.kind == PropertyKind.TASK and prop.is_milestone(self.scenario_idx)):  # type: ignore[attr-defined]
            return False

        name = prop.name or ""
        for pat in self.name_re_all:
            if not _cached_regex(pat).search(name):
                return False
        for pat in self.name_re_not:
            if _cached_regex(pat).search(name):
                return False

        if self.flags_all or self.flags_not:
            flags = set(prop.get("flags", self.scenario_idx) or ())
            if any(f not in flags for f in self.flags_all):
                return False
            if any(f in flags for f in self.flags_not):
                return False

        for op, n in self.depth_cmp:
            if not _CMP_OPS[op](prop.level, n):
                return False

        for attr_id, want in self.attr_eq:
            try:
                v = prop.get(attr_id, self.scenario_idx)
            except DataError:
                return False
            if ("" if v is None else str(v)) != want:
                return False

        return True

    def __call__(self, prop: PropertyNode, scope: Optional[PropertyNode] = None) -> bool:
        return self.eval(prop, scope)


PredicateLike = Any  # Predicate | object with .eval | callable(prop, scope) | str


def compile_predicate(expr: PredicateLike, *, scenario_idx: int = 0) -> Optional[Any]:
    """Turn a config value into something evaluate() accepts. None/"" -> None."""
    if expr is None:
        return None
    if isinstance(expr, str):
        if not expr.strip():
            return None
        return Predicate.parse(expr, scenario_idx=scenario_idx)
    return expr


def evaluate(predicate: PredicateLike, prop: PropertyNode, scope: Optional[PropertyNode] = None) -> bool:
    if predicate is None:
        return False
    if isinstance(predicate, str):
        predicate = Predicate.parse(predicate)
    fn: Callable[..., Any] = getattr(predicate, "eval", None) or predicate
    return bool(fn(prop, scope))


__all__ = ["Predicate", "compile_predicate", "evaluate"]
