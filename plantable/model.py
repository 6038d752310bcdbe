# plantable/model.py
"""In-memory project model consumed by the report engine.

Scheduling is not done here: task dates and resource bookings are inputs.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, FrozenSet, Iterable, Iterator, List, Optional, Protocol, Tuple

from .attribute import AttributeKind, AttributeType, AttributeValue, Provenance, RichText
from .errors import DataError
from .interval import Interval, effective_interval


class PropertyKind(str, Enum):
    TASK = "task"
    RESOURCE = "resource"


class Reportable(Protocol):
    """What the report engine needs from a task or resource."""

    kind: PropertyKind

    def attribute(self, attr_id: str, scenario_idx: Optional[int] = None) -> AttributeValue: ...

    def is_container(self) -> bool: ...

    def effective_interval(self, scenario_idx: int) -> Interval: ...


_COMMON_ATTRIBUTES = (
    AttributeType("id", "Id"),
    AttributeType("name", "Name"),
    AttributeType("seqno", "Seq. No.", AttributeKind.INTEGER),
    AttributeType("index", "Index", AttributeKind.INTEGER),
    AttributeType("note", "Note", AttributeKind.RICHTEXT),
    AttributeType("flags", "Flags", AttributeKind.LIST, (), scenario_specific=True, inheritable=True),
)

TASK_ATTRIBUTES: Tuple[AttributeType, ...] = _COMMON_ATTRIBUTES + (
    AttributeType("start", "Start", AttributeKind.DATE, scenario_specific=True),
    AttributeType("end", "End", AttributeKind.DATE, scenario_specific=True),
    AttributeType("complete", "Completion", AttributeKind.FLOAT, scenario_specific=True),
    AttributeType("milestone", "Milestone", AttributeKind.BOOLEAN, False, scenario_specific=True),
    AttributeType("priority", "Priority", AttributeKind.INTEGER, 500, scenario_specific=True, inheritable=True),
    AttributeType("account", "Account", AttributeKind.STRING, scenario_specific=True, inheritable=True),
    AttributeType("responsible", "Responsible", AttributeKind.STRING, inheritable=True),
)

RESOURCE_ATTRIBUTES: Tuple[AttributeType, ...] = _COMMON_ATTRIBUTES + (
    AttributeType("rate", "Rate", AttributeKind.FLOAT, 0.0, scenario_specific=True, inheritable=True),
    AttributeType("efficiency", "Efficiency", AttributeKind.FLOAT, 1.0, scenario_specific=True),
    AttributeType("email", "E-Mail"),
)


@dataclass(frozen=True)
class Scenario:
    id: str
    name: str


@dataclass(frozen=True)
class Booking:
    """A slot of a resource working on a leaf task."""

    task: "Task"
    interval: Interval


@dataclass(frozen=True)
class WorkingHours:
    """Weekly working time: the same daily window on every working weekday."""

    weekdays: FrozenSet[int] = frozenset({0, 1, 2, 3, 4})  # Monday == 0
    start_min: int = 9 * 60
    end_min: int = 17 * 60

    @property
    def daily_seconds(self) -> float:
        return float((self.end_min - self.start_min) * 60)

    def working_seconds(self, iv: Interval) -> float:
        """Seconds of working time inside iv (iv bounds must be aware datetimes)."""
        if iv.is_empty():
            return 0.0
        tz = iv.start.tzinfo
        total = 0.0
        day = iv.start.date()
        while True:
            day_start = dt.datetime(day.year, day.month, day.day, tzinfo=tz)
            if day_start >= iv.end:
                break
            if day.weekday() in self.weekdays:
                window = Interval(
                    day_start + dt.timedelta(minutes=self.start_min),
                    day_start + dt.timedelta(minutes=self.end_min),
                )
                total += window.overlap_seconds(iv)
            day += dt.timedelta(days=1)
        return total


class PropertySet:
    """All tasks or all resources of a project, in declaration order."""

    def __init__(self, project: "Project", kind: PropertyKind, attribute_types: Iterable[AttributeType]) -> None:
        self.project = project
        self.kind = kind
        self._items: List[PropertyNode] = []
        self._by_id: Dict[str, PropertyNode] = {}
        self._types: Dict[str, AttributeType] = {}
        for t in attribute_types:
            self.define_attribute(t)

    def define_attribute(self, attr_type: AttributeType) -> None:
        self._types[attr_type.id] = attr_type

    def attribute_type(self, attr_id: str) -> Optional[AttributeType]:
        return self._types.get(attr_id)

    def attribute_types(self) -> List[AttributeType]:
        return list(self._types.values())

    def attribute_name(self, attr_id: str) -> Optional[str]:
        t = self._types.get(attr_id)
        return t.name if t else None

    def scenario_specific(self, attr_id: str) -> bool:
        t = self._types.get(attr_id)
        return bool(t and t.scenario_specific)

    def add(self, node: "PropertyNode") -> None:
        if node.id in self._by_id:
            raise DataError(f"Duplicate {self.kind.value} id: {node.id!r}")
        self._items.append(node)
        self._by_id[node.id] = node

    def get(self, prop_id: str) -> Optional["PropertyNode"]:
        return self._by_id.get(prop_id)

    def top_level(self) -> List["PropertyNode"]:
        return [p for p in self._items if p.parent is None]

    def __getitem__(self, prop_id: str) -> "PropertyNode":
        return self._by_id[prop_id]

    def __iter__(self) -> Iterator["PropertyNode"]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, node: object) -> bool:
        return isinstance(node, PropertyNode) and self._by_id.get(node.id) is node


class PropertyNode:
    """A task or resource in the property tree."""

    kind: ClassVar[PropertyKind]

    def __init__(self, property_set: PropertySet, prop_id: str, name: str, parent: Optional["PropertyNode"] = None) -> None:
        self.property_set = property_set
        self.parent = parent
        self.children: List[PropertyNode] = []
        self._attrs: Dict[str, AttributeValue] = {}
        self._scenario_attrs: List[Dict[str, AttributeValue]] = [
            {} for _ in property_set.project.scenarios
        ]

        siblings = parent.children if parent else property_set.top_level()
        self.set("id", prop_id)
        self.set("name", name)
        self.set("seqno", len(property_set) + 1)
        self.set("index", len(siblings) + 1)

        if parent is not None:
            parent.children.append(self)
        property_set.add(self)

    @property
    def project(self) -> "Project":
        return self.property_set.project

    @property
    def id(self) -> str:
        return self.get("id")

    @property
    def name(self) -> str:
        return self.get("name")

    @property
    def seqno(self) -> int:
        return self.get("seqno")

    @property
    def index(self) -> int:
        return self.get("index")

    @property
    def level(self) -> int:
        n = 0
        p = self.parent
        while p is not None:
            n += 1
            p = p.parent
        return n

    def depth(self) -> int:
        return self.level

    def ancestors(self) -> Iterator["PropertyNode"]:
        p = self.parent
        while p is not None:
            yield p
            p = p.parent

    def is_descendant_of(self, node: "PropertyNode") -> bool:
        return any(a is node for a in self.ancestors())

    def is_container(self) -> bool:
        return bool(self.children)

    def is_leaf(self) -> bool:
        return not self.children

    def leaves(self) -> Iterator["PropertyNode"]:
        if not self.children:
            yield self
            return
        for c in self.children:
            yield from c.leaves()

    def tree_path(self) -> Tuple[int, ...]:
        path = [self.index]
        path.extend(a.index for a in self.ancestors())
        return tuple(reversed(path))

    # --- attributes ---------------------------------------------------------

    def _store(self, attr_id: str, scenario_idx: Optional[int]) -> Tuple[AttributeType, Dict[str, AttributeValue]]:
        attr_type = self.property_set.attribute_type(attr_id)
        if attr_type is None:
            raise DataError(f"Unknown {self.kind.value} attribute: {attr_id!r}")
        if not attr_type.scenario_specific:
            return attr_type, self._attrs
        if scenario_idx is None or scenario_idx < 0:
            scenario_idx = 0
        try:
            return attr_type, self._scenario_attrs[scenario_idx]
        except IndexError as e:
            raise DataError(f"Unknown scenario index: {scenario_idx}") from e

    def _slot(self, attr_id: str, scenario_idx: Optional[int]) -> Optional[AttributeValue]:
        return self._store(attr_id, scenario_idx)[1].get(attr_id)

    def attribute(self, attr_id: str, scenario_idx: Optional[int] = None) -> AttributeValue:
        """Return the AttributeValue; unset values come back as type defaults."""
        attr_type, store = self._store(attr_id, scenario_idx)
        if attr_id not in store:
            store[attr_id] = AttributeValue(attr_type, self)
        return store[attr_id]

    def get(self, attr_id: str, scenario_idx: Optional[int] = None) -> Any:
        attr_type, store = self._store(attr_id, scenario_idx)
        av = store.get(attr_id)
        if av is None:
            return attr_type.default
        return av.get_value()

    def __getitem__(self, key: Any) -> Any:
        if isinstance(key, tuple):
            return self.get(key[0], key[1])
        return self.get(key)

    def provided(self, attr_id: str, scenario_idx: Optional[int] = None) -> bool:
        av = self._slot(attr_id, scenario_idx)
        return bool(av and av.is_set())

    def set(
        self,
        attr_id: str,
        value: Any,
        scenario_idx: Optional[int] = None,
        provenance: Provenance = Provenance.PROVIDED,
    ) -> None:
        av = self.attribute(attr_id, scenario_idx)
        av.set_value(av.type.coerce(value), provenance)

    def effective_interval(self, scenario_idx: int) -> Interval:
        return self.project.interval

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.id!r})"


class Task(PropertyNode):
    kind = PropertyKind.TASK

    def effective_interval(self, scenario_idx: int) -> Interval:
        return effective_interval(
            self.get("start", scenario_idx),
            self.get("end", scenario_idx),
            fallback=self.project.interval,
        )

    def is_milestone(self, scenario_idx: int) -> bool:
        if self.get("milestone", scenario_idx):
            return True
        s = self.get("start", scenario_idx)
        return s is not None and s == self.get("end", scenario_idx)


class Resource(PropertyNode):
    kind = PropertyKind.RESOURCE

    def __init__(self, property_set: PropertySet, prop_id: str, name: str, parent: Optional[PropertyNode] = None) -> None:
        super().__init__(property_set, prop_id, name, parent)
        self._bookings: List[List[Booking]] = [[] for _ in property_set.project.scenarios]

    def book(self, scenario_idx: int, task: Task, iv: Interval) -> None:
        if self.children:
            raise DataError(f"Bookings are only allowed for leaf resources: {self.id!r}")
        if task.children:
            raise DataError(f"Bookings are only allowed for leaf tasks: {task.id!r}")
        self._bookings[scenario_idx].append(Booking(task, iv))

    def bookings(self, scenario_idx: int) -> Iterator[Booking]:
        for leaf in self.leaves():
            yield from leaf._bookings[scenario_idx]  # type: ignore[attr-defined]

    def _matching(self, scenario_idx: int, iv: Optional[Interval], task: Optional[PropertyNode]) -> Iterator[Booking]:
        for b in self.bookings(scenario_idx):
            if task is not None and not (b.task is task or b.task.is_descendant_of(task)):
                continue
            if iv is not None and not b.interval.overlaps(iv):
                continue
            yield b

    def allocated(self, scenario_idx: int, iv: Optional[Interval], task: Optional[PropertyNode] = None) -> bool:
        return next(self._matching(scenario_idx, iv, task), None) is not None

    def booked_seconds(self, scenario_idx: int, iv: Interval, task: Optional[PropertyNode] = None) -> float:
        return sum(b.interval.overlap_seconds(iv) for b in self._matching(scenario_idx, iv, task))


@dataclass
class ReportContext:
    """Per-generation context; swapped in and out around nested report runs."""

    project: "Project"
    report: Any = None
    attributes: Dict[str, Any] = field(default_factory=dict)


class Project:
    def __init__(
        self,
        project_id: str,
        name: str,
        start: dt.datetime,
        end: dt.datetime,
        *,
        version: str = "1.0",
        copyright: Optional[str] = None,
        scenarios: Optional[List[Scenario]] = None,
        working_hours: Optional[WorkingHours] = None,
        now: Optional[dt.datetime] = None,
        tz: Optional[dt.tzinfo] = None,
    ) -> None:
        if end <= start:
            raise DataError("Project end must be after project start")
        self.id = project_id
        self.name = name
        self.version = version
        self.copyright = copyright
        self.start = start
        self.end = end
        self.now = now or start
        self.tz = tz or start.tzinfo or dt.timezone.utc
        self.scenarios: List[Scenario] = scenarios or [Scenario("plan", "Plan")]
        self.working_hours = working_hours or WorkingHours()
        self.tasks = PropertySet(self, PropertyKind.TASK, TASK_ATTRIBUTES)
        self.resources = PropertySet(self, PropertyKind.RESOURCE, RESOURCE_ATTRIBUTES)
        self.reports: Dict[str, Any] = {}
        self.report_context: Optional[ReportContext] = None

    @property
    def interval(self) -> Interval:
        return Interval(self.start, self.end)

    def scenario_idx(self, scenario_id: str) -> int:
        for i, sc in enumerate(self.scenarios):
            if sc.id == scenario_id:
                return i
        raise DataError(f"Unknown scenario: {scenario_id!r}")

    def add_task(self, task_id: str, name: str, parent: Optional[Task] = None) -> Task:
        return Task(self.tasks, task_id, name, parent)

    def add_resource(self, resource_id: str, name: str, parent: Optional[Resource] = None) -> Resource:
        return Resource(self.resources, resource_id, name, parent)

    def is_working_time(self, iv: Interval) -> bool:
        return self.working_hours.working_seconds(iv) > 0.0

    def working_seconds(self, iv: Interval) -> float:
        return self.working_hours.working_seconds(iv)

    def add_report(self, report: Any) -> None:
        self.reports[report.id] = report

    def report(self, report_id: str) -> Any:
        return self.reports.get(report_id)


__all__ = [
    "Booking",
    "PropertyKind",
    "PropertyNode",
    "PropertySet",
    "Project",
    "ReportContext",
    "Reportable",
    "Resource",
    "RichText",
    "Scenario",
    "Task",
    "WorkingHours",
    "RESOURCE_ATTRIBUTES",
    "TASK_ATTRIBUTES",
]
