"""plantable.query

Value queries: resolve an attribute id of a property (optionally scoped by a
second property) to display text and a numeric value.

Report code treats this as an exchangeable evaluator; anything with the same
attributes and a process() method can be passed as query_factory.
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Callable, Dict, Iterator, Optional, Tuple

from .attribute import AttributeKind, RichText
from .errors import DataError
from .interval import Interval
from .model import Booking, PropertyKind, PropertyNode, Resource
from .numfmt import DEFAULT_CURRENCY_FORMAT, DEFAULT_NUMBER_FORMAT, RealFormat, load_factors, scale_value

DEFAULT_TIME_FORMAT = "%Y-%m-%d"


class Query:
    """A mutable query record, processed on demand."""

    def __init__(
        self,
        property: Optional[PropertyNode] = None,
        scope_property: Optional[PropertyNode] = None,
        attribute_id: Optional[str] = None,
        scenario_idx: int = 0,
        *,
        load_unit: str = "days",
        number_format: RealFormat = DEFAULT_NUMBER_FORMAT,
        currency_format: RealFormat = DEFAULT_CURRENCY_FORMAT,
        time_format: str = DEFAULT_TIME_FORMAT,
        start: Optional[dt.datetime] = None,
        end: Optional[dt.datetime] = None,
        cost_account: Optional[str] = None,
        revenue_account: Optional[str] = None,
    ) -> None:
        self.property = property
        self.scope_property = scope_property
        self.attribute_id = attribute_id
        self.scenario_idx = scenario_idx
        self.load_unit = load_unit
        self.number_format = number_format
        self.currency_format = currency_format
        self.time_format = time_format
        self.start = start
        self.end = end
        self.cost_account = cost_account
        self.revenue_account = revenue_account
        self._reset()

    def _reset(self) -> None:
        self.ok = False
        self.result = ""
        self.numerical_result = 0.0
        self.error_message = ""

    def copy(self, **changes: Any) -> "Query":
        q = Query.__new__(Query)
        q.__dict__.update(self.__dict__)
        q.__dict__.update(changes)
        q._reset()
        return q

    # --- processing ---------------------------------------------------------

    def process(self) -> "Query":
        self._reset()
        prop = self.property
        if prop is None:
            return self._fail("Query has no property")
        if not self.attribute_id:
            return self._fail("Query has no attribute id")

        handler = _COMPUTED.get(self.attribute_id)
        try:
            if handler is not None:
                handler(self, prop)
            else:
                self._plain_attribute(prop)
        except DataError as e:
            return self._fail(str(e))
        return self

    def _fail(self, msg: str) -> "Query":
        self.ok = False
        self.result = ""
        self.numerical_result = 0.0
        self.error_message = msg
        return self

    def _set(self, text: str, number: float = 0.0) -> None:
        self.ok = True
        self.result = text
        self.numerical_result = float(number)

    @property
    def interval(self) -> Interval:
        project = self.property.project  # type: ignore[union-attr]
        return Interval(self.start or project.start, self.end or project.end)

    def _daily_seconds(self) -> float:
        return self.property.project.working_hours.daily_seconds  # type: ignore[union-attr]

    def _format_load(self, days: float) -> str:
        hours = self._daily_seconds() / 3600.0
        return scale_value(days, load_factors(hours), self.load_unit, self.number_format)

    def _plain_attribute(self, prop: PropertyNode) -> None:
        attr_type = prop.property_set.attribute_type(self.attribute_id)  # type: ignore[arg-type]
        if attr_type is None:
            raise DataError(f"Unknown attribute '{self.attribute_id}' for {prop.kind.value} {prop.id}")
        value = prop.get(attr_type.id, self.scenario_idx)
        if value is None:
            self._set("")
        elif attr_type.kind == AttributeKind.DATE:
            self._set(value.strftime(self.time_format), value.timestamp())
        elif attr_type.kind in (AttributeKind.FLOAT, AttributeKind.INTEGER):
            text = self.number_format.format(value) if attr_type.kind == AttributeKind.FLOAT else str(value)
            self._set(text, value)
        elif attr_type.kind == AttributeKind.LIST:
            self._set(", ".join(str(x) for x in value))
        elif isinstance(value, RichText):
            self._set(value.value)
        else:
            self._set(str(value))

    # --- bookings -----------------------------------------------------------

    def _bookings(self, prop: PropertyNode, scope: Optional[PropertyNode]) -> Iterator[Tuple[Resource, Booking]]:
        """Bookings of prop within the query interval, restricted by the scope."""
        iv = self.interval
        sc = self.scenario_idx
        if prop.kind == PropertyKind.RESOURCE:
            resources = [prop]
            task = scope if scope is not None and scope.kind == PropertyKind.TASK else None
        else:
            task = prop
            if scope is not None and scope.kind == PropertyKind.RESOURCE:
                resources = [scope]
            else:
                resources = [r for r in prop.project.resources if r.parent is None]
        for r in resources:
            for leaf in r.leaves():
                for b in leaf._matching(sc, iv, task):  # type: ignore[attr-defined]
                    yield leaf, b  # type: ignore[misc]

    def effort_days(self, prop: PropertyNode, scope: Optional[PropertyNode]) -> float:
        iv = self.interval
        secs = sum(b.interval.overlap_seconds(iv) for _, b in self._bookings(prop, scope))
        return secs / self._daily_seconds()

    def _amount(self, prop: PropertyNode, scope: Optional[PropertyNode], account: Optional[str]) -> float:
        iv = self.interval
        sc = self.scenario_idx
        total = 0.0
        for r, b in self._bookings(prop, scope):
            if account is not None and b.task.get("account", sc) != account:
                continue
            days = b.interval.overlap_seconds(iv) / self._daily_seconds()
            total += days * float(r.get("rate", sc) or 0.0)
        return total


def _q_effort(q: Query, prop: PropertyNode) -> None:
    days = q.effort_days(prop, q.scope_property)
    q._set(q._format_load(days), days)


def _q_freework(q: Query, prop: PropertyNode) -> None:
    if prop.kind != PropertyKind.RESOURCE:
        raise DataError("'freework' is only available for resources")
    iv = q.interval
    free = 0.0
    for leaf in prop.leaves():
        working = prop.project.working_seconds(iv)
        booked = leaf.booked_seconds(q.scenario_idx, iv)  # type: ignore[attr-defined]
        free += max(0.0, working - booked)
    days = free / q._daily_seconds()
    q._set(q._format_load(days), days)


def _q_duration(q: Query, prop: PropertyNode) -> None:
    if prop.kind != PropertyKind.TASK:
        q._set("")
        return
    secs = prop.effective_interval(q.scenario_idx).overlap_seconds(q.interval)
    days = secs / 86400.0
    q._set(q.number_format.format(days), days)


def _q_complete(q: Query, prop: PropertyNode) -> None:
    if prop.kind != PropertyKind.TASK:
        q._set("")
        return
    sc = q.scenario_idx
    if prop.provided("complete", sc):
        pct = float(prop.get("complete", sc))
    else:
        iv = prop.effective_interval(sc)
        now = prop.project.now
        if now <= iv.start:
            pct = 0.0
        elif now >= iv.end:
            pct = 100.0
        else:
            pct = 100.0 * (now - iv.start).total_seconds() / iv.duration.total_seconds()
    q._set(f"{int(round(pct))}%", pct)


def _q_cost(q: Query, prop: PropertyNode) -> None:
    v = q._amount(prop, q.scope_property, q.cost_account)
    q._set(q.currency_format.format(v), v)


def _q_revenue(q: Query, prop: PropertyNode) -> None:
    v = q._amount(prop, q.scope_property, q.revenue_account) if q.revenue_account else 0.0
    q._set(q.currency_format.format(v), v)


def _q_rate(q: Query, prop: PropertyNode) -> None:
    if prop.kind != PropertyKind.RESOURCE:
        q._set("")
        return
    v = float(prop.get("rate", q.scenario_idx) or 0.0)
    q._set(q.currency_format.format(v), v)


def _q_wbs(q: Query, prop: PropertyNode) -> None:
    q._set(".".join(str(i) for i in prop.tree_path()))


def _q_placeholder(q: Query, prop: PropertyNode) -> None:
    # Row counters are filled in by the table builder.
    q._set("")


_COMPUTED: Dict[str, Callable[[Query, PropertyNode], None]] = {
    "complete": _q_complete,
    "cost": _q_cost,
    "duration": _q_duration,
    "effort": _q_effort,
    "freework": _q_freework,
    "line": _q_placeholder,
    "no": _q_placeholder,
    "rate": _q_rate,
    "revenue": _q_revenue,
    "wbs": _q_wbs,
}


__all__ = ["Query", "DEFAULT_TIME_FORMAT"]
