# plantable/property_list.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from .attribute import RichText
from .model import PropertyKind, PropertyNode, PropertySet

TREE = "tree"
DEFAULT_SORTING: Tuple[Tuple[str, bool, int], ...] = (("seqno", True, -1),)


@dataclass(frozen=True)
class SortLevel:
    criterion: str
    ascending: bool = True
    scenario_idx: int = -1

    @classmethod
    def coerce(cls, level: Union["SortLevel", Sequence[Any]]) -> "SortLevel":
        if isinstance(level, SortLevel):
            return level
        if isinstance(level, str):
            return cls(level)
        crit, up, *rest = level
        sc = rest[0] if rest else -1
        return cls(str(crit), bool(up), -1 if sc is None else int(sc))


def _null_first(value: Any) -> Tuple[int, Any]:
    # None orders before every concrete value; descending levels reverse this.
    if value is None:
        return (0, 0)
    return (1, value)


class OrderedPropertyList:
    """An ordered, sortable list of tasks or resources.

    Sorting is stable and lexicographic over the sort levels. The list is in
    tree mode when the first level sorts by "tree".
    """

    def __init__(self, source: Union[PropertySet, "OrderedPropertyList", Iterable[PropertyNode]], kind: Optional[PropertyKind] = None) -> None:
        if isinstance(source, PropertySet):
            kind = source.kind
        elif isinstance(source, OrderedPropertyList):
            kind = source.kind
        self._items: List[PropertyNode] = list(source)
        if kind is None:
            kind = self._items[0].kind if self._items else PropertyKind.TASK
        self.kind = kind
        self._levels: List[SortLevel] = []
        self.reset_sorting()
        if isinstance(source, OrderedPropertyList):
            self._levels = list(source._levels)
        else:
            self.add_sorting_criteria(*DEFAULT_SORTING[0])

    # --- sort specification -------------------------------------------------

    def reset_sorting(self) -> None:
        self._levels = []

    def add_sorting_criteria(self, criterion: str, ascending: bool = True, scenario_idx: int = -1) -> None:
        self._levels.append(SortLevel(criterion, ascending, scenario_idx))

    def set_sorting(self, levels: Iterable[Union[SortLevel, Sequence[Any]]]) -> None:
        self.reset_sorting()
        for level in levels:
            self._levels.append(SortLevel.coerce(level))
        self.sort()

    @property
    def sorting(self) -> Tuple[SortLevel, ...]:
        return tuple(self._levels)

    def tree_mode(self) -> bool:
        return bool(self._levels) and self._levels[0].criterion == TREE

    def _value(self, prop: PropertyNode, level: SortLevel) -> Any:
        if level.criterion == TREE:
            return prop.tree_path()
        if level.scenario_idx < 0:
            value = prop.get(level.criterion)
        else:
            value = prop.get(level.criterion, level.scenario_idx)
        if isinstance(value, RichText):
            return value.value
        return value

    def sort(self) -> None:
        # Stable sorts applied from the least to the most significant level.
        items = self._items
        for level in reversed(self._levels):
            items = sorted(
                items,
                key=lambda p, lv=level: _null_first(self._value(p, lv)),
                reverse=not level.ascending,
            )
        self._items = items

    # --- sequence protocol --------------------------------------------------

    def append(self, props: Iterable[PropertyNode]) -> None:
        for p in props:
            if p not in self:
                self._items.append(p)

    def delete_if(self, pred) -> None:
        self._items = [p for p in self._items if not pred(p)]

    def __iter__(self) -> Iterator[PropertyNode]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, i: int) -> PropertyNode:
        return self._items[i]

    def __contains__(self, prop: object) -> bool:
        return any(p is prop for p in self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def ids(self) -> List[str]:
        return [p.id for p in self._items]

    def __str__(self) -> str:
        return "".join(f"{p.id}: {p.name}\n" for p in self._items)


__all__ = ["OrderedPropertyList", "SortLevel", "TREE", "DEFAULT_SORTING"]
