# plantable/filter.py
"""Tree-preserving filtering of property lists."""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

from .interval import Interval, overlaps_report
from .model import PropertyKind, PropertyNode
from .predicate import evaluate
from .property_list import OrderedPropertyList

logger = logging.getLogger(__name__)


class AncestorIndex:
    """Arena of property nodes with explicit parent indices.

    Built once per filter pass so that rollup checks and ancestor reinsertion
    do not re-walk parent pointers for every property.
    """

    def __init__(self, props: Iterable[PropertyNode]) -> None:
        self.nodes: List[PropertyNode] = []
        self.parent: List[int] = []
        self._pos: Dict[int, int] = {}
        for p in props:
            self._add(p)

    def _add(self, node: PropertyNode) -> int:
        key = id(node)
        if key in self._pos:
            return self._pos[key]
        parent_idx = self._add(node.parent) if node.parent is not None else -1
        idx = len(self.nodes)
        self.nodes.append(node)
        self.parent.append(parent_idx)
        self._pos[key] = idx
        return idx

    def index_of(self, node: PropertyNode) -> int:
        return self._pos[id(node)]

    def ancestors(self, node: PropertyNode) -> Iterator[PropertyNode]:
        """Strict ancestors, nearest first."""
        i = self.parent[self.index_of(node)]
        while i >= 0:
            yield self.nodes[i]
            i = self.parent[i]

    def is_descendant_of(self, node: PropertyNode, root: PropertyNode) -> bool:
        return any(a is root for a in self.ancestors(node))


class FilterEngine:
    """Removes properties failing the inclusion tests of a report.

    scenarios are the active scenario indices; start/end bound the report.
    """

    def __init__(
        self,
        project: Any,
        scenarios: Sequence[int],
        start,
        end,
        *,
        task_root: Optional[PropertyNode] = None,
        resource_root: Optional[PropertyNode] = None,
    ) -> None:
        self.project = project
        self.scenarios = list(scenarios)
        self.window = Interval(start, end)
        self.task_root = task_root
        self.resource_root = resource_root

    def filter(
        self,
        props: OrderedPropertyList,
        root: Optional[PropertyNode],
        counterpart: Optional[PropertyNode],
        hide: Any = None,
        rollup: Any = None,
    ) -> OrderedPropertyList:
        out = OrderedPropertyList(props)
        index = AncestorIndex(out)

        if root is not None:
            out.delete_if(lambda p: not index.is_descendant_of(p, root))

        if counterpart is not None:
            if out.kind == PropertyKind.TASK:
                out.delete_if(lambda t: not self._assigned(t, counterpart))
            else:
                out.delete_if(lambda r: not self._allocated(r, counterpart))

        out.delete_if(lambda p: not self._overlaps_window(p))

        return self._standard_filter_ops(out, index, hide, rollup, counterpart, root)

    def filter_task_list(self, tasks: OrderedPropertyList, resource: Optional[PropertyNode], hide: Any, rollup: Any) -> OrderedPropertyList:
        return self.filter(tasks, self.task_root, resource, hide, rollup)

    def filter_resource_list(self, resources: OrderedPropertyList, task: Optional[PropertyNode], hide: Any, rollup: Any) -> OrderedPropertyList:
        return self.filter(resources, self.resource_root, task, hide, rollup)

    # --- inclusion tests ----------------------------------------------------

    def _assigned(self, task: PropertyNode, resource: PropertyNode) -> bool:
        return any(resource.allocated(sc, None, task) for sc in self.scenarios)  # type: ignore[attr-defined]

    def _allocated(self, resource: PropertyNode, task: PropertyNode) -> bool:
        return any(resource.allocated(sc, self.window, task) for sc in self.scenarios)  # type: ignore[attr-defined]

    def _overlaps_window(self, prop: PropertyNode) -> bool:
        return any(overlaps_report(prop.effective_interval(sc), self.window) for sc in self.scenarios)

    def _standard_filter_ops(
        self,
        out: OrderedPropertyList,
        index: AncestorIndex,
        hide: Any,
        rollup: Any,
        scope: Optional[PropertyNode],
        root: Optional[PropertyNode],
    ) -> OrderedPropertyList:
        if hide is not None:
            out.delete_if(lambda p: evaluate(hide, p, scope))

        if rollup is not None:
            rolled: Dict[int, bool] = {}

            def rolled_up(node: PropertyNode) -> bool:
                key = id(node)
                if key not in rolled:
                    rolled[key] = evaluate(rollup, node, scope)
                return rolled[key]

            out.delete_if(lambda p: any(rolled_up(a) for a in index.ancestors(p)))

        if out.tree_mode():
            present = {id(p) for p in out}
            parents: List[PropertyNode] = []
            for p in out:
                for a in index.ancestors(p):
                    if id(a) not in present:
                        present.add(id(a))
                        parents.append(a)
                    if a is root:
                        break
            if parents:
                logger.debug("re-adding %d ancestor(s) for tree display", len(parents))
            out.append(parents)

        return out


__all__ = ["AncestorIndex", "FilterEngine"]
