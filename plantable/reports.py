# plantable/reports.py
from __future__ import annotations

from typing import Any, Dict, Optional, Type

from .builder import TableBuilder
from .config import ReportDefinition
from .errors import UsageError
from .property_list import OrderedPropertyList


class TaskReport(TableBuilder):
    """Tasks, each optionally followed by the resources working on it."""

    _tasks: OrderedPropertyList

    def _filter(self) -> None:
        tasks = OrderedPropertyList(self.project.tasks)
        tasks.set_sorting(self.report.sort_tasks)
        self._tasks = self.filter.filter_task_list(tasks, None, self.hide_task, self.rollup_task)

    def _sort(self) -> None:
        self._tasks.sort()
        if not self.report.user_defined_period:
            self.adjust_report_period(self._tasks)

    def _generate(self) -> None:
        resources = OrderedPropertyList(self.project.resources)
        resources.set_sorting(self.report.sort_resources)
        self.generate_task_list(self._tasks, resources, None)


class ResourceReport(TableBuilder):
    """Resources, each optionally followed by the tasks they work on."""

    _resources: OrderedPropertyList

    def _filter(self) -> None:
        resources = OrderedPropertyList(self.project.resources)
        resources.set_sorting(self.report.sort_resources)
        self._resources = self.filter.filter_resource_list(resources, None, self.hide_resource, self.rollup_resource)

    def _sort(self) -> None:
        self._resources.sort()
        if not self.report.user_defined_period:
            # The period is fitted to the tasks even in resource reports.
            tasks = OrderedPropertyList(self.project.tasks)
            self.adjust_report_period(tasks)

    def _generate(self) -> None:
        tasks = OrderedPropertyList(self.project.tasks)
        tasks.set_sorting(self.report.sort_tasks)
        self.generate_resource_list(self._resources, tasks, None)


REPORT_CLASSES: Dict[str, Type[TableBuilder]] = {
    "taskreport": TaskReport,
    "resourcereport": ResourceReport,
}


def make_builder(project: Any, report: ReportDefinition, **kwargs: Any) -> TableBuilder:
    cls: Optional[Type[TableBuilder]] = REPORT_CLASSES.get(report.kind)
    if cls is None:
        raise UsageError(f"Unknown report kind: {report.kind!r}")
    return cls(project, report, **kwargs)


__all__ = ["REPORT_CLASSES", "ResourceReport", "TaskReport", "make_builder"]
