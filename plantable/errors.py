"""Error taxonomy for report generation."""

from __future__ import annotations


class PlantableError(ValueError):
    """Base class for all report generation failures."""


class UsageError(PlantableError):
    """Raised for caller mistakes: unknown report id, missing argument, bad call order."""


class EvaluationError(PlantableError):
    """Raised when a required macro or calculated cell cannot be evaluated.

    Aborts generation of the current report.
    """


class DataError(PlantableError):
    """Raised for malformed single values (missing mandatory value, unknown attribute).

    Never escapes a cell generator: the cell renders an error marker instead.
    """


__all__ = [
    "PlantableError",
    "UsageError",
    "EvaluationError",
    "DataError",
]
