# plantable/interval.py
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Optional

ONE_SECOND = dt.timedelta(seconds=1)


@dataclass(frozen=True)
class Interval:
    """Half-open time interval [start, end)."""

    start: dt.datetime
    end: dt.datetime

    @property
    def duration(self) -> dt.timedelta:
        return self.end - self.start

    def is_empty(self) -> bool:
        return self.end <= self.start

    def contains(self, t: dt.datetime) -> bool:
        return self.start <= t < self.end

    def overlaps(self, other: "Interval") -> bool:
        return self.start < other.end and other.start < self.end

    def intersection(self, other: "Interval") -> Optional["Interval"]:
        start = max(self.start, other.start)
        end = min(self.end, other.end)
        if end <= start:
            return None
        return Interval(start, end)

    def overlap_seconds(self, other: "Interval") -> float:
        iv = self.intersection(other)
        return iv.duration.total_seconds() if iv else 0.0


def effective_interval(
    start: Optional[dt.datetime],
    end: Optional[dt.datetime],
    *,
    fallback: Interval,
) -> Interval:
    """Build an interval, using the fallback bound where a date is undefined.

    Dates can be undefined because of a scheduling problem; the project interval
    is the widest sensible stand-in.
    """
    return Interval(
        start if start is not None else fallback.start,
        end if end is not None else fallback.end,
    )


def overlaps_report(iv: Interval, report: Interval) -> bool:
    """Overlap test used for report filtering.

    A zero-length interval (milestone) placed exactly on the report end is
    treated as [end - 1s, end) so it is not dropped as degenerate.
    """
    if iv.start == iv.end and iv.end == report.end:
        iv = Interval(iv.start - ONE_SECOND, iv.end)
    if iv.start == iv.end:
        return report.start <= iv.start < report.end
    return iv.overlaps(report)


__all__ = ["Interval", "effective_interval", "overlaps_report", "ONE_SECOND"]
