# plantable/util/timeparse.py
from __future__ import annotations

import datetime as dt
import re
from typing import Optional, Tuple

from .tz import localize

_HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_hhmm(s: str) -> Tuple[int, int]:
    m = _HHMM_RE.match(s.strip())
    if not m:
        raise ValueError(f"Invalid HH:MM: {s!r}")
    hh = int(m.group(1))
    mm = int(m.group(2))
    # 24:00 is allowed as the end of a working day.
    if not ((0 <= hh <= 23 and 0 <= mm <= 59) or (hh == 24 and mm == 0)):
        raise ValueError(f"Invalid HH:MM: {s!r}")
    return hh, mm


def parse_workhours(s: str) -> Tuple[int, int]:
    """Parse "09:00-17:00" into minutes after midnight (start, end)."""
    parts = s.split("-")
    if len(parts) != 2:
        raise ValueError("workhours must be like 09:00-17:00")
    sh, sm = parse_hhmm(parts[0])
    eh, em = parse_hhmm(parts[1])
    start = sh * 60 + sm
    end = eh * 60 + em
    if end <= start:
        raise ValueError("workhours end must be after start")
    return start, end


def parse_datetime(s: Optional[str], tz: dt.tzinfo) -> Optional[dt.datetime]:
    """Parse "YYYY-MM-DD" or an ISO-8601 timestamp into an aware datetime.

    Bare dates mean midnight in tz. None/"" -> None.
    """
    if s is None:
        return None
    ss = str(s).strip()
    if not ss:
        return None
    if _DATE_RE.match(ss):
        d = dt.datetime.strptime(ss, "%Y-%m-%d")
        return d.replace(tzinfo=tz)
    if ss.endswith("Z"):
        ss = ss[:-1] + "+00:00"
    try:
        t = dt.datetime.fromisoformat(ss)
    except ValueError as e:
        raise ValueError(f"Invalid date/time: {s!r}") from e
    return localize(t, tz)
