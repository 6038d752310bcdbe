# plantable/numfmt.py
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

LOAD_UNITS = ("minutes", "hours", "days", "weeks", "months", "years")
AUTO_UNITS = ("shortauto", "longauto")
_SHORT_SUFFIX = ("min", "h", "d", "w", "m", "y")
_LONG_SINGULAR = ("minute", "hour", "day", "week", "month", "year")
_LONG_PLURAL = ("minutes", "hours", "days", "weeks", "months", "years")
# Largest value a unit may show in auto mode before a bigger unit is preferred.
# 0 means unlimited.
_AUTO_MAX = (60, 48, 0, 8, 24, 0)


@dataclass(frozen=True)
class RealFormat:
    negative_prefix: str = "-"
    negative_suffix: str = ""
    thousands_separator: str = ""
    fraction_separator: str = "."
    fraction_digits: int = 1

    def format(self, value: float) -> str:
        neg = value < 0
        s = f"{abs(value):.{max(0, int(self.fraction_digits))}f}"
        if "." in s:
            int_part, frac_part = s.split(".", 1)
        else:
            int_part, frac_part = s, ""

        if self.thousands_separator:
            groups: List[str] = []
            while len(int_part) > 3:
                groups.insert(0, int_part[-3:])
                int_part = int_part[:-3]
            groups.insert(0, int_part)
            int_part = self.thousands_separator.join(groups)

        out = int_part + (self.fraction_separator + frac_part if frac_part else "")
        if neg and float(s) != 0.0:
            out = self.negative_prefix + out + self.negative_suffix
        return out

    @classmethod
    def from_dict(cls, raw: Optional[dict], default: "RealFormat") -> "RealFormat":
        if not raw:
            return default
        return cls(
            negative_prefix=str(raw.get("negative_prefix", default.negative_prefix)),
            negative_suffix=str(raw.get("negative_suffix", default.negative_suffix)),
            thousands_separator=str(raw.get("thousands_separator", default.thousands_separator)),
            fraction_separator=str(raw.get("fraction_separator", default.fraction_separator)),
            fraction_digits=int(raw.get("fraction_digits", default.fraction_digits)),
        )


DEFAULT_NUMBER_FORMAT = RealFormat("-", "", "", ".", 1)
DEFAULT_CURRENCY_FORMAT = RealFormat("-", "", ",", ".", 0)


def load_factors(daily_working_hours: float) -> List[float]:
    """Factors converting a value in days into minutes .. years."""
    h = daily_working_hours
    return [h * 60.0, h, 1.0, 1.0 / 5.0, 1.0 / 21.0, 1.0 / 250.0]


def scale_value(value: float, factors: Sequence[float], load_unit: str, number_format: RealFormat) -> str:
    """Convert a number to a string in the report's load unit.

    In the auto modes the shortest result wins and the unit is always
    appended; fixed units only convert.
    """
    if load_unit in AUTO_UNITS:
        options: List[Optional[str]] = []
        for i, factor in enumerate(factors):
            scaled = value * factor
            if (factor != 1.0 and scaled == 0) or (_AUTO_MAX[i] != 0 and scaled > _AUTO_MAX[i]):
                options.append(None)
            else:
                options.append(number_format.format(scaled))

        # Days win ties.
        shortest = 2
        for j, opt in enumerate(options):
            if opt is not None and len(opt) < len(options[shortest] or ""):
                shortest = j

        s = options[shortest] or number_format.format(value)
        if load_unit == "longauto":
            units = _LONG_SINGULAR if s == "1" else _LONG_PLURAL
            return f"{s} {units[shortest]}"
        return s + _SHORT_SUFFIX[shortest]

    try:
        idx = LOAD_UNITS.index(load_unit)
    except ValueError:
        idx = LOAD_UNITS.index("days")
    return number_format.format(value * factors[idx])


__all__ = [
    "AUTO_UNITS",
    "DEFAULT_CURRENCY_FORMAT",
    "DEFAULT_NUMBER_FORMAT",
    "LOAD_UNITS",
    "RealFormat",
    "load_factors",
    "scale_value",
]
