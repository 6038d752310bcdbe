# plantable/macro.py
from __future__ import annotations

from typing import Any, Optional

from .errors import EvaluationError


def expand_macros(pattern: str, original_text: Optional[str], query: Any) -> str:
    """Expand the run-time macros ${...} in pattern.

    ${0} is replaced with original_text. Any other ${name} resolves name through
    the query (query.attribute_id = name; query.process()). A leading '?' in the
    name makes the macro optional: evaluation failures expand to "". A '$' not
    followed by '{' is copied as is.

    An unterminated "${" takes the rest of the pattern as the macro name.
    """
    if "${" not in pattern:
        return pattern

    out = []
    i = 0
    n = len(pattern)
    while i < n:
        c = pattern[i]
        if c != "$" or i + 1 >= n or pattern[i + 1] != "{":
            out.append(c)
            i += 1
            continue

        i += 2
        close = pattern.find("}", i)
        if close < 0:
            close = n
        macro = pattern[i:close]
        i = close + 1

        if macro == "0":
            out.append(original_text or "")
            continue

        optional = macro.startswith("?")
        if optional:
            macro = macro[1:]
        query.attribute_id = macro
        query.process()
        if not query.ok:
            if not optional:
                raise EvaluationError(query.error_message or f"Cannot resolve macro '{macro}'")
            continue
        out.append(query.result or "")

    return "".join(out)


__all__ = ["expand_macros"]
