# plantable/attribute.py
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from enum import Enum
from typing import Any


class Provenance(str, Enum):
    """Where an attribute value came from."""

    DEFAULT = "default"
    PROVIDED = "provided"    # set explicitly in the project input
    INHERITED = "inherited"  # propagated from a parent property


class AttributeKind(str, Enum):
    DATE = "date"
    INTEGER = "integer"
    FLOAT = "float"
    RICHTEXT = "richtext"
    STRING = "string"
    LIST = "list"
    BOOLEAN = "boolean"


@dataclass(frozen=True)
class RichText:
    """Opaque rich text. Only the raw markup is used by reports."""

    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class AttributeType:
    id: str
    name: str
    kind: AttributeKind = AttributeKind.STRING
    default: Any = None
    scenario_specific: bool = False
    inheritable: bool = False

    def coerce(self, value: Any) -> Any:
        """Convert an already-parsed input value to the kind's Python type."""
        if value is None:
            return None
        if self.kind == AttributeKind.INTEGER:
            return int(value)
        if self.kind == AttributeKind.FLOAT:
            return float(value)
        if self.kind == AttributeKind.BOOLEAN:
            return bool(value)
        if self.kind == AttributeKind.RICHTEXT:
            return value if isinstance(value, RichText) else RichText(str(value))
        if self.kind == AttributeKind.LIST:
            return tuple(value) if isinstance(value, (list, tuple, set)) else (value,)
        if self.kind == AttributeKind.DATE:
            if not isinstance(value, dt.datetime):
                raise TypeError(f"{self.id}: expected datetime, got {type(value).__name__}")
            return value
        return str(value)


class AttributeValue:
    """One attribute value of one property, with its provenance."""

    __slots__ = ("type", "property", "_value", "provided", "inherited")

    def __init__(self, type_: AttributeType, property_: Any = None) -> None:
        self.type = type_
        self.property = property_
        self._value = type_.default
        self.provided = False
        self.inherited = False

    @property
    def id(self) -> str:
        return self.type.id

    @property
    def name(self) -> str:
        return self.type.name

    @property
    def provenance(self) -> Provenance:
        if self.provided:
            return Provenance.PROVIDED
        if self.inherited:
            return Provenance.INHERITED
        return Provenance.DEFAULT

    def set_value(self, value: Any, provenance: Provenance = Provenance.PROVIDED) -> None:
        self._value = value
        if provenance == Provenance.PROVIDED:
            self.provided, self.inherited = True, False
        elif provenance == Provenance.INHERITED:
            self.provided, self.inherited = False, True
        else:
            self.provided = self.inherited = False

    def get_value(self) -> Any:
        return self._value

    value = property(get_value)

    def is_set(self) -> bool:
        return self.provided or self.inherited

    def to_display_string(self) -> str:
        return "" if self._value is None else str(self._value)

    def to_declaration_string(self) -> str:
        return f"{self.type.id} {self.to_display_string()}"

    __str__ = to_display_string

    def __repr__(self) -> str:
        return f"AttributeValue({self.type.id}={self._value!r}, {self.provenance.value})"


__all__ = [
    "AttributeKind",
    "AttributeType",
    "AttributeValue",
    "Provenance",
    "RichText",
]
