"""Resolved schema shapes produced by the type resolver.

A field of a resolved type is always one of the variants below; the document
renderer dispatches on the variant instead of probing loosely shaped data.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple, Union

CIRCULAR_REFERENCE = "[Circular Reference]"


@dataclass(frozen=True)
class PrimitiveField:
    """A property whose type did not resolve to a user declaration."""

    type_text: str

    def to_dict(self) -> str:
        return self.type_text


@dataclass(frozen=True)
class EnumField:
    """An enum declaration and its member names in declaration order."""

    name: str
    values: Tuple[str, ...]
    is_array: bool = False

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"name": self.name, "values": list(self.values)}
        if self.is_array:
            payload["isArray"] = True
        return payload


@dataclass(frozen=True)
class CircularRef:
    """Marker left where a type would re-enter one of its ancestors."""

    name: str
    is_array: bool = False

    @property
    def fields(self) -> str:
        return CIRCULAR_REFERENCE

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"name": self.name, "fields": CIRCULAR_REFERENCE}
        if self.is_array:
            payload["isArray"] = True
        return payload


@dataclass(frozen=True)
class SchemaNode:
    """A class or interface expanded into its fields."""

    name: str
    fields: Dict[str, "SchemaField"] = field(default_factory=dict)
    is_array: bool = False

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": self.name,
            "fields": {key: value.to_dict() for key, value in self.fields.items()},
        }
        if self.is_array:
            payload["isArray"] = True
        return payload


SchemaField = Union[PrimitiveField, EnumField, CircularRef, SchemaNode]

# What the resolver may hand back for a type; primitives come back as None.
Resolved = Union[SchemaNode, EnumField, CircularRef]


__all__ = [
    "CIRCULAR_REFERENCE",
    "CircularRef",
    "EnumField",
    "PrimitiveField",
    "Resolved",
    "SchemaField",
    "SchemaNode",
]
