"""Resolve written TypeScript types into schema trees.

The resolver walks the declaration graph starting from a type reference.
Named types are looked up through the :class:`ProjectIndex` (locally, then
through imports and re-exports); classes and interfaces expand into their
properties, enums into their member names. Cycles are cut by remembering the
textual signature of every type on the current path.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import FrozenSet, List, Optional

from tree_sitter import Node

from ..logging import get_logger
from ..schema import CircularRef, EnumField, PrimitiveField, Resolved, SchemaField, SchemaNode
from .project import ProjectIndex, SourceModule
from .syntax import Declaration, iter_type_identifiers, node_text

_LOGGER = get_logger("typescript.resolver")

PRIMITIVE_TYPES = frozenset(
    {
        "string",
        "number",
        "boolean",
        "undefined",
        "null",
        "void",
        "any",
        "unknown",
        "never",
        "object",
        "bigint",
        "symbol",
    }
)

# Host and runtime types that never describe user schema.
RUNTIME_TYPES = frozenset(
    {
        "Date",
        "Buffer",
        "File",
        "Blob",
        "RegExp",
        "Error",
        "Function",
        "Object",
        "String",
        "Number",
        "Boolean",
        "Symbol",
        "BigInt",
        "URL",
        "Uint8Array",
        "ArrayBuffer",
        "ReadableStream",
        "StreamableFile",
    }
)

ARRAY_WRAPPERS = frozenset({"Array", "ReadonlyArray"})
_NULLISH = frozenset({"null", "undefined"})
_SYMBOL_BEARING = frozenset({"type_identifier", "nested_type_identifier", "generic_type", "array_type"})
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class TypeRef:
    """A type as written at one place in a source module."""

    text: str
    node: Optional[Node]
    module: SourceModule

    @classmethod
    def of(cls, node: Optional[Node], module: SourceModule, fallback: str = "any") -> "TypeRef":
        if node is None:
            return cls(text=fallback, node=None, module=module)
        return cls(text=node_text(node, module.source), node=node, module=module)

    def child(self, node: Node) -> "TypeRef":
        return TypeRef.of(node, self.module)


class TypeResolver:
    """Turns :class:`TypeRef` handles into :mod:`nestdoc.schema` trees."""

    def __init__(self, index: ProjectIndex) -> None:
        self.index = index

    def resolve(self, ref: TypeRef, visited: FrozenSet[str] = frozenset()) -> Optional[Resolved]:
        """Return the schema for ``ref`` or ``None`` when it carries no user schema.

        ``visited`` holds the signatures of the types on the current path;
        callers never see it mutated.
        """
        signature = self.signature(ref)
        name = self._display_name(ref)
        if signature in visited:
            return CircularRef(name=name)
        visited = visited | {signature}

        node = ref.node
        if node is None:
            return None
        kind = node.type

        if self._is_primitive(node, ref.text):
            return None
        if kind in {"parenthesized_type", "readonly_type"}:
            inner = _first_named(node)
            return self.resolve(ref.child(inner), visited) if inner is not None else None
        if kind == "union_type":
            return self._resolve_union(ref, visited)
        if kind == "array_type":
            element = _first_named(node)
            return self._as_array(self.resolve(ref.child(element), visited)) if element is not None else None
        if kind == "generic_type":
            return self._resolve_generic(ref, visited)
        if kind == "type_identifier":
            return self._resolve_named(ref, ref.text, visited)
        if kind == "nested_type_identifier":
            return self._resolve_qualified(ref, visited)

        _LOGGER.debug("Skipping structural type %s (%s)", ref.text, kind)
        return None

    def signature(self, ref: TypeRef) -> str:
        """Return the identity key of ``ref``: its text with declared names qualified by module."""
        if ref.node is None:
            return _WHITESPACE.sub(" ", ref.text).strip()
        source = ref.module.source
        pieces: List[str] = []
        cursor = ref.node.start_byte
        for ident in iter_type_identifiers(ref.node):
            pieces.append(source[cursor : ident.start_byte].decode("utf-8", errors="ignore"))
            name = node_text(ident, source)
            declaration = self.index.find_declaration(name, ref.module)
            if declaration is not None:
                pieces.append(f'import("{declaration.module.identity}").{declaration.name}')
            else:
                pieces.append(name)
            cursor = ident.end_byte
        pieces.append(source[cursor : ref.node.end_byte].decode("utf-8", errors="ignore"))
        return _WHITESPACE.sub(" ", "".join(pieces)).strip()

    # ------------------------------------------------------------------
    # Shapes

    def _resolve_union(self, ref: TypeRef, visited: FrozenSet[str]) -> Optional[Resolved]:
        if ref.node is None:
            return None
        for member in _union_members(ref.node):
            member_ref = ref.child(member)
            if member_ref.text in _NULLISH or member.type not in _SYMBOL_BEARING:
                continue
            if member.type == "type_identifier" and member_ref.text in PRIMITIVE_TYPES:
                continue
            return self.resolve(member_ref, visited)
        return None

    def _resolve_generic(self, ref: TypeRef, visited: FrozenSet[str]) -> Optional[Resolved]:
        if ref.node is None:
            return None
        first = _first_named(ref.node.child_by_field_name("type_arguments"))
        if first is None:
            return None
        wrapper_name = node_text(ref.node.child_by_field_name("name"), ref.module.source)
        resolved = self.resolve(ref.child(first), visited)
        if wrapper_name in ARRAY_WRAPPERS:
            return self._as_array(resolved)
        return resolved

    def _resolve_qualified(self, ref: TypeRef, visited: FrozenSet[str]) -> Optional[Resolved]:
        if ref.node is None:
            return None
        if ref.text.startswith("Express."):
            _LOGGER.debug("Skipping host framework type %s", ref.text)
            return None
        namespace, _, name = ref.text.rpartition(".")
        declaration = self.index.find_qualified(namespace, name, ref.module)
        if declaration is None:
            if self.index.is_external(namespace, ref.module):
                _LOGGER.debug("Skipping external type %s", ref.text)
            else:
                _LOGGER.warning("Could not resolve type %s in %s", ref.text, ref.module.path)
            return None
        return self._expand(declaration, visited)

    def _resolve_named(self, ref: TypeRef, name: str, visited: FrozenSet[str]) -> Optional[Resolved]:
        declaration = self.index.find_declaration(name, ref.module)
        if declaration is None:
            if name in RUNTIME_TYPES or self.index.is_external(name, ref.module):
                _LOGGER.debug("Skipping runtime or external type %s", name)
            else:
                _LOGGER.warning("Could not resolve type %s in %s", name, ref.module.path)
            return None
        return self._expand(declaration, visited)

    def _expand(self, declaration: Declaration, visited: FrozenSet[str]) -> Optional[Resolved]:
        if declaration.kind == "enum":
            return EnumField(name=declaration.name, values=tuple(declaration.enum_members()))
        if declaration.kind == "alias":
            aliased = declaration.aliased_type()
            if aliased is None:
                return None
            return self.resolve(TypeRef.of(aliased, declaration.module), visited)

        fields: dict[str, SchemaField] = {}
        for prop in declaration.properties():
            prop_ref = TypeRef.of(prop.type_node, declaration.module, fallback=prop.type_text)
            nested = self.resolve(prop_ref, visited)
            fields[prop.name] = nested if nested is not None else PrimitiveField(prop.type_text)
        return SchemaNode(name=declaration.name, fields=fields)

    # ------------------------------------------------------------------
    # Helpers

    def _display_name(self, ref: TypeRef) -> str:
        node = ref.node
        if node is None:
            return ref.text
        if node.type == "type_identifier":
            declaration = self.index.find_declaration(ref.text, ref.module)
            return declaration.name if declaration is not None else ref.text
        if node.type == "generic_type":
            return node_text(node.child_by_field_name("name"), ref.module.source) or ref.text
        if node.type == "array_type":
            element = _first_named(node)
            return self._display_name(ref.child(element)) if element is not None else ref.text
        return ref.text

    @staticmethod
    def _is_primitive(node: Node, text: str) -> bool:
        if node.type in {"predefined_type", "literal_type", "template_literal_type"}:
            return True
        return text in PRIMITIVE_TYPES

    @staticmethod
    def _as_array(resolved: Optional[Resolved]) -> Optional[Resolved]:
        if resolved is None:
            return None
        return replace(resolved, is_array=True)


def _first_named(node: Optional[Node]) -> Optional[Node]:
    if node is None:
        return None
    for child in node.named_children:
        if child.type != "comment":
            return child
    return None


def _union_members(node: Node) -> List[Node]:
    members: List[Node] = []
    for child in node.named_children:
        if child.type == "union_type":
            members.extend(_union_members(child))
        elif child.type != "comment":
            members.append(child)
    return members


__all__ = ["ARRAY_WRAPPERS", "PRIMITIVE_TYPES", "RUNTIME_TYPES", "TypeRef", "TypeResolver"]
