"""Tree-sitter powered extraction of TypeScript declarations."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional, Tuple

from tree_sitter import Node, Parser
from tree_sitter_language_pack import get_language

if TYPE_CHECKING:  # pragma: no cover - import cycle for annotations only
    from .project import SourceModule

_QUOTES = re.compile(r"['\"`]")

_DECLARATION_TYPES = {
    "class_declaration": "class",
    "abstract_class_declaration": "class",
    "interface_declaration": "interface",
    "enum_declaration": "enum",
    "type_alias_declaration": "alias",
    "class": "class",
}

_PARAMETER_TYPES = {"required_parameter", "optional_parameter"}

_LITERAL_KINDS = {
    "string": "string",
    "template_string": "string",
    "number": "number",
    "true": "boolean",
    "false": "boolean",
}


@lru_cache(maxsize=None)
def _parser_for(language_key: str) -> Parser:
    return Parser(get_language(language_key))


def parse_source(source: bytes, *, tsx: bool = False) -> Node:
    """Parse TypeScript source bytes and return the program node."""
    parser = _parser_for("tsx" if tsx else "typescript")
    return parser.parse(source).root_node


def node_text(node: Optional[Node], source: bytes) -> str:
    if node is None:
        return ""
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")


def strip_quotes(text: str) -> str:
    return _QUOTES.sub("", text).strip()


def type_of(annotation: Optional[Node]) -> Optional[Node]:
    """Return the type node inside a ``: Type`` annotation."""
    if annotation is None:
        return None
    if annotation.type != "type_annotation":
        return annotation
    for child in annotation.named_children:
        return child
    return None


@dataclass(frozen=True)
class Decorator:
    """A decorator application such as ``@Get(':id')``."""

    name: str
    arguments: Tuple[str, ...] = ()
    argument_nodes: Tuple[Node, ...] = ()

    def first_literal(self, source: bytes) -> str:
        """Return the first argument with quotes stripped, honouring ``{ path: ... }`` objects."""
        if not self.argument_nodes:
            return ""
        first = self.argument_nodes[0]
        if first.type == "object":
            for pair in first.named_children:
                if pair.type != "pair":
                    continue
                key = strip_quotes(node_text(pair.child_by_field_name("key"), source))
                if key == "path":
                    return strip_quotes(node_text(pair.child_by_field_name("value"), source))
            return ""
        return strip_quotes(self.arguments[0])


@dataclass
class TypedMember:
    """A property, parameter or return slot together with its written type."""

    name: str
    type_node: Optional[Node]
    type_text: str
    decorators: List[Decorator] = field(default_factory=list)


@dataclass
class MethodDecl:
    """A class method with decorators, parameters and return annotation."""

    name: str
    decorators: List[Decorator]
    parameters: List[TypedMember]
    return_type: Optional[Node]
    return_type_text: str


@dataclass
class Declaration:
    """A top-level class, interface, enum or type alias."""

    kind: str
    name: str
    node: Node
    module: "SourceModule"
    decorators: List[Decorator] = field(default_factory=list)

    def decorator(self, name: str) -> Optional[Decorator]:
        for decorator in self.decorators:
            if decorator.name == name:
                return decorator
        return None

    def properties(self) -> List[TypedMember]:
        """Return declared properties in source order (classes and interfaces)."""
        body = self.node.child_by_field_name("body")
        if body is None:
            return []
        source = self.module.source
        if self.kind == "class":
            return [_field_member(child, source) for child in body.named_children if child.type == "public_field_definition"]
        if self.kind == "interface":
            return [_signature_member(child, source) for child in body.named_children if child.type == "property_signature"]
        return []

    def methods(self) -> List[MethodDecl]:
        """Return class methods with their decorators in source order."""
        body = self.node.child_by_field_name("body")
        if body is None or self.kind != "class":
            return []
        source = self.module.source
        methods: List[MethodDecl] = []
        pending: List[Decorator] = []
        for child in body.named_children:
            if child.type == "comment":
                continue
            if child.type == "decorator":
                pending.append(parse_decorator(child, source))
                continue
            if child.type == "method_definition":
                decorators = pending + collect_decorators(child, source)
                methods.append(_method(child, decorators, source))
            pending = []
        return methods

    def enum_members(self) -> List[str]:
        body = self.node.child_by_field_name("body")
        if body is None or self.kind != "enum":
            return []
        source = self.module.source
        members: List[str] = []
        for child in body.named_children:
            if child.type == "enum_assignment":
                members.append(strip_quotes(node_text(child.child_by_field_name("name"), source)))
            elif child.type in {"property_identifier", "string", "identifier"}:
                members.append(strip_quotes(node_text(child, source)))
        return members

    def aliased_type(self) -> Optional[Node]:
        if self.kind != "alias":
            return None
        return self.node.child_by_field_name("value")


@dataclass(frozen=True)
class ImportBinding:
    """A local name bound by an import statement."""

    specifier: str
    imported: str


@dataclass(frozen=True)
class ReExport:
    """An ``export ... from`` clause; ``imported`` is ``*`` for star exports."""

    specifier: str
    imported: str
    exported: str


@dataclass
class ModuleSyntax:
    """Everything the resolver needs from one parsed file."""

    imports: Dict[str, ImportBinding] = field(default_factory=dict)
    re_exports: List[ReExport] = field(default_factory=list)
    default_export: Optional[str] = None
    declarations: List[Tuple[str, str, Node, List[Decorator]]] = field(default_factory=list)


def parse_decorator(node: Node, source: bytes) -> Decorator:
    target: Optional[Node] = None
    for child in node.named_children:
        target = child
        break
    if target is None:
        return Decorator(name="")
    if target.type == "call_expression":
        function = target.child_by_field_name("function")
        arguments = target.child_by_field_name("arguments")
        argument_nodes = tuple(arguments.named_children) if arguments is not None else ()
        return Decorator(
            name=_callee_name(function, source),
            arguments=tuple(node_text(arg, source) for arg in argument_nodes),
            argument_nodes=argument_nodes,
        )
    return Decorator(name=_callee_name(target, source))


def collect_decorators(node: Node, source: bytes) -> List[Decorator]:
    return [parse_decorator(child, source) for child in node.children if child.type == "decorator"]


def extract_module(root: Node, source: bytes) -> ModuleSyntax:
    """Collect imports, re-exports and top-level declarations of a program."""
    syntax = ModuleSyntax()
    for child in root.named_children:
        if child.type == "import_statement":
            _collect_import(child, source, syntax)
        elif child.type == "export_statement":
            _collect_export(child, source, syntax)
        elif child.type in _DECLARATION_TYPES:
            _collect_declaration(child, source, syntax, [])
    return syntax


def iter_type_identifiers(node: Node) -> Iterator[Node]:
    """Yield bare ``type_identifier`` nodes, skipping ``ns.Name`` qualifications."""
    if node.type == "type_identifier":
        yield node
        return
    if node.type == "nested_type_identifier":
        return
    for child in node.named_children:
        yield from iter_type_identifiers(child)


def _collect_declaration(
    node: Node, source: bytes, syntax: ModuleSyntax, outer: List[Decorator]
) -> Optional[str]:
    kind = _DECLARATION_TYPES.get(node.type)
    if kind is None:
        return None
    name = node_text(node.child_by_field_name("name"), source)
    if not name:
        return None
    decorators = outer + collect_decorators(node, source)
    syntax.declarations.append((kind, name, node, decorators))
    return name


def _collect_import(node: Node, source: bytes, syntax: ModuleSyntax) -> None:
    specifier = strip_quotes(node_text(node.child_by_field_name("source"), source))
    if not specifier:
        return
    for clause in node.named_children:
        if clause.type != "import_clause":
            continue
        for part in clause.named_children:
            if part.type == "identifier":
                syntax.imports[node_text(part, source)] = ImportBinding(specifier, "default")
            elif part.type == "namespace_import":
                for ident in part.named_children:
                    if ident.type == "identifier":
                        syntax.imports[node_text(ident, source)] = ImportBinding(specifier, "*")
            elif part.type == "named_imports":
                for spec in part.named_children:
                    if spec.type != "import_specifier":
                        continue
                    imported = node_text(spec.child_by_field_name("name"), source)
                    alias = node_text(spec.child_by_field_name("alias"), source)
                    if imported:
                        syntax.imports[alias or imported] = ImportBinding(specifier, imported)


def _collect_export(node: Node, source: bytes, syntax: ModuleSyntax) -> None:
    source_node = node.child_by_field_name("source")
    if source_node is not None:
        specifier = strip_quotes(node_text(source_node, source))
        clause = next((c for c in node.named_children if c.type == "export_clause"), None)
        if clause is None:
            if any(c.type == "*" for c in node.children):
                syntax.re_exports.append(ReExport(specifier, "*", "*"))
            return
        for spec in clause.named_children:
            if spec.type != "export_specifier":
                continue
            imported = node_text(spec.child_by_field_name("name"), source)
            alias = node_text(spec.child_by_field_name("alias"), source)
            syntax.re_exports.append(ReExport(specifier, imported, alias or imported))
        return

    outer = collect_decorators(node, source)
    is_default = any(c.type == "default" for c in node.children)
    declaration = node.child_by_field_name("declaration")
    if declaration is not None:
        name = _collect_declaration(declaration, source, syntax, outer)
        if is_default and name:
            syntax.default_export = name
        return
    if is_default:
        value = node.child_by_field_name("value")
        if value is None:
            return
        if value.type == "identifier":
            syntax.default_export = node_text(value, source)
        elif value.type == "class":
            syntax.default_export = _collect_declaration(value, source, syntax, outer)


def _callee_name(node: Optional[Node], source: bytes) -> str:
    if node is None:
        return ""
    if node.type == "member_expression":
        return node_text(node.child_by_field_name("property"), source)
    return node_text(node, source)


def _method(node: Node, decorators: List[Decorator], source: bytes) -> MethodDecl:
    parameters: List[TypedMember] = []
    params_node = node.child_by_field_name("parameters")
    if params_node is not None:
        for param in params_node.named_children:
            if param.type not in _PARAMETER_TYPES:
                continue
            type_node = type_of(param.child_by_field_name("type"))
            parameters.append(
                TypedMember(
                    name=node_text(param.child_by_field_name("pattern"), source),
                    type_node=type_node,
                    type_text=node_text(type_node, source) or "any",
                    decorators=collect_decorators(param, source),
                )
            )
    return_type = type_of(node.child_by_field_name("return_type"))
    return MethodDecl(
        name=node_text(node.child_by_field_name("name"), source),
        decorators=decorators,
        parameters=parameters,
        return_type=return_type,
        return_type_text=node_text(return_type, source),
    )


def _field_member(node: Node, source: bytes) -> TypedMember:
    type_node = type_of(node.child_by_field_name("type"))
    type_text = node_text(type_node, source)
    if not type_text:
        type_text = _infer_from_initializer(node.child_by_field_name("value"))
    return TypedMember(
        name=strip_quotes(node_text(node.child_by_field_name("name"), source)),
        type_node=type_node,
        type_text=type_text,
        decorators=collect_decorators(node, source),
    )


def _signature_member(node: Node, source: bytes) -> TypedMember:
    type_node = type_of(node.child_by_field_name("type"))
    return TypedMember(
        name=strip_quotes(node_text(node.child_by_field_name("name"), source)),
        type_node=type_node,
        type_text=node_text(type_node, source) or "any",
    )


def _infer_from_initializer(value: Optional[Node]) -> str:
    if value is None:
        return "any"
    return _LITERAL_KINDS.get(value.type, "any")


__all__ = [
    "Declaration",
    "Decorator",
    "ImportBinding",
    "MethodDecl",
    "ModuleSyntax",
    "ReExport",
    "TypedMember",
    "collect_decorators",
    "extract_module",
    "iter_type_identifiers",
    "node_text",
    "parse_decorator",
    "parse_source",
    "strip_quotes",
    "type_of",
]
