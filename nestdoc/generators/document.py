"""Assemble parsed project data into an ordered, format-neutral document."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, is_dataclass
from typing import Any, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from ..models import (
    ClassInfo,
    EndpointRecord,
    FunctionInfo,
    InterfaceReport,
    ParsedProjectData,
)
from ..schema import CircularRef, EnumField, PrimitiveField, SchemaNode

INDENT = "  "
UNSERIALIZABLE = "[unserializable]"
MERMAID_HINT = "(Paste into https://mermaid.live to visualize)"

CODE = "code"
NOTE = "note"


@dataclass(frozen=True)
class Heading:
    text: str
    level: int


@dataclass(frozen=True)
class Paragraph:
    text: str
    style: Optional[str] = None


@dataclass(frozen=True)
class TableOfContents:
    title: str = "Table of Contents"


@dataclass(frozen=True)
class PageBreak:
    pass


@dataclass(frozen=True)
class Table:
    header: Tuple[str, ...]
    rows: Tuple[Tuple[str, ...], ...]


Block = Union[Heading, Paragraph, TableOfContents, PageBreak, Table]


@dataclass
class Document:
    """Ordered blocks making up the generated project documentation."""

    title: str
    blocks: List[Block] = field(default_factory=list)

    def headings(self, level: Optional[int] = None) -> List[str]:
        return [
            block.text
            for block in self.blocks
            if isinstance(block, Heading) and (level is None or block.level == level)
        ]


def render_fields(
    fields: Mapping[str, Any], indent: int = 0, seen: FrozenSet[str] = frozenset()
) -> List[str]:
    """Render resolved fields as indented lines, two spaces per level."""
    prefix = INDENT * indent
    lines: List[str] = []
    for key, value in fields.items():
        if isinstance(value, PrimitiveField):
            lines.append(f"{prefix}{key}: {value.type_text}")
        elif isinstance(value, str):
            lines.append(f"{prefix}{key}: {value}")
        elif isinstance(value, EnumField):
            lines.append(f"{prefix}{key}: enum {value.name}{_array_suffix(value.is_array)}")
            lines.extend(f"{prefix}{INDENT}- {member}" for member in value.values)
        elif isinstance(value, CircularRef):
            lines.append(f"{prefix}{key}: {value.name}{_array_suffix(value.is_array)} (circular ref)")
        elif isinstance(value, SchemaNode):
            guard = f"{value.name}-{key}"
            label = f"{prefix}{key}: {value.name}{_array_suffix(value.is_array)}"
            if guard in seen:
                lines.append(f"{label} (circular ref)")
                continue
            lines.append(label)
            lines.extend(render_fields(value.fields, indent + 1, seen | {guard}))
        elif isinstance(value, Mapping) or is_dataclass(value):
            lines.append(f"{prefix}{key}: {_dump(value)}")
        else:
            lines.append(f"{prefix}{key}: {value}")
    return lines


def split_docs(docs: str) -> List[Paragraph]:
    """Split free-text docs into paragraphs, styling code-looking lines."""
    paragraphs: List[Paragraph] = []
    for line in (docs or "").split("\n"):
        if line.startswith("```"):
            continue
        style = CODE if line.startswith(("{", "}", "  ")) else None
        paragraphs.append(Paragraph(line, style))
    return paragraphs


class DocumentAssembler:
    """Composes the fixed section order from parsed project data."""

    def assemble(
        self,
        parsed: ParsedProjectData,
        folder_text: str,
        diagram_text: str,
        endpoints: Sequence[EndpointRecord],
        *,
        interfaces: Optional[InterfaceReport] = None,
        project_name: Optional[str] = None,
    ) -> Document:
        title = f"{project_name} Documentation" if project_name else "Project Documentation"
        document = Document(title=title)
        blocks = document.blocks

        blocks.append(Heading(title, 0))
        blocks.append(TableOfContents())
        blocks.append(PageBreak())

        blocks.append(Heading("Folder Structure", 1))
        blocks.append(Paragraph(folder_text, CODE))
        blocks.append(PageBreak())

        blocks.append(Heading("Database Schema", 1))
        blocks.extend(self._diagram(diagram_text))
        blocks.extend(self._entity_tables(parsed.entities))
        if interfaces is not None:
            blocks.extend(self._interfaces(interfaces))
        blocks.append(PageBreak())

        blocks.append(Heading("Class & Function Details", 1))
        blocks.extend(self._items(parsed.classes, "Class"))
        blocks.extend(self._items(parsed.functions, "Function"))
        blocks.append(PageBreak())

        blocks.append(Heading("API Endpoints", 1))
        if not endpoints:
            blocks.append(Paragraph("No endpoints found."))
        for endpoint in endpoints:
            blocks.extend(self._endpoint(endpoint))
        return document

    # ------------------------------------------------------------------
    # Sections

    @staticmethod
    def _diagram(diagram_text: str) -> List[Block]:
        if not diagram_text:
            return [Paragraph("No relationships found.")]
        blocks: List[Block] = [Heading("Mermaid ER Diagram Syntax", 2)]
        blocks.extend(Paragraph(line, CODE) for line in diagram_text.rstrip("\n").split("\n"))
        blocks.append(Paragraph(MERMAID_HINT, NOTE))
        return blocks

    @staticmethod
    def _entity_tables(entities: Iterable[ClassInfo]) -> List[Block]:
        blocks: List[Block] = []
        for entity in entities:
            blocks.append(Heading(f"Entity: {entity.name or ''}", 2))
            rows = tuple(
                (
                    prop.name or "",
                    prop.type or "",
                    ", ".join(deco for deco in (prop.decorators or []) if deco),
                )
                for prop in entity.properties or []
            )
            blocks.append(Table(header=("Column", "Type", "Decorators"), rows=rows))
        return blocks

    @staticmethod
    def _interfaces(report: InterfaceReport) -> List[Block]:
        blocks: List[Block] = []
        for entity in report.entities:
            blocks.append(Heading(f"Interface: {entity.name}", 2))
            if entity.file_path:
                blocks.append(Paragraph(f"Defined in {entity.file_path}", NOTE))
            rows = tuple((prop.name or "", prop.type or "", "") for prop in entity.properties)
            blocks.append(Table(header=("Column", "Type", "Decorators"), rows=rows))
        if report.relationships:
            blocks.append(Heading("Interface References", 2))
            for rel in report.relationships:
                suffix = "[]" if rel.type == "RefArray" else ""
                blocks.append(Paragraph(f"{rel.from_} -> {rel.to}{suffix} ({rel.type})", CODE))
        return blocks

    @staticmethod
    def _items(items: Iterable[Union[ClassInfo, FunctionInfo]], label: str) -> List[Block]:
        blocks: List[Block] = []
        for item in items:
            blocks.append(Heading(f"{label}: {item.name or ''}", 2))
            blocks.extend(split_docs(item.docs))
            for method in getattr(item, "methods", None) or []:
                blocks.append(Heading(f"Method: {method.name or ''}", 3))
                blocks.extend(split_docs(method.docs))
        return blocks

    @staticmethod
    def _endpoint(endpoint: EndpointRecord) -> List[Block]:
        blocks: List[Block] = [
            Heading(f"Endpoint: {endpoint.route}", 2),
            Paragraph(f"Controller: {endpoint.controller} → Method: {endpoint.method_name}", NOTE),
            Paragraph("Request Params:"),
        ]
        if endpoint.request_params:
            blocks.extend(Paragraph(line, CODE) for line in render_fields(endpoint.request_params))
        else:
            blocks.append(Paragraph("None", CODE))

        blocks.append(Paragraph("Response:"))
        response = endpoint.response_dto
        if response is None:
            blocks.append(Paragraph("None", CODE))
        elif isinstance(response, SchemaNode):
            blocks.append(Paragraph(f"{response.name}{_array_suffix(response.is_array)}", CODE))
            blocks.extend(Paragraph(line, CODE) for line in render_fields(response.fields, 1))
        else:
            blocks.extend(Paragraph(line, CODE) for line in render_fields({"body": response}))
        blocks.append(Paragraph(""))
        return blocks


def _array_suffix(is_array: bool) -> str:
    return "[]" if is_array else ""


def _dump(value: Any) -> str:
    try:
        payload = asdict(value) if is_dataclass(value) and not isinstance(value, type) else value
        return json.dumps(payload, ensure_ascii=False, sort_keys=False)
    except (TypeError, ValueError):
        return UNSERIALIZABLE


__all__ = [
    "Block",
    "CODE",
    "Document",
    "DocumentAssembler",
    "Heading",
    "NOTE",
    "PageBreak",
    "Paragraph",
    "Table",
    "TableOfContents",
    "UNSERIALIZABLE",
    "render_fields",
    "split_docs",
]
