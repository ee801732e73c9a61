"""Serialize assembled documents to .docx or Markdown bytes."""

from __future__ import annotations

import io
from typing import List, Protocol

from docx import Document as new_docx
from docx.document import Document as DocxDocument
from docx.enum.style import WD_STYLE_TYPE
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Pt, RGBColor
from docx.styles.style import ParagraphStyle

from ..postproc.toc import TableOfContentsBuilder
from .document import (
    CODE,
    NOTE,
    Document,
    Heading,
    PageBreak,
    Paragraph,
    Table,
    TableOfContents,
)

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
MARKDOWN_MEDIA_TYPE = "text/markdown; charset=utf-8"

_CODE_STYLE = "Code"
_NOTE_STYLE = "Note"
_TOC_INSTRUCTION = 'TOC \\o "1-3" \\h \\z \\u'


class DocumentWriter(Protocol):
    """Contract for writers turning a :class:`Document` into bytes."""

    extension: str
    media_type: str

    def write(self, document: Document) -> bytes:
        ...


class DocxWriter:
    """Renders documents with python-docx."""

    extension = "docx"
    media_type = DOCX_MEDIA_TYPE

    def write(self, document: Document) -> bytes:
        docx = new_docx()
        self._install_styles(docx)
        self._update_fields_on_open(docx)
        for block in document.blocks:
            if isinstance(block, Heading):
                docx.add_heading(block.text, level=min(block.level, 9))
            elif isinstance(block, Paragraph):
                style = {CODE: _CODE_STYLE, NOTE: _NOTE_STYLE}.get(block.style or "")
                docx.add_paragraph(block.text, style=style)
            elif isinstance(block, TableOfContents):
                docx.add_heading(block.title, level=1)
                self._add_toc_field(docx)
            elif isinstance(block, PageBreak):
                docx.add_page_break()
            elif isinstance(block, Table):
                self._add_table(docx, block)
        buffer = io.BytesIO()
        docx.save(buffer)
        return buffer.getvalue()

    @staticmethod
    def _install_styles(docx: DocxDocument) -> None:
        styles = docx.styles
        code = _paragraph_style(docx, _CODE_STYLE)
        code.base_style = styles["Normal"]
        code.font.name = "Courier New"
        code.font.size = Pt(9)
        code.paragraph_format.space_after = Pt(0)

        note = _paragraph_style(docx, _NOTE_STYLE)
        note.base_style = styles["Normal"]
        note.font.italic = True
        note.font.color.rgb = RGBColor(0x66, 0x66, 0x66)

    @staticmethod
    def _update_fields_on_open(docx: DocxDocument) -> None:
        update = OxmlElement("w:updateFields")
        update.set(qn("w:val"), "true")
        docx.settings.element.append(update)

    @staticmethod
    def _add_toc_field(docx: DocxDocument) -> None:
        run = docx.add_paragraph().add_run()
        begin = OxmlElement("w:fldChar")
        begin.set(qn("w:fldCharType"), "begin")
        instruction = OxmlElement("w:instrText")
        instruction.set(qn("xml:space"), "preserve")
        instruction.text = _TOC_INSTRUCTION
        separate = OxmlElement("w:fldChar")
        separate.set(qn("w:fldCharType"), "separate")
        placeholder = OxmlElement("w:t")
        placeholder.text = "Update fields to build the table of contents."
        end = OxmlElement("w:fldChar")
        end.set(qn("w:fldCharType"), "end")
        for element in (begin, instruction, separate, placeholder, end):
            run._r.append(element)

    @staticmethod
    def _add_table(docx: DocxDocument, block: Table) -> None:
        table = docx.add_table(rows=1, cols=len(block.header))
        table.style = "Table Grid"
        for cell, text in zip(table.rows[0].cells, block.header):
            cell.text = text
        for row in block.rows:
            cells = table.add_row().cells
            for cell, text in zip(cells, row):
                cell.text = text or ""


class MarkdownWriter:
    """Renders documents as GitHub-flavoured Markdown."""

    extension = "md"
    media_type = MARKDOWN_MEDIA_TYPE

    def __init__(self, toc_builder: TableOfContentsBuilder | None = None) -> None:
        self.toc_builder = toc_builder or TableOfContentsBuilder()

    def write(self, document: Document) -> bytes:
        lines: List[str] = []
        code: List[str] = []
        toc_title = None

        def flush_code() -> None:
            if code:
                lines.extend(["```", *code, "```", ""])
                code.clear()

        for block in document.blocks:
            if isinstance(block, Paragraph) and block.style == CODE:
                code.extend(block.text.split("\n"))
                continue
            flush_code()
            if isinstance(block, Heading):
                lines.extend([f"{'#' * (block.level + 1)} {block.text}", ""])
            elif isinstance(block, Paragraph):
                if block.style == NOTE:
                    lines.extend([f"> {block.text}", ""])
                elif block.text:
                    lines.extend([block.text, ""])
            elif isinstance(block, TableOfContents):
                toc_title = block.title
                lines.extend([TableOfContentsBuilder.PLACEHOLDER, ""])
            elif isinstance(block, PageBreak):
                lines.extend(["---", ""])
            elif isinstance(block, Table):
                lines.extend(_markdown_table(block))
                lines.append("")
        flush_code()

        markdown = "\n".join(lines).rstrip() + "\n"
        if toc_title is not None:
            markdown = self.toc_builder.build(markdown, toc_title)
        return markdown.encode("utf-8")


def writer_for(output_format: str) -> DocumentWriter:
    """Return the writer registered for ``output_format``."""
    key = (output_format or "").strip().lower()
    if key == "docx":
        return DocxWriter()
    if key in {"markdown", "md"}:
        return MarkdownWriter()
    raise ValueError(f"Unsupported document format: {output_format}")


def _paragraph_style(docx: DocxDocument, name: str) -> ParagraphStyle:
    styles = docx.styles
    if name in styles:
        return styles[name]
    return styles.add_style(name, WD_STYLE_TYPE.PARAGRAPH)


def _markdown_table(block: Table) -> List[str]:
    def _row(cells: tuple[str, ...]) -> str:
        escaped = [(cell or "").replace("|", "\\|").replace("\n", " ") for cell in cells]
        return "| " + " | ".join(escaped) + " |"

    rows = [_row(block.header), "| " + " | ".join("---" for _ in block.header) + " |"]
    rows.extend(_row(row) for row in block.rows)
    return rows


__all__ = [
    "DOCX_MEDIA_TYPE",
    "DocumentWriter",
    "DocxWriter",
    "MARKDOWN_MEDIA_TYPE",
    "MarkdownWriter",
    "writer_for",
]
