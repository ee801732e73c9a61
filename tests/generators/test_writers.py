"""Tests for nestdoc.generators.writers."""

from __future__ import annotations

import io

import docx
import pytest

from nestdoc.generators.document import (
    CODE,
    NOTE,
    Document,
    Heading,
    PageBreak,
    Paragraph,
    Table,
    TableOfContents,
)
from nestdoc.generators.writers import DocxWriter, MarkdownWriter, writer_for


def _document() -> Document:
    return Document(
        title="shop Documentation",
        blocks=[
            Heading("shop Documentation", 0),
            TableOfContents(),
            PageBreak(),
            Heading("Folder Structure", 1),
            Paragraph("project/\n└── src/", CODE),
            PageBreak(),
            Heading("Database Schema", 1),
            Heading("Entity: User", 2),
            Table(header=("Column", "Type", "Decorators"), rows=(("id", "number", "a|b"),)),
            Heading("API Endpoints", 1),
            Heading("Endpoint: GET users/:id", 2),
            Paragraph("Controller: UsersController → Method: findOne", NOTE),
            Paragraph("Request Params:"),
            Paragraph("param: string", CODE),
            Paragraph("  nested: number", CODE),
            Paragraph(""),
        ],
    )


def test_markdown_writer_renders_sections_in_order() -> None:
    markdown = MarkdownWriter().write(_document()).decode("utf-8")

    positions = [
        markdown.index(marker)
        for marker in (
            "# shop Documentation",
            "## Folder Structure",
            "## Database Schema",
            "### Entity: User",
            "## API Endpoints",
            "### Endpoint: GET users/:id",
        )
    ]
    assert positions == sorted(positions)


def test_markdown_writer_builds_toc_code_fences_and_tables() -> None:
    markdown = MarkdownWriter().write(_document()).decode("utf-8")

    assert "**Table of Contents**" in markdown
    assert "- [Folder Structure](#folder-structure)" in markdown
    assert "  - [Endpoint: GET users/:id](#endpoint-get-usersid)" in markdown
    assert "<!-- nestdoc:toc -->" not in markdown
    assert "```\nproject/\n└── src/\n```" in markdown
    assert "```\nparam: string\n  nested: number\n```" in markdown
    assert "> Controller: UsersController → Method: findOne" in markdown
    assert "| Column | Type | Decorators |\n| --- | --- | --- |\n| id | number | a\\|b |" in markdown


def test_docx_writer_produces_readable_document() -> None:
    content = DocxWriter().write(_document())

    assert content[:2] == b"PK"
    loaded = docx.Document(io.BytesIO(content))
    texts = [paragraph.text for paragraph in loaded.paragraphs]
    assert "shop Documentation" in texts
    assert "Folder Structure" in texts
    assert "Endpoint: GET users/:id" in texts
    assert len(loaded.tables) == 1
    assert loaded.tables[0].rows[1].cells[2].text == "a|b"
    styles = {paragraph.style.name for paragraph in loaded.paragraphs}
    assert {"Code", "Note", "Heading 1", "Heading 2"} <= styles


def test_writer_for_selects_by_format() -> None:
    assert isinstance(writer_for("docx"), DocxWriter)
    assert isinstance(writer_for("markdown"), MarkdownWriter)
    assert writer_for("markdown").extension == "md"
    assert writer_for("docx").extension == "docx"
    with pytest.raises(ValueError):
        writer_for("pdf")
