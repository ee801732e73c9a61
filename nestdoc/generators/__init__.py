"""Diagram, document and file-format generators."""

from .document import DocumentAssembler
from .erd import ErdEmitter
from .writers import DocxWriter, MarkdownWriter, writer_for

__all__ = ["DocumentAssembler", "DocxWriter", "ErdEmitter", "MarkdownWriter", "writer_for"]
