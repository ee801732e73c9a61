"""Automatic table-of-contents generation for Markdown output."""

from __future__ import annotations

import re
from typing import List


class TableOfContentsBuilder:
    """Builds ToC blocks from second and third level headings."""

    PLACEHOLDER = "<!-- nestdoc:toc -->"

    def build(self, markdown: str, title: str = "Table of Contents") -> str:
        toc_block = self._build_block(markdown, title)
        if not toc_block:
            return markdown.replace(self.PLACEHOLDER, "", 1)
        if self.PLACEHOLDER in markdown:
            return markdown.replace(self.PLACEHOLDER, toc_block, 1)
        return toc_block + "\n" + markdown

    def _build_block(self, markdown: str, title: str) -> str:
        headings: List[tuple[int, str, str]] = []
        in_code = False
        for line in markdown.splitlines():
            stripped = line.strip()
            if stripped.startswith("```"):
                in_code = not in_code
                continue
            if in_code:
                continue
            match = re.match(r"^(#{2,3})\s+(.*)$", stripped)
            if match:
                level = len(match.group(1))
                text = match.group(2).strip()
                headings.append((level, text, self._slugify(text)))

        if not headings:
            return ""

        output: List[str] = [f"**{title}**", ""]
        for level, text, anchor in headings:
            indent = "  " * (level - 2)
            output.append(f"{indent}- [{text}](#{anchor})")
        return "\n".join(output)

    @staticmethod
    def _slugify(title: str) -> str:
        slug = title.lower()
        slug = re.sub(r"[^a-z0-9\s-]", "", slug)
        slug = re.sub(r"\s+", "-", slug)
        slug = re.sub(r"-+", "-", slug)
        return slug.strip("-")


__all__ = ["TableOfContentsBuilder"]
