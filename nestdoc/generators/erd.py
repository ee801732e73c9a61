"""Mermaid entity-relationship diagram generation."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Sequence

from ..logging import get_logger
from ..models import EntityRelationship

_LOGGER = get_logger("generators.erd")

DIAGRAM_FILENAME = "erd.mmd"
EMPTY_DIAGRAM = "erDiagram\n    %% No relationships found"

RELATIONSHIP_LINKS: Dict[str, str] = {
    "OneToOne": "||--||",
    "ManyToOne": "}o--||",
    "OneToMany": "||--o{",
    "ManyToMany": "}o--o{",
}


class ErdEmitter:
    """Maps relationship records to Mermaid ``erDiagram`` statements."""

    def render(self, relationships: Sequence[EntityRelationship]) -> str:
        if not relationships:
            return EMPTY_DIAGRAM
        lines = ["erDiagram"]
        for rel in relationships:
            link = RELATIONSHIP_LINKS.get(rel.type)
            if link is None:
                continue
            lines.append(f'    {rel.from_} {link} {rel.to} : ""')
        return "\n".join(lines) + "\n"

    def emit(
        self, relationships: Sequence[EntityRelationship], output_dir: Optional[Path] = None
    ) -> str:
        """Render the diagram and, when ``output_dir`` is given, persist it as ``erd.mmd``."""
        diagram = self.render(relationships)
        if output_dir is not None:
            output_dir.mkdir(parents=True, exist_ok=True)
            target = output_dir / DIAGRAM_FILENAME
            target.write_text(diagram, encoding="utf-8")
            _LOGGER.debug("Wrote diagram to %s", target)
        return diagram


__all__ = ["DIAGRAM_FILENAME", "EMPTY_DIAGRAM", "ErdEmitter", "RELATIONSHIP_LINKS"]
