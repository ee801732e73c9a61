"""Request pipeline producing the project document."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from .config import NestDocConfig, load_config
from .extractors.interfaces import InterfaceMiner
from .extractors.routes import RouteExtractor
from .folder_tree import render_folder_tree
from .generators.document import DocumentAssembler
from .generators.erd import DIAGRAM_FILENAME, ErdEmitter
from .generators.writers import DocumentWriter, writer_for
from .logging import get_logger
from .models import EndpointRecord, InterfaceReport
from .parser_bridge import ParserBridge
from .typescript.project import ProjectIndex
from .typescript.resolver import TypeResolver


@dataclass
class GenerationResult:
    """Outcome of a documentation run."""

    path: Path
    content: bytes
    diagram_path: Path
    endpoints: List[EndpointRecord] = field(default_factory=list)

    @property
    def filename(self) -> str:
        return self.path.name


class DocumentationService:
    """Coordinates parsing, extraction, assembly and writing for one project.

    Each call builds its own :class:`ProjectIndex`, so module caches never
    outlive a request.
    """

    def __init__(
        self,
        config: NestDocConfig | None = None,
        parser: ParserBridge | None = None,
        writer: DocumentWriter | None = None,
        assembler: DocumentAssembler | None = None,
        erd: ErdEmitter | None = None,
    ) -> None:
        self.config = config or load_config(Path.cwd())
        self.parser = parser or ParserBridge(
            self.config.parser.path,
            max_output_bytes=self.config.parser.max_output_bytes,
            timeout=self.config.parser.timeout,
        )
        self.writer = writer or writer_for(self.config.output.format)
        self.assembler = assembler or DocumentAssembler()
        self.erd = erd or ErdEmitter()
        self.logger = get_logger("orchestrator")

    def generate(self, project_path: str | Path) -> GenerationResult:
        """Build the document for ``project_path`` and persist it under the output dir."""
        project = self._project_root(project_path)
        name = project.name or "project"
        self.logger.info("Generating documentation for %s", project)

        parsed = self.parser.run(project)
        index = self._index(project)
        endpoints = RouteExtractor(index, TypeResolver(index)).extract()
        self.logger.info("Extracted %d endpoints", len(endpoints))
        interfaces = InterfaceMiner(index).mine()
        folder_text = render_folder_tree(
            project, self.config.tree.exclude, self.config.tree.max_depth
        )

        output_dir = self.config.output.dir / name
        diagram = self.erd.emit(parsed.relationships, output_dir)

        document = self.assembler.assemble(
            parsed,
            folder_text,
            diagram,
            endpoints,
            interfaces=interfaces,
            project_name=name,
        )
        content = self.writer.write(document)
        target = output_dir / f"{name}-documentation.{self.writer.extension}"
        target.write_bytes(content)
        self.logger.info("Documentation written to %s", target)
        return GenerationResult(
            path=target,
            content=content,
            diagram_path=output_dir / DIAGRAM_FILENAME,
            endpoints=endpoints,
        )

    def routes(self, project_path: str | Path) -> List[EndpointRecord]:
        """Extract endpoint records without running the structural parser."""
        index = self._index(self._project_root(project_path))
        return RouteExtractor(index, TypeResolver(index)).extract()

    def interfaces(self, project_path: str | Path) -> InterfaceReport:
        """Mine interface declarations without running the structural parser."""
        return InterfaceMiner(self._index(self._project_root(project_path))).mine()

    # ------------------------------------------------------------------
    # Internals

    @staticmethod
    def _project_root(project_path: str | Path) -> Path:
        project = Path(project_path).expanduser().resolve()
        if not project.is_dir():
            raise FileNotFoundError(f"Project path does not exist: {project_path}")
        return project

    def _index(self, project: Path) -> ProjectIndex:
        return ProjectIndex(
            project,
            include=self.config.sources.include,
            exclude=self.config.sources.exclude,
        )


__all__ = ["DocumentationService", "GenerationResult"]
