"""TypeScript source parsing, module resolution and type resolution."""

from .project import ProjectIndex, SourceModule
from .resolver import TypeRef, TypeResolver

__all__ = ["ProjectIndex", "SourceModule", "TypeRef", "TypeResolver"]
