"""Module resolution table for one analysis request."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Dict, FrozenSet, Iterator, List, Optional, Sequence, Tuple

from ..config import DEFAULT_SOURCE_EXCLUDE, DEFAULT_SOURCE_INCLUDE
from ..logging import get_logger
from .syntax import Declaration, ImportBinding, ReExport, extract_module, parse_source

_LOGGER = get_logger("typescript.project")

_JSONC_NOISE = re.compile(r'("(?:\\.|[^"\\])*")|//[^\n]*|/\*.*?\*/', re.DOTALL)
_TRAILING_COMMA = re.compile(r",(\s*[}\]])")

_SOURCE_SUFFIXES = (".ts", ".tsx")


@dataclass
class SourceModule:
    """A parsed source file with its imports and top-level declarations."""

    path: Path
    source: bytes
    imports: Dict[str, ImportBinding] = field(default_factory=dict)
    re_exports: List[ReExport] = field(default_factory=list)
    default_export: Optional[str] = None
    declarations: Dict[str, Declaration] = field(default_factory=dict)

    @classmethod
    def parse(cls, path: Path, source: bytes) -> "SourceModule":
        root = parse_source(source, tsx=path.suffix.lower() == ".tsx")
        syntax = extract_module(root, source)
        module = cls(
            path=path,
            source=source,
            imports=syntax.imports,
            re_exports=syntax.re_exports,
            default_export=syntax.default_export,
        )
        for kind, name, node, decorators in syntax.declarations:
            # First declaration wins when a name is merged (interface + class).
            module.declarations.setdefault(
                name, Declaration(kind=kind, name=name, node=node, module=module, decorators=decorators)
            )
        return module

    @property
    def identity(self) -> str:
        """Module path without extension, as used in qualified type signatures."""
        return self.path.with_suffix("").as_posix()

    def iter_declarations(self, kind: Optional[str] = None) -> Iterator[Declaration]:
        for declaration in self.declarations.values():
            if kind is None or declaration.kind == kind:
                yield declaration


@dataclass(frozen=True)
class _PathAlias:
    prefix: str
    suffix: str
    targets: Tuple[str, ...]
    wildcard: bool

    def match(self, specifier: str) -> Optional[str]:
        if not self.wildcard:
            return "" if specifier == self.prefix else None
        if specifier.startswith(self.prefix) and specifier.endswith(self.suffix):
            end = len(specifier) - len(self.suffix) if self.suffix else len(specifier)
            if end >= len(self.prefix):
                return specifier[len(self.prefix) : end]
        return None


class ProjectIndex:
    """Loads TypeScript modules on demand and resolves symbols across files.

    The index is owned by a single request: modules are cached by their
    canonical absolute path and never shared between requests.
    """

    def __init__(
        self,
        root: Path | str,
        *,
        include: Sequence[str] = DEFAULT_SOURCE_INCLUDE,
        exclude: Sequence[str] = DEFAULT_SOURCE_EXCLUDE,
    ) -> None:
        self.root = Path(root).expanduser().resolve()
        self.include = tuple(include)
        self.exclude = tuple(exclude)
        self._modules: Dict[Path, Optional[SourceModule]] = {}
        self._base_url, self._aliases = self._load_tsconfig()

    # ------------------------------------------------------------------
    # Loading

    def source_paths(self) -> List[Path]:
        """Return project sources matching the include globs, sorted by path."""
        found: Dict[Path, None] = {}
        for pattern in self.include:
            for path in self.root.glob(pattern):
                if not path.is_file() or path.suffix.lower() not in _SOURCE_SUFFIXES:
                    continue
                relative = path.relative_to(self.root).as_posix()
                if any(_glob_match(relative, excluded) for excluded in self.exclude):
                    continue
                found[path.resolve()] = None
        return sorted(found)

    def modules(self) -> List[SourceModule]:
        """Return every project module, loading each at most once."""
        loaded: List[SourceModule] = []
        for path in self.source_paths():
            module = self.load(path)
            if module is not None:
                loaded.append(module)
        return loaded

    def load(self, path: Path) -> Optional[SourceModule]:
        """Return the module at ``path``, parsing it on first use."""
        key = path.resolve()
        if key in self._modules:
            return self._modules[key]
        try:
            source = key.read_bytes()
        except OSError as exc:
            _LOGGER.warning("Could not load source file %s: %s", key, exc)
            self._modules[key] = None
            return None
        module = SourceModule.parse(key, source)
        self._modules[key] = module
        _LOGGER.debug("Loaded %s (%d declarations)", key, len(module.declarations))
        return module

    @property
    def loaded_paths(self) -> List[Path]:
        return [path for path, module in self._modules.items() if module is not None]

    def relative_path(self, module: SourceModule) -> str:
        try:
            return module.path.relative_to(self.root).as_posix()
        except ValueError:
            return module.path.as_posix()

    # ------------------------------------------------------------------
    # Resolution

    def resolve_specifier(self, specifier: str, origin: SourceModule) -> Optional[Path]:
        """Map an import specifier to a project source file, if it names one."""
        if specifier.startswith("node:"):
            return None
        bases: List[Path] = []
        if specifier.startswith("."):
            bases.append(origin.path.parent / specifier)
        else:
            for alias in self._aliases:
                captured = alias.match(specifier)
                if captured is None:
                    continue
                anchor = self._base_url or self.root
                for target in alias.targets:
                    bases.append(anchor / target.replace("*", captured, 1))
            if self._base_url is not None:
                bases.append(self._base_url / specifier)
            bases.append(self.root / specifier)
        for base in bases:
            found = _first_existing(base)
            if found is not None:
                return found
        return None

    def find_declaration(self, name: str, module: SourceModule) -> Optional[Declaration]:
        """Find the declaration ``name`` refers to when written inside ``module``."""
        return self._find_declaration(name, module, frozenset())

    def _find_declaration(
        self, name: str, module: SourceModule, seen: FrozenSet[Path]
    ) -> Optional[Declaration]:
        local = module.declarations.get(name)
        if local is not None:
            return local
        binding = module.imports.get(name)
        if binding is None or binding.imported == "*":
            return None
        target = self._load_specifier(binding.specifier, module)
        if target is None:
            return None
        return self._find_export(target, binding.imported, seen)

    def find_qualified(self, namespace: str, name: str, module: SourceModule) -> Optional[Declaration]:
        """Resolve ``namespace.Name`` where ``namespace`` is a ``* as`` import."""
        binding = module.imports.get(namespace)
        if binding is None or binding.imported != "*":
            return None
        target = self._load_specifier(binding.specifier, module)
        if target is None:
            return None
        return self._find_export(target, name, frozenset())

    def is_external(self, name: str, module: SourceModule) -> bool:
        """True when ``name`` is imported from outside the project sources."""
        binding = module.imports.get(name)
        if binding is None:
            return False
        return self.resolve_specifier(binding.specifier, module) is None

    def _load_specifier(self, specifier: str, origin: SourceModule) -> Optional[SourceModule]:
        path = self.resolve_specifier(specifier, origin)
        if path is None:
            return None
        return self.load(path)

    def _find_export(
        self, module: SourceModule, name: str, seen: FrozenSet[Path]
    ) -> Optional[Declaration]:
        if module.path in seen:
            return None
        seen = seen | {module.path}
        if name == "default":
            if module.default_export is None:
                return None
            return self._find_declaration(module.default_export, module, seen)
        local = module.declarations.get(name)
        if local is not None:
            return local
        binding = module.imports.get(name)
        if binding is not None and binding.imported != "*":
            # ``import { A } from './a'; export { A };``
            target = self._load_specifier(binding.specifier, module)
            if target is not None:
                found = self._find_export(target, binding.imported, seen)
                if found is not None:
                    return found
        for re_export in module.re_exports:
            if re_export.imported != "*" and re_export.exported != name:
                continue
            target = self._load_specifier(re_export.specifier, module)
            if target is None:
                continue
            wanted = name if re_export.imported == "*" else re_export.imported
            found = self._find_export(target, wanted, seen)
            if found is not None:
                return found
        return None

    # ------------------------------------------------------------------
    # tsconfig

    def _load_tsconfig(self) -> Tuple[Optional[Path], List[_PathAlias]]:
        config_path = self.root / "tsconfig.json"
        if not config_path.exists():
            return None, []
        try:
            data = parse_jsonc(config_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            _LOGGER.warning("Ignoring unreadable %s: %s", config_path, exc)
            return None, []
        options = data.get("compilerOptions") if isinstance(data, dict) else None
        if not isinstance(options, dict):
            return None, []

        base_url: Optional[Path] = None
        if isinstance(options.get("baseUrl"), str):
            base_url = (self.root / options["baseUrl"]).resolve()

        aliases: List[_PathAlias] = []
        paths = options.get("paths")
        if isinstance(paths, dict):
            for pattern, targets in paths.items():
                if not isinstance(targets, list):
                    continue
                clean_targets = tuple(str(target) for target in targets if isinstance(target, str))
                prefix, star, suffix = pattern.partition("*")
                aliases.append(_PathAlias(prefix, suffix, clean_targets, bool(star)))
        return base_url, aliases


def parse_jsonc(text: str) -> object:
    """Decode JSON that may carry comments and trailing commas (tsconfig style)."""
    without_comments = _JSONC_NOISE.sub(lambda match: match.group(1) or "", text)
    return json.loads(_TRAILING_COMMA.sub(r"\1", without_comments))


def _first_existing(base: Path) -> Optional[Path]:
    candidates = [base]
    if base.suffix in {".js", ".mjs", ".cjs"}:
        candidates.append(base.with_suffix(".ts"))
    candidates.extend(
        [
            Path(f"{base}.ts"),
            Path(f"{base}.tsx"),
            base / "index.ts",
            base / "index.tsx",
        ]
    )
    for candidate in candidates:
        if candidate.suffix.lower() in _SOURCE_SUFFIXES and candidate.is_file():
            return candidate.resolve()
    return None


def _glob_match(relative: str, pattern: str) -> bool:
    if fnmatchcase(relative, pattern):
        return True
    if pattern.startswith("**/"):
        return fnmatchcase(relative, pattern[3:])
    return False


__all__ = ["ProjectIndex", "SourceModule", "parse_jsonc"]
