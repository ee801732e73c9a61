"""Plain-text folder listing for the Folder Structure section."""

from __future__ import annotations

from fnmatch import fnmatchcase
from pathlib import Path
from typing import List, Optional, Sequence

from .config import DEFAULT_TREE_EXCLUDE

_BRANCH = "├── "
_LAST = "└── "
_PIPE = "│   "
_SPACE = "    "


def render_folder_tree(
    root: Path,
    exclude: Sequence[str] = DEFAULT_TREE_EXCLUDE,
    max_depth: Optional[int] = None,
) -> str:
    """Render ``root`` as a box-drawing tree, directories first, names sorted."""
    root = Path(root)
    lines = [f"{root.name or str(root)}/"]
    _walk(root, "", 1, exclude, max_depth, lines)
    return "\n".join(lines)


def _walk(
    directory: Path,
    prefix: str,
    depth: int,
    exclude: Sequence[str],
    max_depth: Optional[int],
    lines: List[str],
) -> None:
    if max_depth is not None and depth > max_depth:
        return
    try:
        entries = [entry for entry in directory.iterdir() if not _excluded(entry.name, exclude)]
    except OSError:
        return
    entries.sort(key=lambda entry: (not entry.is_dir(), entry.name.lower(), entry.name))
    for position, entry in enumerate(entries):
        last = position == len(entries) - 1
        is_dir = entry.is_dir()
        lines.append(f"{prefix}{_LAST if last else _BRANCH}{entry.name}{'/' if is_dir else ''}")
        if is_dir and not entry.is_symlink():
            _walk(entry, prefix + (_SPACE if last else _PIPE), depth + 1, exclude, max_depth, lines)


def _excluded(name: str, patterns: Sequence[str]) -> bool:
    return any(fnmatchcase(name, pattern) for pattern in patterns)


__all__ = ["render_folder_tree"]
