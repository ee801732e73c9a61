"""Tests for nestdoc.folder_tree."""

from __future__ import annotations

from pathlib import Path

from nestdoc.folder_tree import render_folder_tree


def _layout(root: Path) -> None:
    for relative in (
        "src/app.module.ts",
        "src/users/users.controller.ts",
        "node_modules/pkg/index.js",
        "dist/main.js",
        "README.md",
        "package.json",
    ):
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("", encoding="utf-8")


def test_renders_directories_first_with_default_exclusions(tmp_path: Path) -> None:
    root = tmp_path / "shop"
    _layout(root)

    assert render_folder_tree(root) == "\n".join(
        [
            "shop/",
            "├── src/",
            "│   ├── users/",
            "│   │   └── users.controller.ts",
            "│   └── app.module.ts",
            "├── package.json",
            "└── README.md",
        ]
    )


def test_custom_exclusions_and_depth_limit(tmp_path: Path) -> None:
    root = tmp_path / "shop"
    _layout(root)

    text = render_folder_tree(root, exclude=["*.json", "node_modules"], max_depth=1)

    assert text.splitlines() == ["shop/", "├── dist/", "├── src/", "└── README.md"]
