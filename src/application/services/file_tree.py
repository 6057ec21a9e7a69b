"""
application.services.file_tree - Directory tree of the workspace for the UI.
"""

from __future__ import annotations

import fnmatch
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

IGNORE_PATTERNS = (
    "node_modules",
    ".git",
    ".vscode",
    "dist",
    "build",
    ".env",
    ".DS_Store",
    "Thumbs.db",
    "*.log",
    ".next",
    "coverage",
)


def _ignored(name: str) -> bool:
    for pattern in IGNORE_PATTERNS:
        if "*" in pattern:
            if fnmatch.fnmatch(name, pattern):
                return True
        elif name == pattern or name.startswith(pattern):
            return True
    return False


class FileTreeService:
    """Reads the workspace as nested {name, path, type, children} dicts.

    Directories come first, then files, each group in name order. Paths are
    relative to the workspace root with forward slashes.
    """

    def __init__(self, root: Path, max_depth: int = 3):
        self._root = Path(root)
        self._max_depth = max_depth

    def get_tree(self) -> list[dict[str, Any]]:
        return self._read(self._root, 0)

    def _read(self, directory: Path, depth: int) -> list[dict[str, Any]]:
        if depth > self._max_depth:
            return []
        try:
            items = list(directory.iterdir())
        except OSError:
            logger.exception("Error reading directory %s", directory)
            return []

        tree = []
        for item in items:
            if _ignored(item.name):
                continue
            is_dir = item.is_dir()
            node: dict[str, Any] = {
                "name": item.name,
                "path": item.relative_to(self._root).as_posix(),
                "type": "directory" if is_dir else "file",
            }
            if is_dir:
                node["children"] = self._read(item, depth + 1)
            tree.append(node)

        tree.sort(key=lambda n: (n["type"] != "directory", n["name"].lower()))
        return tree
