"""
agent.tools.search_files - Plain-text search across workspace files.

Skips dot-directories and node_modules; unreadable or binary files are
ignored silently.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from application.context import SessionContext
from agent.tools.base import ToolResult, WorkspaceTool

_SKIPPED_DIRS = {"node_modules"}
_LINES_PER_FILE = 5


class SearchInFilesInput(BaseModel):
    """Input schema for the search_in_files tool."""

    search_term: str = Field(description="The text or pattern to search for")
    file_extensions: Optional[list[str]] = Field(
        default=None,
        description="Filter by file extensions (e.g., ['.py', '.js', '.json'])",
    )
    directory: str = Field(
        default=".",
        description="Directory to search in (defaults to current directory)",
    )
    case_sensitive: bool = Field(
        default=False, description="Whether the search should be case sensitive"
    )
    max_results: int = Field(default=50, ge=1, description="Maximum number of matching files to return")


class SearchInFilesTool(WorkspaceTool):
    """Find files containing a term and show the matching lines."""

    name = "search_in_files"
    description = (
        "Search for specific text or patterns across files in the workspace. "
        "Useful for finding functions, classes, imports, or specific code patterns."
    )

    def get_schema(self) -> type[BaseModel]:
        return SearchInFilesInput

    async def execute(
        self,
        ctx: SessionContext,
        search_term: str = "",
        file_extensions: Optional[list[str]] = None,
        directory: str = ".",
        case_sensitive: bool = False,
        max_results: int = 50,
        **kwargs,
    ) -> ToolResult:
        root = self.resolve(directory)
        if not root.exists():
            return ToolResult.failure(f"Directory does not exist: {root}")

        needle = search_term if case_sensitive else search_term.lower()
        results: list[str] = []
        for path in _walk(root):
            if len(results) >= max_results:
                break
            if file_extensions and path.suffix not in file_extensions:
                continue
            try:
                content = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError):
                continue

            matching = [
                f"  Line {number}: {line.strip()}"
                for number, line in enumerate(content.split("\n"), start=1)
                if needle in (line if case_sensitive else line.lower())
            ]
            if matching:
                results.append(
                    f"📄 {self.relative(path)}:\n" + "\n".join(matching[:_LINES_PER_FILE])
                )

        if not results:
            return ToolResult(output=f'No matches found for "{search_term}" in {root}')
        return ToolResult(
            output=(
                f'Found {len(results)} files containing "{search_term}":\n\n'
                + "\n\n".join(results)
            )
        )


def _walk(directory: Path):
    """Yield files depth-first, skipping hidden and vendored directories."""
    try:
        entries = sorted(directory.iterdir(), key=lambda p: p.name)
    except OSError:
        return
    for entry in entries:
        if entry.is_dir():
            if entry.name.startswith(".") or entry.name in _SKIPPED_DIRS:
                continue
            yield from _walk(entry)
        elif entry.is_file():
            yield entry
