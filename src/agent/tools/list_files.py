"""
agent.tools.list_files - List directory contents in the workspace.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from application.context import SessionContext
from agent.tools.base import ToolResult, WorkspaceTool, format_size


class ListFilesInput(BaseModel):
    """Input schema for the list_files tool."""

    path: str = Field(
        default=".",
        description="The path to list files from (defaults to current directory)",
    )
    recursive: bool = Field(default=False, description="Whether to list files recursively")
    show_hidden: bool = Field(
        default=False,
        description="Whether to show hidden files (starting with .)",
    )


class ListFilesTool(WorkspaceTool):
    """List files and directories, optionally recursively."""

    name = "list_files"
    description = (
        "List all files and directories in a specified path within the workspace"
    )

    def get_schema(self) -> type[BaseModel]:
        return ListFilesInput

    async def execute(
        self,
        ctx: SessionContext,
        path: str = ".",
        recursive: bool = False,
        show_hidden: bool = False,
        **kwargs,
    ) -> ToolResult:
        target = self.resolve(path)
        if not target.exists():
            return ToolResult.failure(f"Path does not exist: {target}")

        lines = _list_directory(target, 0, recursive, show_hidden)
        return ToolResult(
            output=f"Files and directories in {target}:\n" + "\n".join(lines)
        )


def _list_directory(
    directory: Path, level: int, recursive: bool, show_hidden: bool,
) -> list[str]:
    indent = "  " * level
    items: list[str] = []
    try:
        entries = sorted(directory.iterdir(), key=lambda p: p.name)
    except OSError as exc:
        return [f"{indent}❌ Error reading directory: {exc}"]

    for entry in entries:
        if not show_hidden and entry.name.startswith("."):
            continue
        if entry.is_dir():
            items.append(f"{indent}📁 {entry.name}/")
            if recursive:
                items.extend(_list_directory(entry, level + 1, recursive, show_hidden))
        else:
            items.append(f"{indent}📄 {entry.name} ({format_size(entry.stat().st_size)})")
    return items
