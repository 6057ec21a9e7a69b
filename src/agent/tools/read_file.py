"""
agent.tools.read_file - Read a text file from the workspace.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from application.context import SessionContext
from agent.tools.base import ToolResult, WorkspaceTool, format_size


class ReadFileInput(BaseModel):
    """Input schema for the read_file tool."""

    path: str = Field(description="The path to the file to read")
    encoding: str = Field(default="utf-8", description="File encoding (defaults to utf-8)")


class ReadFileTool(WorkspaceTool):
    """Return a file's size, line count and content."""

    name = "read_file"
    description = "Read the content of a file in the workspace"

    def get_schema(self) -> type[BaseModel]:
        return ReadFileInput

    async def execute(
        self,
        ctx: SessionContext,
        path: str = "",
        encoding: str = "utf-8",
        **kwargs,
    ) -> ToolResult:
        target = self.resolve(path)
        if not target.exists():
            return ToolResult.failure(f"File does not exist: {target}")
        if target.is_dir():
            return ToolResult.failure(f"Path is a directory, not a file: {target}")

        try:
            content = target.read_text(encoding=encoding)
        except (OSError, UnicodeDecodeError, LookupError) as exc:
            return ToolResult.failure(f"Error reading file: {exc}")

        size = format_size(target.stat().st_size)
        line_count = len(content.split("\n"))
        return ToolResult(
            output=(
                f"File: {target}\nSize: {size}\nLines: {line_count}\n\n"
                f"Content:\n{content}"
            )
        )
