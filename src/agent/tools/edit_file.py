"""
agent.tools.edit_file - Overwrite or append to a file in the workspace.

A failed write may leave the file partially written; no rollback is done.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from application.context import SessionContext
from agent.tools.base import ToolResult, WorkspaceTool, format_size


class EditFileInput(BaseModel):
    """Input schema for the edit_file tool."""

    path: str = Field(description="The path to the file to edit")
    content: str = Field(description="The new content to write to the file")
    mode: Literal["overwrite", "append"] = Field(
        default="overwrite",
        description="Whether to overwrite the file or append to it",
    )
    create_if_not_exists: bool = Field(
        default=False,
        description="Create the file if it doesn't exist",
    )


class EditFileTool(WorkspaceTool):
    """Replace or extend the content of an existing file."""

    name = "edit_file"
    description = (
        "Edit the content of an existing file in the workspace. "
        "Can replace entire content or append to file."
    )

    def get_schema(self) -> type[BaseModel]:
        return EditFileInput

    async def execute(
        self,
        ctx: SessionContext,
        path: str = "",
        content: str = "",
        mode: str = "overwrite",
        create_if_not_exists: bool = False,
        **kwargs,
    ) -> ToolResult:
        target = self.resolve(path)

        if not target.exists():
            if not create_if_not_exists:
                return ToolResult.failure(
                    f"File does not exist: {target}. "
                    "Use create_if_not_exists: true to create it."
                )
            target.parent.mkdir(parents=True, exist_ok=True)
        elif target.is_dir():
            return ToolResult.failure(f"Path is a directory, not a file: {target}")

        final_content = content
        if mode == "append" and target.exists():
            final_content = target.read_text(encoding="utf-8") + content

        try:
            target.write_text(final_content, encoding="utf-8")
        except OSError as exc:
            return ToolResult.failure(f"Error editing file: {exc}")

        verb = "overwrote" if mode == "overwrite" else "appended to"
        line_count = len(final_content.split("\n"))
        return ToolResult(
            output=(
                f"Successfully {verb} file: {target}\n"
                f"New size: {format_size(target.stat().st_size)}\n"
                f"New line count: {line_count}"
            )
        )
