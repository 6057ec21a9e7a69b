"""
agent.tools.create_file - Create a file or folder in the workspace.

Parent directories are created as needed.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from application.context import SessionContext
from agent.tools.base import ToolResult, WorkspaceTool


class CreateFileOrFolderInput(BaseModel):
    """Input schema for the create_file_or_folder tool."""

    path: str = Field(
        description="The relative or absolute path where to create the file or folder"
    )
    type: Literal["file", "folder"] = Field(
        description="Whether to create a file or folder"
    )
    content: str = Field(
        default="",
        description="Content to write to the file (only used when type is 'file')",
    )


class CreateFileOrFolderTool(WorkspaceTool):
    """Create a new file (with content) or a new folder."""

    name = "create_file_or_folder"
    description = (
        "Create a new file or folder in the workspace. "
        "Specify whether to create a file or folder using the 'type' parameter."
    )

    def get_schema(self) -> type[BaseModel]:
        return CreateFileOrFolderInput

    async def execute(
        self,
        ctx: SessionContext,
        path: str = "",
        type: str = "file",
        content: str = "",
        **kwargs,
    ) -> ToolResult:
        target = self.resolve(path)
        try:
            if type == "folder":
                target.mkdir(parents=True, exist_ok=True)
                return ToolResult(output=f"Successfully created folder: {target}")

            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
            return ToolResult(output=f"Successfully created file: {target}")
        except OSError as exc:
            return ToolResult.failure(f"Error creating {type}: {exc}")
