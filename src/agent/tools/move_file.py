"""
agent.tools.move_file - Move or rename a file or folder in the workspace.
"""

from __future__ import annotations

import shutil

from pydantic import BaseModel, Field

from application.context import SessionContext
from agent.tools.base import ToolResult, WorkspaceTool, format_size


class MoveFileOrFolderInput(BaseModel):
    """Input schema for the move_file_or_folder tool."""

    source_path: str = Field(description="The current path of the file or folder to move")
    destination_path: str = Field(
        description="The new path where the file or folder should be moved to"
    )
    create_destination_dir: bool = Field(
        default=False,
        description="Whether to create the destination directory if it doesn't exist",
    )


class MoveFileOrFolderTool(WorkspaceTool):
    """Move or rename without ever overwriting an existing destination."""

    name = "move_file_or_folder"
    description = (
        "Move or rename a file or folder in the workspace. "
        "Can move files/folders to different directories or rename them."
    )

    def get_schema(self) -> type[BaseModel]:
        return MoveFileOrFolderInput

    async def execute(
        self,
        ctx: SessionContext,
        source_path: str = "",
        destination_path: str = "",
        create_destination_dir: bool = False,
        **kwargs,
    ) -> ToolResult:
        source = self.resolve(source_path)
        destination = self.resolve(destination_path)

        if not source.exists():
            return ToolResult.failure(f"Source path does not exist: {source}")

        if not destination.parent.exists():
            if not create_destination_dir:
                return ToolResult.failure(
                    f"Destination directory does not exist: {destination.parent}. "
                    "Use create_destination_dir: true to create it."
                )
            destination.parent.mkdir(parents=True, exist_ok=True)

        if destination.exists():
            return ToolResult.failure(f"Destination already exists: {destination}")

        is_directory = source.is_dir()
        size = None if is_directory else format_size(source.stat().st_size)
        try:
            shutil.move(str(source), str(destination))
        except OSError as exc:
            return ToolResult.failure(f"Error moving file/folder: {exc}")

        kind = "folder" if is_directory else "file"
        output = f"Successfully moved {kind}: {source} -> {destination}"
        if size:
            output += f"\nSize: {size}"
        return ToolResult(output=output)
