"""
agent.tools.execute_command - Run a shell command and capture its output.

Commands run without sandboxing in the given working directory. A command
that exceeds the timeout is killed.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from application.context import SessionContext
from agent.tools.base import ToolResult, WorkspaceTool

logger = logging.getLogger(__name__)


class ExecuteInTerminalInput(BaseModel):
    """Input schema for the execute_in_terminal tool."""

    command: str = Field(description="The command to execute in the terminal")
    working_directory: Optional[str] = Field(
        default=None,
        description="The working directory to execute the command in (optional)",
    )


class ExecuteInTerminalTool(WorkspaceTool):
    """Execute a shell command in the workspace."""

    name = "execute_in_terminal"
    description = "Execute a command in the terminal and return the output"

    def __init__(self, workspace_root: Path, timeout: float = 120.0):
        super().__init__(workspace_root)
        self._timeout = timeout

    def get_schema(self) -> type[BaseModel]:
        return ExecuteInTerminalInput

    async def execute(
        self,
        ctx: SessionContext,
        command: str = "",
        working_directory: Optional[str] = None,
        **kwargs,
    ) -> ToolResult:
        cwd = self.resolve(working_directory) if working_directory else self._root
        logger.info("[%s] $ %s (cwd=%s)", ctx.session_id, command, cwd)
        try:
            proc = await asyncio.create_subprocess_shell(
                command,
                cwd=str(cwd),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            return ToolResult.failure(f"Error executing command: {exc}")

        try:
            stdout_b, stderr_b = await asyncio.wait_for(
                proc.communicate(), timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            return ToolResult.failure(
                f"Error executing command: timed out after {self._timeout:g}s"
            )

        stdout = stdout_b.decode("utf-8", errors="replace")
        stderr = stderr_b.decode("utf-8", errors="replace")
        if proc.returncode != 0:
            return ToolResult.failure(
                f"Error executing command: exit code {proc.returncode}\n"
                f"STDOUT: {stdout}\nSTDERR: {stderr}"
            )
        if stderr:
            return ToolResult(
                output=f"Command executed with errors:\nSTDOUT: {stdout}\nSTDERR: {stderr}"
            )
        return ToolResult(output=f"Command executed successfully:\n{stdout}")
