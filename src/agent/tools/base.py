"""
agent.tools.base - Base tool interface and result container.

All agent tools inherit from BaseTool and return ToolResult.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel

from application.context import SessionContext


@dataclass(frozen=True)
class ToolResult:
    """Result returned by a tool execution.

    output: Human-readable string relayed verbatim to the model.
    ok:     False when the tool reports a failure (the output describes it).
    """
    output: str
    ok: bool = True

    @classmethod
    def failure(cls, output: str) -> ToolResult:
        return cls(output=output, ok=False)


class BaseTool(ABC):
    """Abstract base for all agent tools."""

    name: str
    description: str

    @abstractmethod
    async def execute(self, ctx: SessionContext, **kwargs) -> ToolResult:
        """Execute the tool with the given session context and arguments."""
        ...

    @abstractmethod
    def get_schema(self) -> type[BaseModel]:
        """Return the Pydantic schema for this tool's input arguments."""
        ...


class WorkspaceTool(BaseTool):
    """A tool that resolves relative paths against a workspace root."""

    def __init__(self, workspace_root: Path):
        self._root = Path(workspace_root)

    def resolve(self, target: str) -> Path:
        path = Path(target)
        return path if path.is_absolute() else self._root / path

    def relative(self, path: Path) -> str:
        return os.path.relpath(path, self._root)


def format_size(size_bytes: int) -> str:
    return f"{size_bytes / 1024:.1f}KB"
