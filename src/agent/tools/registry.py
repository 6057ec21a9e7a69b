"""
agent.tools.registry - Tool registration, discovery, and invocation.

Central registry that manages all available tools and provides
LangChain-compatible tool wrappers. Populated once at startup and then
sealed; agents receive sealed subsets holding only the tools they are
granted.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from langchain_core.tools import StructuredTool
from pydantic import ValidationError

from application.context import SessionContext
from agent.tools.base import BaseTool, ToolResult
from domain.exceptions import ToolNotFoundError, ToolValidationError

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Manages tool registration and invocation."""

    def __init__(self, tools: Iterable[BaseTool] = ()):
        self._tools: dict[str, BaseTool] = {}
        self._sealed = False
        for tool in tools:
            self.register(tool)

    def register(self, tool: BaseTool) -> None:
        """Register a tool by its name."""
        if self._sealed:
            raise RuntimeError(
                f"Cannot register '{tool.name}': registry is sealed"
            )
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' already registered")
        self._tools[tool.name] = tool
        logger.debug("Registered tool: %s", tool.name)

    def seal(self) -> ToolRegistry:
        """Forbid further registration. Returns self for chaining."""
        self._sealed = True
        return self

    @property
    def sealed(self) -> bool:
        return self._sealed

    def resolve(self, name: str) -> BaseTool:
        """Get a tool by name."""
        if name not in self._tools:
            raise ToolNotFoundError(f"Tool '{name}' not registered")
        return self._tools[name]

    def all(self) -> list[BaseTool]:
        """Return all registered tools."""
        return list(self._tools.values())

    def names(self) -> list[str]:
        """Return all registered tool names."""
        return list(self._tools.keys())

    def subset(self, names: Iterable[str]) -> ToolRegistry:
        """Return a sealed registry holding only the named tools."""
        return ToolRegistry(self.resolve(name) for name in names).seal()

    def validate(self, name: str, args: dict[str, Any]) -> dict[str, Any]:
        """Check args against the tool's schema and return the coerced values."""
        schema = self.resolve(name).get_schema()
        try:
            parsed = schema.model_validate(args or {})
        except ValidationError as exc:
            raise ToolValidationError(
                f"Invalid arguments for {name}: {exc}"
            ) from exc
        return parsed.model_dump()

    async def invoke(
        self, name: str, ctx: SessionContext, args: dict[str, Any] | None = None,
    ) -> ToolResult:
        """Invoke a tool by name.

        Never raises: unknown tools, invalid arguments and tool crashes all
        come back as a failed ToolResult whose output describes the problem.
        """
        if name not in self._tools:
            logger.warning("Tool %s not found", name)
            return ToolResult.failure(f"Tool {name} not found!")

        try:
            kwargs = self.validate(name, args or {})
        except ToolValidationError as exc:
            logger.warning("%s", exc)
            return ToolResult.failure(str(exc))

        logger.info("[%s] Executing tool %s args=%s", ctx.session_id, name, kwargs)
        try:
            result = await self._tools[name].execute(ctx, **kwargs)
        except Exception as exc:
            logger.exception("Tool %s raised", name)
            return ToolResult.failure(f"Error executing {name}: {exc}")

        logger.info("Tool %s %s: %s", name, "ok" if result.ok else "failed", result.output[:200])
        return result

    def to_langchain_tools(self, ctx: SessionContext) -> list[StructuredTool]:
        """Convert all registered tools to LangChain StructuredTools.

        Binds the SessionContext so the wrappers can be called directly;
        the agent runner only uses them to declare tool schemas to the model.
        """
        lc_tools = []
        for tool in self._tools.values():

            def _make_coroutine(tool_name: str, context: SessionContext):
                async def coroutine(**kwargs: Any) -> str:
                    result = await self.invoke(tool_name, context, kwargs)
                    return result.output
                return coroutine

            lc_tools.append(StructuredTool.from_function(
                coroutine=_make_coroutine(tool.name, ctx),
                name=tool.name,
                description=tool.description,
                args_schema=tool.get_schema(),
            ))
        return lc_tools

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
