"""
agent.enforcement - Detect prose-instead-of-tools replies and force a retry.

should_have_used_tools() is a keyword classifier, not a guarantee: it
catches the common failure of a model describing an action instead of
calling the tool for it.
"""

from __future__ import annotations

import logging
from typing import Optional

from agent.memory import BoundedMemory
from agent.runner import AgentRunner
from application.context import SessionContext
from domain.models import AgentResult, AgentRole

logger = logging.getLogger(__name__)

EXECUTOR_ACTION_VERBS = (
    "create", "write", "add", "modify", "edit", "update",
    "run", "execute", "install", "build", "start",
    "check", "read", "view", "list", "search",
)
EXECUTOR_TOOL_MENTIONS = ("tool", "file", "command")
ANALYST_INVESTIGATION_VERBS = (
    "check", "examine", "look at", "read", "view", "list", "search", "find",
)
EXECUTION_EVIDENCE = ("tool call", "executed")


def should_have_used_tools(response_text: str, role: AgentRole) -> bool:
    """True when the text reads like an action the agent should have taken with a tool."""
    text = response_text.lower()
    if any(e in text for e in EXECUTION_EVIDENCE):
        return False

    if role == AgentRole.EXECUTOR:
        return (
            any(v in text for v in EXECUTOR_ACTION_VERBS)
            and any(m in text for m in EXECUTOR_TOOL_MENTIONS)
        )
    if role == AgentRole.ANALYST:
        return any(v in text for v in ANALYST_INVESTIGATION_VERBS)
    return False


def build_force_prompt(guidance: str, role: AgentRole) -> str:
    """Imperative retry instruction embedding the original guidance."""
    if role == AgentRole.EXECUTOR:
        return f"""URGENT: You must use tools to execute this guidance. Do not just describe - actually use create_file_or_folder, edit_file, read_file, or execute_in_terminal tools.

GUIDANCE TO EXECUTE: {guidance}

Step by step:
1. Use read_file tool to check current state
2. Use appropriate tools to make the changes
3. Verify with tools that changes worked

YOU MUST ACTUALLY CALL TOOLS - NO DESCRIPTIONS ALLOWED!"""

    return f"""URGENT: You must use investigation tools. Do not just think - actually use list_files, read_file, or search_in_files tools.

GUIDANCE TO INVESTIGATE: {guidance}

Step by step:
1. Use list_files to see project structure
2. Use read_file to examine relevant files
3. Use search_in_files if needed

YOU MUST ACTUALLY CALL TOOLS - NO THINKING WITHOUT TOOLS!"""


class ToolCallEnforcer:
    """Re-runs an agent with a stricter prompt when it skipped its tools."""

    def needs_retry(self, result: AgentResult, role: AgentRole) -> bool:
        if result.tools_used or result.is_sentinel:
            return False
        return should_have_used_tools(result.response, role)

    async def force_tool_usage(
        self,
        runner: AgentRunner,
        thread_id: str,
        guidance: str,
        role: AgentRole,
        iteration: int,
        ctx: SessionContext,
        memory: Optional[BoundedMemory] = None,
    ) -> AgentResult:
        """Re-invoke the agent with the URGENT prompt; the caller substitutes the result."""
        logger.info("Forcing %s to use tools (thread=%s)", runner.name, thread_id)
        return await runner.run(build_force_prompt(guidance, role), iteration, ctx, memory)
