"""
agent.session - One conversational session: commands, task state, memory.

Both adapters (CLI loop, websocket connection) hold one AgentSession each
and feed every user line through handle().
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from agent.controller import IterationController, TaskOutcome
from agent.memory import BoundedMemory
from application.context import SessionContext
from domain.models import AgentRole, IterationContext, TaskStatus
from domain.ports import EventSink

logger = logging.getLogger(__name__)

EXIT_COMMANDS = {"exit", "quit"}


@dataclass(frozen=True)
class SessionReply:
    """What handle() produced: command text, a task outcome, or an exit."""
    text: str = ""
    outcome: Optional[TaskOutcome] = None
    should_exit: bool = False


class AgentSession:
    """Routes user input to commands or to the iteration controller."""

    def __init__(
        self,
        controller: IterationController,
        memory: Optional[BoundedMemory] = None,
        ctx: Optional[SessionContext] = None,
    ):
        self._controller = controller
        self.memory = memory
        self.ctx = ctx or SessionContext()
        self.context: Optional[IterationContext] = None

    async def handle(self, text: str, sink: Optional[EventSink] = None) -> SessionReply:
        command = text.strip().lower()
        if command in EXIT_COMMANDS:
            return SessionReply(text="Goodbye!", should_exit=True)
        if command == "status":
            return SessionReply(text=self.status())
        if command == "memory":
            return SessionReply(text=self.memory_dump())
        if not text.strip():
            return SessionReply()

        outcome = await self.run_task(text.strip(), sink)
        return SessionReply(text=outcome.message, outcome=outcome)

    async def run_task(self, text: str, sink: Optional[EventSink] = None) -> TaskOutcome:
        """Start a new task, or resume the current one after a clarification."""
        self.ctx.new_request()
        if self.context is None or self.context.status != TaskStatus.NEEDS_CLARIFICATION:
            self.context = IterationContext(original_request=text)
            logger.info("New task (session=%s): %s", self.ctx.session_id, text[:80])
        else:
            logger.info("Resuming task with clarification (session=%s)", self.ctx.session_id)
        return await self._controller.run(text, self.ctx, self.context, self.memory, sink)

    def status(self) -> str:
        context = self.context
        count = context.count if context else 0
        lines = [f"Status: {count} iterations completed"]
        if context is not None:
            lines.append(f"Task status: {context.status.value}")
            lines.append(f"Analyst tools used: {context.tool_usage(AgentRole.ANALYST)}")
            lines.append(f"Executor tools used: {context.tool_usage(AgentRole.EXECUTOR)}")
        lines.append(f"Memory entries: {self.memory.entry_count if self.memory else 0}")
        return "\n".join(lines)

    def memory_dump(self) -> str:
        if self.memory is None:
            return "No memory entries"
        return self.memory.get_recent_context(999) or "No memory entries"
