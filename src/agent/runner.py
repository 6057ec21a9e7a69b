"""
agent.runner - Agent execution engine for one role.

An AgentRunner binds a system prompt, a granted tool subset and the model
client into a callable unit. It holds no per-session state: memory and
session context are passed into every run() call, so one runner serves
any number of concurrent sessions.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Optional

from application.context import SessionContext
from agent.memory import BoundedMemory
from agent.tools.registry import ToolRegistry
from domain.exceptions import ModelQuotaError, ModelRecursionLimitError
from domain.models import (
    EMPTY_RESPONSE_PLACEHOLDER,
    AgentResult,
    AgentRole,
    ModelReply,
    ToolCall,
    ToolInvocation,
)
from domain.ports import ChatSessionPort, ModelClientPort

logger = logging.getLogger(__name__)


class AgentRunner:
    """Runs one prompt through the model and the granted tools.

    run() never raises for tool or model failures; the only exception that
    escapes is ModelRecursionLimitError, which the controller reports as a
    request to break the task down.
    """

    def __init__(
        self,
        name: str,
        role: AgentRole,
        system_prompt: str,
        tools: ToolRegistry,
        model_client: ModelClientPort,
        quota_backoff: float = 10.0,
        recursion_limit: int = 15,
    ):
        self.name = name
        self.role = role
        self.system_prompt = system_prompt
        self.tools = tools
        self._model_client = model_client
        self._quota_backoff = quota_backoff
        self._recursion_limit = recursion_limit

    async def run(
        self,
        prompt: str,
        iteration: int,
        ctx: SessionContext,
        memory: Optional[BoundedMemory] = None,
    ) -> AgentResult:
        """Process a task prompt and return the agent's result.

        Args:
            prompt:    The contextual task prompt built by the controller.
            iteration: Current iteration number (0 for the observation pass).
            ctx:       Session context.
            memory:    Session memory, or None when memory is disabled.
        """
        logger.info(
            "%s processing (session=%s, iteration=%d)",
            self.name, ctx.session_id, iteration,
        )
        memory_context = memory.get_recent_context(iteration) if memory else ""
        full_prompt = f"{self.system_prompt}{memory_context}\n\nTASK: {prompt}"

        try:
            chat = self._model_client.start_chat(self.tools.to_langchain_tools(ctx))
            reply = await chat.send(full_prompt)

            if not reply.has_tool_calls:
                response = reply.text.strip()
                if not response:
                    logger.info("%s returned no text and no tool calls", self.name)
                    response = EMPTY_RESPONSE_PLACEHOLDER
                if memory:
                    memory.add_entry(iteration, self.name, "thinking", response)
                logger.info("%s response: %s", self.name, response[:300])
                return AgentResult(response=response)

            return await self._run_tool_rounds(chat, reply, iteration, ctx, memory)

        except ModelRecursionLimitError:
            raise
        except ModelQuotaError:
            logger.warning(
                "Quota limit reached for %s. Waiting %.0f seconds...",
                self.name, self._quota_backoff,
            )
            await asyncio.sleep(self._quota_backoff)
            return AgentResult.quota()
        except Exception as exc:
            logger.exception("Error in %s", self.name)
            return AgentResult.error(str(exc))

    async def _run_tool_rounds(
        self,
        chat: ChatSessionPort,
        reply: ModelReply,
        iteration: int,
        ctx: SessionContext,
        memory: Optional[BoundedMemory],
    ) -> AgentResult:
        """Execute tool calls and feed results back until the model stops asking."""
        response = ""
        invocations: list[ToolInvocation] = []
        rounds = 0

        while reply.has_tool_calls:
            rounds += 1
            if rounds > self._recursion_limit:
                raise ModelRecursionLimitError(
                    f"Recursion limit of {self._recursion_limit} reached "
                    f"without hitting a stop condition ({self.name})"
                )

            results: list[tuple[ToolCall, str]] = []
            for call in reply.tool_calls:
                output = await self._execute(call, ctx)
                results.append((call, output))
                if call.name in self.tools:
                    invocations.append(ToolInvocation(call.name, dict(call.args), output))
                    if memory:
                        memory.add_entry(
                            iteration, self.name,
                            f"{call.name}({json.dumps(call.args, default=str)})",
                            output,
                        )

            try:
                reply = await chat.send_tool_results(results)
            except (ModelQuotaError, ModelRecursionLimitError):
                raise
            except Exception:
                logger.warning("Follow-up after tool results failed for %s", self.name, exc_info=True)
                last_call, last_output = results[-1]
                response = (
                    f"Executed {last_call.name} successfully. "
                    f"Result: {last_output[:100]}..."
                )
                break
            response += reply.text or ""

        response = response.strip() or EMPTY_RESPONSE_PLACEHOLDER
        logger.info(
            "%s used %d tool call(s): %s",
            self.name, len(invocations), response[:300],
        )
        return AgentResult(
            response=response,
            tools_used=tuple(i.name for i in invocations),
            invocations=tuple(invocations),
        )

    async def _execute(self, call: ToolCall, ctx: SessionContext) -> str:
        """Run a call through the granted subset only."""
        if call.name not in self.tools:
            logger.warning("%s requested tool %s outside its grant", self.name, call.name)
            return f"Tool {call.name} is not available to {self.name}."
        result = await self.tools.invoke(call.name, ctx, call.args)
        return result.output
