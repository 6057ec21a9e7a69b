"""
agent.controller - The analyst/executor iteration loop.

One IterationController serves every session. All per-task state lives in
the IterationContext and BoundedMemory passed to run(), and every
user-visible step is pushed through an EventSink.

States per task:
    AnalystTurn -> (ForceTools?) -> ExecutorTurn -> (ForceTools?)
    -> ContinuationCheck -> {AnalystTurn | AwaitingUserInput}
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from agent.continuation import should_ask_user
from agent.enforcement import ToolCallEnforcer
from agent.memory import BoundedMemory
from agent.prompt import (
    build_analyst_prompt,
    build_executor_prompt,
    build_observation_prompt,
)
from agent.runner import AgentRunner
from application.context import SessionContext
from domain.exceptions import ModelRecursionLimitError
from domain.models import (
    AgentResult,
    AgentRole,
    EventKind,
    IterationContext,
    SessionEvent,
    TaskStatus,
)
from domain.ports import ContinuationPolicy, EventSink

logger = logging.getLogger(__name__)

RECURSION_LIMIT_MESSAGE = (
    "Task too complex - an agent kept calling tools without finishing. "
    "Please break down your request into smaller steps."
)
MAX_ITERATIONS_MESSAGE = (
    "Reached maximum iterations ({n}). Please provide more specific guidance "
    "or break the task into smaller parts."
)


@dataclass(frozen=True)
class ControllerConfig:
    """Knobs that select between the single-agent, two-agent and memory variants.

    agent_roles:     2 runs analyst then executor; 1 runs the executor alone.
    use_memory:      False ignores the BoundedMemory passed to run().
    observe_first:   run an investigation-only analyst pass before iteration 1.
    enforce_tools:   retry agents that described actions instead of calling tools.
    phase_delay:     pause between the analyst and executor turns (seconds).
    iteration_delay: pause before the next iteration (seconds).
    """
    max_iterations: int = 6
    agent_roles: int = 2
    use_memory: bool = True
    observe_first: bool = True
    enforce_tools: bool = True
    phase_delay: float = 2.0
    iteration_delay: float = 3.0


@dataclass(frozen=True)
class TaskOutcome:
    status: TaskStatus
    iterations: int
    message: str = ""


async def _discard(event: SessionEvent) -> None:
    return None


class IterationController:
    """Drives analyst/executor pairs until the policy stops or the cap is hit."""

    def __init__(
        self,
        analyst: AgentRunner,
        executor: AgentRunner,
        enforcer: ToolCallEnforcer,
        policy: ContinuationPolicy,
        config: ControllerConfig | None = None,
    ):
        self._analyst = analyst
        self._executor = executor
        self._enforcer = enforcer
        self._policy = policy
        self.config = config or ControllerConfig()

    async def run(
        self,
        request: str,
        ctx: SessionContext,
        context: IterationContext,
        memory: Optional[BoundedMemory] = None,
        sink: Optional[EventSink] = None,
    ) -> TaskOutcome:
        """Run (or resume) the task held by ``context``. Never raises.

        A fresh context (count 0, no history) starts a new task: memory is
        cleared and the observation pass runs. A context left in
        NEEDS_CLARIFICATION resumes with ``request`` as the current input.
        """
        sink = sink or _discard
        memory = memory if self.config.use_memory else None
        context.current_input = request
        context.status = TaskStatus.IN_PROGRESS
        phase = "setup"
        iteration = context.count + 1

        try:
            if context.count == 0 and not context.history:
                if memory is not None:
                    memory.clear()
                    logger.info("Memory cleared for new task (session=%s)", ctx.session_id)
                if self.config.observe_first and self.config.agent_roles > 1:
                    phase = "observation"
                    await self._observe(context, ctx, memory, sink)

            while context.count < self.config.max_iterations:
                iteration = context.count + 1
                logger.info("Iteration %d (session=%s)", iteration, ctx.session_id)

                guidance = ""
                analyst_text = ""
                if self.config.agent_roles > 1:
                    phase = "analyst"
                    analyst_result = await self._turn(
                        AgentRole.ANALYST, build_analyst_prompt(context, iteration),
                        context, iteration, ctx, memory, sink,
                    )
                    analyst_text = guidance = analyst_result.response

                    if should_ask_user(analyst_text):
                        logger.info("Analyst asked for clarification at iteration %d", iteration)
                        context.status = TaskStatus.NEEDS_CLARIFICATION
                        await sink(SessionEvent(
                            EventKind.RESPONSE,
                            "The analyst needs clarification. Reply to continue this task.",
                        ))
                        return TaskOutcome(context.status, context.count, analyst_text)

                    await asyncio.sleep(self.config.phase_delay)

                phase = "executor"
                executor_result = await self._turn(
                    AgentRole.EXECUTOR, build_executor_prompt(context, iteration, guidance),
                    context, iteration, ctx, memory, sink,
                )
                context.count = iteration

                phase = "continuation"
                if not self._policy.should_continue(analyst_text, executor_result.response):
                    context.status = TaskStatus.COMPLETED
                    logger.info("Task completed after %d iteration(s)", context.count)
                    await sink(SessionEvent(
                        EventKind.RESPONSE, f"Task completed after {context.count} iteration(s).",
                    ))
                    return TaskOutcome(context.status, context.count, executor_result.response)

                if context.count < self.config.max_iterations:
                    await sink(SessionEvent(EventKind.RESPONSE, "Continuing to next iteration..."))
                    await asyncio.sleep(self.config.iteration_delay)

            context.status = TaskStatus.MAX_ITERATIONS
            message = MAX_ITERATIONS_MESSAGE.format(n=self.config.max_iterations)
            logger.warning("Max iterations reached (session=%s)", ctx.session_id)
            await sink(SessionEvent(EventKind.RESPONSE, message))
            return TaskOutcome(context.status, context.count, message)

        except ModelRecursionLimitError:
            logger.warning(
                "Recursion limit hit in %s phase, iteration %d", phase, iteration,
            )
            context.status = TaskStatus.FAILED
            await self._report_failure(sink, RECURSION_LIMIT_MESSAGE)
            return TaskOutcome(context.status, context.count, RECURSION_LIMIT_MESSAGE)
        except Exception as exc:
            logger.exception(
                "Error in %s phase, iteration %d (session=%s)",
                phase, iteration, ctx.session_id,
            )
            context.status = TaskStatus.FAILED
            message = f"Error in iteration {iteration}: {exc}"
            await self._report_failure(sink, message)
            return TaskOutcome(context.status, context.count, message)

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    async def _observe(
        self,
        context: IterationContext,
        ctx: SessionContext,
        memory: Optional[BoundedMemory],
        sink: EventSink,
    ) -> None:
        """Investigation-only analyst pass, folded into memory as iteration 0."""
        await sink(SessionEvent(EventKind.RESPONSE, "Observing workspace before starting..."))
        result = await self._analyst.run(
            build_observation_prompt(context.original_request), 0, ctx, memory,
        )
        await self._relay(result, AgentRole.ANALYST, sink)
        if memory is not None:
            memory.add_entry(0, self._analyst.name, "initial_observation", result.response)

    async def _turn(
        self,
        role: AgentRole,
        prompt: str,
        context: IterationContext,
        iteration: int,
        ctx: SessionContext,
        memory: Optional[BoundedMemory],
        sink: EventSink,
    ) -> AgentResult:
        runner = self._analyst if role == AgentRole.ANALYST else self._executor
        result = await runner.run(prompt, iteration, ctx, memory)

        if self.config.enforce_tools and self._enforcer.needs_retry(result, role):
            forced = await self._enforcer.force_tool_usage(
                runner, ctx.thread_id(role.value), prompt, role, iteration, ctx, memory,
            )
            if not forced.is_sentinel:
                result = forced

        context.record(role, result)
        await self._relay(result, role, sink)
        return result

    async def _relay(self, result: AgentResult, role: AgentRole, sink: EventSink) -> None:
        """Push one agent result out as events."""
        for invocation in result.invocations:
            await sink(SessionEvent(
                EventKind.TOOL_EXECUTION, tool=invocation.name, result=invocation.result,
            ))
        if result.failed:
            await self._emit_error(sink, result.response)
            return
        kind = EventKind.INVESTIGATION if role == AgentRole.ANALYST else EventKind.RESPONSE
        await sink(SessionEvent(kind, result.response))

    @staticmethod
    async def _emit_error(sink: EventSink, message: str) -> None:
        await sink(SessionEvent(EventKind.ERROR, message))

    async def _report_failure(self, sink: EventSink, message: str) -> None:
        """Emit the final error event; a broken sink is logged, not raised."""
        try:
            await self._emit_error(sink, message)
        except Exception:
            logger.warning("Could not deliver error event: %s", message, exc_info=True)
