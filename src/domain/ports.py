"""
domain.ports - Abstract interfaces (Protocols) for all system boundaries.

These define WHAT the pipeline needs without specifying HOW. The
infrastructure layer provides the LangChain-backed model client; tests
provide scripted fakes.

Using typing.Protocol (structural typing) instead of ABC, so any class that
implements the methods satisfies the port without explicit inheritance.
"""

from __future__ import annotations

from typing import Any, Protocol, Sequence, runtime_checkable

from domain.models import ModelReply, SessionEvent, ToolCall


# ---------------------------------------------------------------------------
# Model client ports
# ---------------------------------------------------------------------------

@runtime_checkable
class ChatSessionPort(Protocol):
    """One conversation with the model, bound to a fixed set of tools."""

    async def send(self, prompt: str) -> ModelReply: ...

    async def send_tool_results(
        self, results: Sequence[tuple[ToolCall, str]],
    ) -> ModelReply: ...


@runtime_checkable
class ModelClientPort(Protocol):
    """Opens chat sessions with the granted tools declared as invocable.

    Implementations must raise ModelQuotaError for rate-limit/quota failures
    and ModelRecursionLimitError for step-limit failures so the agent and
    controller layers can special-case them.
    """

    def start_chat(self, tools: Sequence[Any]) -> ChatSessionPort: ...


# ---------------------------------------------------------------------------
# Policy ports
# ---------------------------------------------------------------------------

@runtime_checkable
class ContinuationPolicy(Protocol):
    """Decide whether the controller runs another iteration."""

    def should_continue(self, analyst_text: str, executor_text: str) -> bool: ...


@runtime_checkable
class EventSink(Protocol):
    """Receives events produced while a task runs."""

    async def __call__(self, event: SessionEvent) -> None: ...
