"""
domain.models - Value objects for the analyst/executor pipeline.

These are plain data containers with no dependencies on infrastructure
(no LangChain, no FastAPI). Everything that crosses a layer boundary
(model replies, agent results, memory records, transport events) is
defined here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class AgentRole(str, Enum):
    """The two cooperating roles of the pipeline."""

    ANALYST = "analyst"
    EXECUTOR = "executor"


class StopBias(str, Enum):
    """Default decision of the continuation heuristic for ambiguous text.

    STOP:     stop unless the text clearly asks to continue.
    CONTINUE: continue unless the text clearly says to stop.
    """

    STOP = "stop"
    CONTINUE = "continue"


class TaskStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    NEEDS_CLARIFICATION = "needs_clarification"
    MAX_ITERATIONS = "max_iterations"
    FAILED = "failed"


class EventKind(str, Enum):
    """Kinds of events pushed toward the UI / caller."""

    RESPONSE = "response"
    INVESTIGATION = "investigation"
    TOOL_EXECUTION = "tool_execution"
    ERROR = "error"
    FILE_TREE = "file_tree"


# ---------------------------------------------------------------------------
# Model client exchange
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ToolCall:
    """A structured request from the model to invoke a named tool."""
    name: str
    args: dict[str, Any] = field(default_factory=dict)
    id: str = ""


@dataclass(frozen=True)
class ModelReply:
    """One model turn: free text plus zero or more tool-call requests."""
    text: str = ""
    tool_calls: tuple[ToolCall, ...] = ()

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)


@dataclass(frozen=True)
class ToolInvocation:
    """A tool call that the agent actually executed, with its string result."""
    name: str
    args: dict[str, Any]
    result: str


# ---------------------------------------------------------------------------
# Agent results
# ---------------------------------------------------------------------------

QUOTA_MESSAGE = "Quota limit reached, waiting before retry."
EMPTY_RESPONSE_PLACEHOLDER = "Task acknowledged."


@dataclass(frozen=True)
class AgentResult:
    """Outcome of one agent call.

    tools_used lists only tools from the agent's granted subset, in call order.
    invocations carries the same calls with arguments and results so the
    transport can relay them as tool_execution events.
    """
    response: str
    tools_used: tuple[str, ...] = ()
    invocations: tuple[ToolInvocation, ...] = ()
    quota_exceeded: bool = False
    failed: bool = False

    @classmethod
    def quota(cls) -> AgentResult:
        return cls(response=QUOTA_MESSAGE, quota_exceeded=True)

    @classmethod
    def error(cls, message: str) -> AgentResult:
        return cls(response=f"Error: {message}", failed=True)

    @property
    def is_sentinel(self) -> bool:
        """True for quota/error placeholders that carry no model output."""
        return self.quota_exceeded or self.failed


# ---------------------------------------------------------------------------
# Bounded memory records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MemoryEntry:
    """One recorded agent action. Never mutated once created."""
    iteration: int
    agent: str
    action: str
    result: str
    timestamp: datetime = field(default_factory=datetime.now)

    def render(self, result_chars: int) -> str:
        return f"{self.agent}: {self.action} → {self.result[:result_chars]}"


@dataclass(frozen=True)
class MemorySummary:
    """Condensed digest of one completed block of iterations."""
    start: int
    end: int
    text: str

    @property
    def iteration_range(self) -> tuple[int, int]:
        return (self.start, self.end)

    def __str__(self) -> str:
        return f"[Iter {self.start}-{self.end}]: {self.text}"


# ---------------------------------------------------------------------------
# Iteration context
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class HistoryEntry:
    agent: AgentRole
    message: str
    tools_used: tuple[str, ...] = ()
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class IterationContext:
    """State of one task, owned by a single controller run.

    count only grows: it is incremented once per completed
    (analyst, executor) pair.
    """
    original_request: str
    count: int = 0
    current_input: str = ""
    history: list[HistoryEntry] = field(default_factory=list)
    status: TaskStatus = TaskStatus.IN_PROGRESS

    def record(self, role: AgentRole, result: AgentResult) -> HistoryEntry:
        entry = HistoryEntry(
            agent=role,
            message=result.response,
            tools_used=result.tools_used,
        )
        self.history.append(entry)
        return entry

    def last(self, role: AgentRole) -> Optional[HistoryEntry]:
        for entry in reversed(self.history):
            if entry.agent == role:
                return entry
        return None

    def tool_usage(self, role: AgentRole) -> int:
        return sum(len(h.tools_used) for h in self.history if h.agent == role)


# ---------------------------------------------------------------------------
# Transport events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SessionEvent:
    """An event surfaced to the caller (console, websocket, HTTP)."""
    kind: EventKind
    content: str = ""
    tool: Optional[str] = None
    result: Optional[str] = None
    payload: Any = None

    def to_message(self) -> dict[str, Any]:
        """Wire shape used by the websocket UI."""
        if self.kind == EventKind.TOOL_EXECUTION:
            return {"type": self.kind.value, "tool": self.tool, "result": self.result}
        if self.kind == EventKind.ERROR:
            return {"type": self.kind.value, "message": self.content}
        if self.kind == EventKind.FILE_TREE:
            return {"type": self.kind.value, "tree": self.payload}
        return {"type": self.kind.value, "content": self.content}
