"""Shared fixtures: src/ on sys.path, a scripted model client, a temp workspace."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable, Sequence, Union

import pytest

_SRC = Path(__file__).resolve().parent.parent / "src"
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

from application.context import SessionContext  # noqa: E402
from domain.models import ModelReply, SessionEvent, ToolCall  # noqa: E402
from domain.ports import ChatSessionPort  # noqa: E402
from infrastructure.config import Settings  # noqa: E402

# A scripted step is a reply, an exception to raise, or a callable
# receiving the prompt text and returning either.
Step = Union[ModelReply, Exception, Callable[[str], Any]]


class FakeChat:
    """Chat session that replays scripted steps in order."""

    def __init__(self, client: FakeModelClient, tools: Sequence[Any]):
        self._client = client
        self.tool_names = [getattr(t, "name", "") for t in tools]

    async def send(self, prompt: str) -> ModelReply:
        self._client.prompts.append(prompt)
        return self._next(prompt)

    async def send_tool_results(self, results: Sequence[tuple[ToolCall, str]]) -> ModelReply:
        self._client.tool_results.append(list(results))
        return self._next("")

    def _next(self, prompt: str) -> ModelReply:
        if not self._client.steps:
            return ModelReply(text=self._client.default_text)
        step = self._client.steps.pop(0)
        if callable(step) and not isinstance(step, ModelReply):
            step = step(prompt)
        if isinstance(step, Exception):
            raise step
        return step


class FakeModelClient:
    """ModelClientPort replacement shared by every runner of a test."""

    def __init__(self, steps: Sequence[Step] = (), default_text: str = "task completed"):
        self.steps: list[Step] = list(steps)
        self.default_text = default_text
        self.prompts: list[str] = []
        self.tool_results: list[list[tuple[ToolCall, str]]] = []
        self.chats: list[FakeChat] = []

    def start_chat(self, tools: Sequence[Any]) -> ChatSessionPort:
        chat = FakeChat(self, tools)
        self.chats.append(chat)
        return chat


def reply(text: str = "", *calls: ToolCall) -> ModelReply:
    return ModelReply(text=text, tool_calls=tuple(calls))


def call(name: str, **args: Any) -> ToolCall:
    return ToolCall(name=name, args=args, id=f"call-{name}")


class EventRecorder:
    """EventSink collecting every event."""

    def __init__(self):
        self.events: list[SessionEvent] = []

    async def __call__(self, event: SessionEvent) -> None:
        self.events.append(event)

    def kinds(self) -> list[str]:
        return [e.kind.value for e in self.events]


@pytest.fixture
def ctx() -> SessionContext:
    return SessionContext()


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    root = tmp_path / "workspace"
    root.mkdir()
    return root


@pytest.fixture
def settings(workspace: Path) -> Settings:
    return Settings(
        workspace_root=workspace,
        llm_provider="ollama",
        llm_model="test-model",
        phase_delay=0,
        iteration_delay=0,
        quota_backoff=0,
        command_timeout=10,
    )


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()
