"""
infrastructure.llm.model_client - ModelClientPort over LangChain chat models.

Each start_chat() returns a fresh message list bound to the granted tools,
so analyst and executor conversations never share state. Provider errors
are classified into the domain's quota / recursion-limit / generic model
errors here and nowhere else.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional, Sequence

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, ToolMessage

from domain.exceptions import ModelError, ModelQuotaError, ModelRecursionLimitError
from domain.models import ModelReply, ToolCall

logger = logging.getLogger(__name__)

_QUOTA_MARKERS = ("quota", "rate limit", "rate_limit", "resource_exhausted", "resourceexhausted", "429")


def classify_error(exc: Exception) -> ModelError:
    """Map a provider exception onto the domain error taxonomy."""
    if isinstance(exc, ModelError):
        return exc
    text = f"{type(exc).__name__} {exc}".lower()
    status = getattr(exc, "status_code", None) or getattr(exc, "code", None)
    if status == 429 or any(m in text for m in _QUOTA_MARKERS):
        return ModelQuotaError(str(exc))
    if "recursion limit" in text:
        return ModelRecursionLimitError(str(exc))
    return ModelError(str(exc))


def message_text(message: BaseMessage) -> str:
    """Plain text of a chat message; Gemini may return a list of content parts."""
    content = message.content
    if isinstance(content, str):
        return content
    parts = []
    for part in content:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)


def parse_raw_tool_call(text: str, tool_names: set[str]) -> Optional[ToolCall]:
    """Detect a tool call that the model emitted as JSON text.

    Some Ollama models don't support the function-calling API and instead
    output something like:
        {"name": "list_files", "parameters": {"path": "."}}
    """
    raw = text.strip()
    raw = re.sub(r"^```(?:json)?\s*", "", raw, flags=re.DOTALL)
    raw = re.sub(r"\s*```$", "", raw, flags=re.DOTALL).strip()

    brace_pos = raw.find("{")
    if brace_pos == -1:
        return None
    try:
        parsed = json.loads(raw[brace_pos:])
    except json.JSONDecodeError:
        return None

    if not isinstance(parsed, dict) or parsed.get("name") not in tool_names:
        return None

    # "parameters" (Ollama style) or "arguments" (OpenAI style)
    args = parsed.get("parameters") or parsed.get("arguments") or {}
    if isinstance(args, str):
        try:
            args = json.loads(args)
        except json.JSONDecodeError:
            args = {}
    return ToolCall(name=parsed["name"], args=args if isinstance(args, dict) else {})


class LangChainChatSession:
    """One conversation with a tool-bound chat model."""

    def __init__(self, llm: BaseChatModel, tool_names: set[str]):
        self._llm = llm
        self._tool_names = tool_names
        self._messages: list[BaseMessage] = []
        self._raw_tool_calls = False

    @property
    def messages(self) -> list[BaseMessage]:
        return list(self._messages)

    async def send(self, prompt: str) -> ModelReply:
        self._messages.append(HumanMessage(content=prompt))
        return await self._invoke()

    async def send_tool_results(
        self, results: Sequence[tuple[ToolCall, str]],
    ) -> ModelReply:
        if self._raw_tool_calls:
            # No native tool call to answer; relay as plain text
            lines = [f"Tool {call.name} returned:\n{output}" for call, output in results]
            self._messages.append(HumanMessage(content="\n\n".join(lines)))
        else:
            for call, output in results:
                self._messages.append(ToolMessage(
                    content=output, tool_call_id=call.id, name=call.name,
                ))
        return await self._invoke()

    async def _invoke(self) -> ModelReply:
        try:
            message = await self._llm.ainvoke(self._messages)
        except Exception as exc:
            error = classify_error(exc)
            logger.warning("Model call failed (%s): %s", type(error).__name__, exc)
            raise error from exc

        self._messages.append(message)
        text = message_text(message)
        native_calls = getattr(message, "tool_calls", None) or []
        calls = tuple(
            ToolCall(name=tc["name"], args=dict(tc.get("args") or {}), id=tc.get("id") or "")
            for tc in native_calls
        )

        self._raw_tool_calls = False
        if not calls and text:
            fallback = parse_raw_tool_call(text, self._tool_names)
            if fallback is not None:
                logger.warning(
                    "Raw tool-call fallback triggered for tool '%s' - "
                    "model does not support native function calling",
                    fallback.name,
                )
                self._raw_tool_calls = True
                return ModelReply(text="", tool_calls=(fallback,))

        return ModelReply(text=text, tool_calls=calls)


class LangChainModelClient:
    """Implements ModelClientPort on top of any tool-calling LangChain chat model."""

    def __init__(self, llm: BaseChatModel):
        self._llm = llm

    def start_chat(self, tools: Sequence[Any]) -> LangChainChatSession:
        bound = self._llm.bind_tools(list(tools)) if tools else self._llm
        names = {getattr(t, "name", "") for t in tools}
        return LangChainChatSession(bound, names)
