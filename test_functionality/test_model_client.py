"""LangChain model client: message flow, tool calls and error classification."""

from __future__ import annotations

import pytest
from langchain_core.language_models.fake_chat_models import GenericFakeChatModel
from langchain_core.messages import AIMessage, ToolMessage

from domain.exceptions import ModelError, ModelQuotaError, ModelRecursionLimitError
from domain.models import ToolCall
from infrastructure.llm.model_client import (
    LangChainChatSession,
    classify_error,
    message_text,
    parse_raw_tool_call,
)


def _session(*messages: AIMessage, tools=("list_files",)) -> LangChainChatSession:
    llm = GenericFakeChatModel(messages=iter(messages))
    return LangChainChatSession(llm, set(tools))


class TestChatSession:
    @pytest.mark.asyncio
    async def test_text_reply(self):
        session = _session(AIMessage(content="hello"))
        reply = await session.send("hi")
        assert reply.text == "hello"
        assert not reply.has_tool_calls

    @pytest.mark.asyncio
    async def test_native_tool_calls_and_results(self):
        session = _session(
            AIMessage(content="", tool_calls=[{"name": "list_files", "args": {"path": "."}, "id": "t1"}]),
            AIMessage(content="Found two files"),
        )
        first = await session.send("look around")
        assert first.tool_calls == (ToolCall("list_files", {"path": "."}, "t1"),)

        second = await session.send_tool_results([(first.tool_calls[0], "a.py\nb.py")])
        assert second.text == "Found two files"
        tool_message = session.messages[2]
        assert isinstance(tool_message, ToolMessage)
        assert tool_message.tool_call_id == "t1"

    @pytest.mark.asyncio
    async def test_raw_json_tool_call_fallback(self):
        session = _session(
            AIMessage(content='```json\n{"name": "list_files", "parameters": {"path": "src"}}\n```'),
            AIMessage(content="src has main.py"),
        )
        first = await session.send("look")
        assert first.tool_calls[0].name == "list_files"
        assert first.tool_calls[0].args == {"path": "src"}

        await session.send_tool_results([(first.tool_calls[0], "main.py")])
        assert "Tool list_files returned" in session.messages[2].content


class TestHelpers:
    def test_message_text_joins_parts(self):
        message = AIMessage(content=[{"type": "text", "text": "a"}, "b", {"type": "image_url"}])
        assert message_text(message) == "ab"

    def test_unknown_raw_tool_is_ignored(self):
        assert parse_raw_tool_call('{"name": "rm_rf", "arguments": {}}', {"list_files"}) is None
        assert parse_raw_tool_call("plain words", {"list_files"}) is None

    @pytest.mark.parametrize("error, expected", [
        (RuntimeError("429 Resource has been exhausted (e.g. check quota)."), ModelQuotaError),
        (RuntimeError("Rate limit reached for model"), ModelQuotaError),
        (RuntimeError("Recursion limit of 25 reached without hitting a stop condition"), ModelRecursionLimitError),
        (RuntimeError("connection refused"), ModelError),
    ])
    def test_classify_error(self, error, expected):
        assert type(classify_error(error)) is expected
