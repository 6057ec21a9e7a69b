"""Iteration controller: the loop, its exits and its events."""

from __future__ import annotations

import pytest

from agent.continuation import KeywordContinuationPolicy
from agent.controller import (
    MAX_ITERATIONS_MESSAGE,
    RECURSION_LIMIT_MESSAGE,
    ControllerConfig,
    IterationController,
)
from agent.enforcement import ToolCallEnforcer
from agent.memory import BoundedMemory
from agent.runner import AgentRunner
from agent.tools.create_file import CreateFileOrFolderTool
from agent.tools.list_files import ListFilesTool
from agent.tools.registry import ToolRegistry
from domain.exceptions import ModelQuotaError, ModelRecursionLimitError
from domain.models import AgentRole, IterationContext, StopBias, TaskStatus

from conftest import FakeModelClient, call, reply

FAST = dict(phase_delay=0, iteration_delay=0)


class AlwaysContinue:
    def should_continue(self, analyst_text, executor_text):
        return True


def _controller(client, workspace, policy=None, **config) -> IterationController:
    registry = ToolRegistry([CreateFileOrFolderTool(workspace), ListFilesTool(workspace)]).seal()
    analyst_tools = registry.subset(["list_files"])
    analyst = AgentRunner("Analyst", AgentRole.ANALYST, "ANALYST", analyst_tools, client, quota_backoff=0)
    executor = AgentRunner("Executor", AgentRole.EXECUTOR, "EXECUTOR", registry, client, quota_backoff=0)
    settings = {"observe_first": False, **FAST, **config}
    return IterationController(
        analyst, executor, ToolCallEnforcer(),
        policy or KeywordContinuationPolicy(), ControllerConfig(**settings),
    )


class TestLoop:
    @pytest.mark.asyncio
    async def test_never_exceeds_max_iterations(self, ctx, workspace, recorder):
        client = FakeModelClient(default_text="still working")
        controller = _controller(client, workspace, AlwaysContinue(), max_iterations=3)
        context = IterationContext("endless")

        outcome = await controller.run("endless", ctx, context, BoundedMemory(), recorder)

        assert outcome.status == TaskStatus.MAX_ITERATIONS
        assert outcome.iterations == 3
        assert outcome.message == MAX_ITERATIONS_MESSAGE.format(n=3)
        assert len(client.prompts) == 6

    @pytest.mark.asyncio
    async def test_stops_when_policy_says_so(self, ctx, workspace, recorder):
        client = FakeModelClient([reply("GUIDANCE: nothing left"), reply("task completed")])
        controller = _controller(client, workspace)

        outcome = await controller.run("x", ctx, IterationContext("x"), BoundedMemory(), recorder)

        assert outcome.status == TaskStatus.COMPLETED
        assert outcome.iterations == 1

    @pytest.mark.asyncio
    async def test_notes_file_scenario_continues_to_second_iteration(self, ctx, workspace, recorder):
        request = "create a file named notes.txt with content 'hello'"
        client = FakeModelClient([
            # iteration 1: analyst investigates, executor creates the file
            reply("", call("list_files")),
            reply("GUIDANCE: 1. Create notes.txt containing hello"),
            reply("", call("create_file_or_folder", path="notes.txt", type="file", content="hello")),
            reply("ACTIONS TAKEN: created notes.txt with the create tool"),
            # iteration 2
            reply("ANALYSIS: notes.txt exists. task completed"),
            reply("STATUS: nothing else to change"),
        ])
        controller = _controller(client, workspace)
        context = IterationContext(request)

        outcome = await controller.run(request, ctx, context, BoundedMemory(), recorder)

        assert (workspace / "notes.txt").read_text() == "hello"
        assert outcome.iterations == 2
        assert outcome.status == TaskStatus.COMPLETED
        assert context.tool_usage(AgentRole.EXECUTOR) == 1
        assert "ITERATION: 2" in client.prompts[2]
        assert "LAST EXECUTOR: ACTIONS TAKEN" in client.prompts[2]
        assert "tool_execution" in recorder.kinds()

    @pytest.mark.asyncio
    async def test_history_and_prompts(self, ctx, workspace):
        client = FakeModelClient([reply("GUIDANCE: write it"), reply("task completed")])
        context = IterationContext("add docs")
        await _controller(client, workspace).run("add docs", ctx, context, BoundedMemory())

        assert [h.agent for h in context.history] == [AgentRole.ANALYST, AgentRole.EXECUTOR]
        assert "ITERATION: 1\nREQUEST: add docs\nCURRENT INPUT: add docs" in client.prompts[0]
        assert "ANALYST GUIDANCE:\nGUIDANCE: write it" in client.prompts[1]


class TestObservation:
    @pytest.mark.asyncio
    async def test_observation_runs_once_and_lands_in_memory(self, ctx, workspace, recorder):
        client = FakeModelClient([
            reply("Workspace is empty"),
            reply("GUIDANCE: create it"),
            reply("task completed"),
        ])
        memory = BoundedMemory()
        memory.add_entry(4, "Executor", "stale", "from a previous task")
        controller = _controller(client, workspace, observe_first=True)

        await controller.run("x", ctx, IterationContext("x"), memory, recorder)

        assert "TASK TO PREPARE FOR: x" in client.prompts[0]
        assert any(e.action == "initial_observation" for e in memory.entries)
        assert not any(e.action == "stale" for e in memory.entries)
        assert recorder.kinds()[:2] == ["response", "investigation"]


class TestEnforcement:
    @pytest.mark.asyncio
    async def test_prose_executor_is_forced(self, ctx, workspace):
        client = FakeModelClient([
            reply("GUIDANCE: make notes.txt"),
            reply("I will create the file now"),
            reply("", call("create_file_or_folder", path="notes.txt", type="file")),
            reply("created notes.txt; task completed"),
        ])
        context = IterationContext("notes")
        await _controller(client, workspace).run("notes", ctx, context, BoundedMemory())

        assert (workspace / "notes.txt").exists()
        assert client.prompts[2].split("TASK: ", 1)[1].startswith("URGENT")
        assert context.last(AgentRole.EXECUTOR).tools_used == ("create_file_or_folder",)

    @pytest.mark.asyncio
    async def test_enforcement_can_be_disabled(self, ctx, workspace):
        client = FakeModelClient([reply("GUIDANCE: go"), reply("I will create the file, task completed")])
        await _controller(client, workspace, enforce_tools=False).run(
            "x", ctx, IterationContext("x"), BoundedMemory(),
        )
        assert len(client.prompts) == 2


class TestFailures:
    @pytest.mark.asyncio
    async def test_quota_does_not_crash_the_loop(self, ctx, workspace, recorder):
        client = FakeModelClient([ModelQuotaError("429 quota"), reply("nothing to report")])
        context = IterationContext("x")

        outcome = await _controller(client, workspace).run("x", ctx, context, BoundedMemory(), recorder)

        # executor still ran after the analyst's quota sentinel
        assert len(client.prompts) == 2
        assert outcome.iterations == 1
        assert outcome.status == TaskStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_recursion_limit_reports_decomposition_hint(self, ctx, workspace, recorder):
        client = FakeModelClient([ModelRecursionLimitError("Recursion limit of 15 reached")])
        outcome = await _controller(client, workspace).run(
            "x", ctx, IterationContext("x"), BoundedMemory(), recorder,
        )
        assert outcome.status == TaskStatus.FAILED
        assert outcome.message == RECURSION_LIMIT_MESSAGE
        assert recorder.events[-1].to_message() == {"type": "error", "message": RECURSION_LIMIT_MESSAGE}

    @pytest.mark.asyncio
    async def test_unexpected_error_is_contained(self, ctx, workspace, recorder):
        controller = _controller(FakeModelClient(), workspace)
        controller._policy = None  # policy call will fail

        outcome = await controller.run("x", ctx, IterationContext("x"), BoundedMemory(), recorder)

        assert outcome.status == TaskStatus.FAILED
        assert outcome.message.startswith("Error in iteration 1")
        assert recorder.kinds()[-1] == "error"

    @pytest.mark.asyncio
    async def test_broken_sink_fails_the_task_without_raising(self, ctx, workspace):
        async def closed_socket(event):
            raise ConnectionError("socket gone")

        controller = _controller(FakeModelClient(), workspace)
        outcome = await controller.run("x", ctx, IterationContext("x"), BoundedMemory(), closed_socket)

        assert outcome.status == TaskStatus.FAILED
        assert "socket gone" in outcome.message


class TestVariants:
    @pytest.mark.asyncio
    async def test_single_role_runs_executor_only(self, ctx, workspace):
        client = FakeModelClient([reply("task completed")])
        context = IterationContext("x")
        await _controller(client, workspace, agent_roles=1, observe_first=True).run(
            "x", ctx, context, BoundedMemory(),
        )
        assert len(client.prompts) == 1
        assert client.prompts[0].startswith("EXECUTOR")
        assert [h.agent for h in context.history] == [AgentRole.EXECUTOR]

    @pytest.mark.asyncio
    async def test_memory_disabled(self, ctx, workspace):
        memory = BoundedMemory()
        client = FakeModelClient([reply("GUIDANCE: go"), reply("task completed")])
        await _controller(client, workspace, use_memory=False).run("x", ctx, IterationContext("x"), memory)
        assert memory.entry_count == 0

    @pytest.mark.asyncio
    async def test_continue_bias_keeps_going(self, ctx, workspace):
        client = FakeModelClient(default_text="looks fine")
        outcome = await _controller(
            client, workspace, KeywordContinuationPolicy(StopBias.CONTINUE), max_iterations=2,
        ).run("x", ctx, IterationContext("x"), BoundedMemory())
        assert outcome.status == TaskStatus.MAX_ITERATIONS


class TestClarification:
    @pytest.mark.asyncio
    async def test_question_skips_executor_and_resumes(self, ctx, workspace, recorder):
        client = FakeModelClient([
            reply("QUESTIONS FOR USER: which language?"),
            reply("GUIDANCE: create main.py"),
            reply("task completed"),
        ])
        controller = _controller(client, workspace)
        context = IterationContext("write a hello world")

        first = await controller.run("write a hello world", ctx, context, BoundedMemory(), recorder)
        assert first.status == TaskStatus.NEEDS_CLARIFICATION
        assert first.iterations == 0
        assert len(client.prompts) == 1

        second = await controller.run("python please", ctx, context, BoundedMemory(), recorder)
        assert second.status == TaskStatus.COMPLETED
        assert "REQUEST: write a hello world" in client.prompts[1]
        assert "CURRENT INPUT: python please" in client.prompts[1]
