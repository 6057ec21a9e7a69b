"""Bounded memory: FIFO cap, block summaries and context rendering."""

from __future__ import annotations

import pytest

from agent.memory import BoundedMemory


def _fill(memory: BoundedMemory, iterations, per_iteration: int = 1) -> None:
    for i in iterations:
        for n in range(per_iteration):
            memory.add_entry(i, "Executor", f"step{n}", f"result of {i}.{n}")


class TestEviction:
    def test_entry_count_never_exceeds_cap(self):
        memory = BoundedMemory(max_entries=10)
        for i in range(25):
            memory.add_entry(i % 4 + 1, "Analyst", f"action{i}", "ok")
            assert memory.entry_count <= 10

    def test_keeps_most_recent_entries(self):
        memory = BoundedMemory(max_entries=3)
        for i in range(6):
            memory.add_entry(1, "Executor", f"action{i}", "ok")
        assert [e.action for e in memory.entries] == ["action3", "action4", "action5"]

    @pytest.mark.parametrize("caps", [
        {"max_entries": 0},
        {"max_summaries": 0},
        {"summary_every": 0},
        {"max_entries": -1},
    ])
    def test_caps_below_one_are_rejected(self, caps):
        with pytest.raises(ValueError):
            BoundedMemory(**caps)

    def test_cap_of_one_keeps_only_latest(self):
        memory = BoundedMemory(max_entries=1)
        for i in range(5):
            memory.add_entry(1, "Executor", f"action{i}", "ok")
        assert [e.action for e in memory.entries] == ["action4"]

    def test_result_is_truncated(self):
        memory = BoundedMemory(result_chars=200)
        entry = memory.add_entry(1, "Executor", "read_file", "x" * 500)
        assert len(entry.result) == 200


class TestSummaries:
    def test_no_summary_for_iteration_zero(self):
        memory = BoundedMemory()
        memory.add_entry(0, "Analyst", "initial_observation", "workspace is empty")
        assert memory.summaries == ()

    def test_summary_created_once_per_block(self):
        memory = BoundedMemory(max_entries=50)
        _fill(memory, range(1, 10), per_iteration=2)
        assert [s.iteration_range for s in memory.summaries] == [(1, 3), (4, 6), (7, 9)]

    def test_summary_covers_block_range(self):
        memory = BoundedMemory()
        _fill(memory, [1, 2])
        assert memory.summaries == ()
        _fill(memory, [3])

        (summary,) = memory.summaries
        assert summary.iteration_range == (1, 3)
        assert str(summary).startswith("[Iter 1-3]: ")
        assert summary.text.count(" | ") == 2
        assert "Executor: step0 → result of 1.0" in summary.text

    def test_summary_cap(self):
        memory = BoundedMemory(max_entries=50, max_summaries=3)
        _fill(memory, range(1, 16))
        assert [s.start for s in memory.summaries] == [7, 10, 13]

    def test_create_summary_on_empty_block_is_noop(self):
        memory = BoundedMemory()
        assert memory.create_summary(3) is None
        assert memory.summaries == ()


class TestRecentContext:
    def test_empty_memory_renders_nothing(self):
        assert BoundedMemory().get_recent_context(5) == ""

    def test_excludes_current_and_later_iterations(self):
        memory = BoundedMemory()
        memory.add_entry(1, "Analyst", "list_files", "old")
        memory.add_entry(2, "Executor", "edit_file", "current")
        memory.add_entry(3, "Executor", "edit_file", "future")

        context = memory.get_recent_context(2)
        assert "old" in context
        assert "current" not in context
        assert "future" not in context

    def test_block_summary_hidden_during_its_last_iteration(self):
        memory = BoundedMemory(max_entries=50)
        _fill(memory, [1, 2])
        memory.add_entry(3, "Analyst", "read_file", "seen in iteration three")

        assert memory.summaries[0].iteration_range == (1, 3)
        assert "iteration three" not in memory.get_recent_context(3)
        assert "[Iter 1-3]" not in memory.get_recent_context(3)
        assert "[Iter 1-3]" in memory.get_recent_context(4)

    def test_at_most_four_recent_entries(self):
        memory = BoundedMemory(max_entries=10)
        for i in range(8):
            memory.add_entry(1, "Executor", f"action{i}", "ok")
        context = memory.get_recent_context(2)
        assert context.startswith("\nRECENT:\n")
        assert "action3" not in context
        assert all(f"action{i}" in context for i in range(4, 8))

    def test_summaries_rendered_before_recent(self):
        memory = BoundedMemory(max_entries=50)
        _fill(memory, range(1, 10))
        context = memory.get_recent_context(10)
        assert context.startswith("\nSUMMARIES:\n")
        assert "[Iter 1-3]" not in context
        assert "[Iter 4-6]" in context and "[Iter 7-9]" in context
        assert context.index("SUMMARIES") < context.index("RECENT")

    def test_clear_resets_everything(self):
        memory = BoundedMemory()
        _fill(memory, [1, 2, 3])
        memory.clear()
        assert memory.entry_count == 0
        assert memory.summaries == ()
        _fill(memory, [1, 2, 3])
        assert len(memory.summaries) == 1
