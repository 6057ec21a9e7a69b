"""
agent.memory - Per-session bounded memory of agent actions.

Stores a capped log of recent actions plus periodic block summaries.
The only read path, get_recent_context(), is deliberately lossy: old
detail is summarized and very old detail is evicted, which keeps every
prompt within the model's request size limit.
"""

from __future__ import annotations

import logging

from domain.models import MemoryEntry, MemorySummary

logger = logging.getLogger(__name__)


class BoundedMemory:
    """Per-session action memory.

    NOT global: each session gets its own instance, passed into every
    agent call.
    """

    def __init__(
        self,
        max_entries: int = 10,
        summary_every: int = 3,
        max_summaries: int = 3,
        result_chars: int = 200,
    ):
        if min(max_entries, summary_every, max_summaries, result_chars) < 1:
            raise ValueError("BoundedMemory caps must be at least 1")
        self._max_entries = max_entries
        self._summary_every = summary_every
        self._max_summaries = max_summaries
        self._result_chars = result_chars
        self._entries: list[MemoryEntry] = []
        self._summaries: list[MemorySummary] = []
        self._last_summarized = 0

    @property
    def entries(self) -> tuple[MemoryEntry, ...]:
        return tuple(self._entries)

    @property
    def summaries(self) -> tuple[MemorySummary, ...]:
        return tuple(self._summaries)

    @property
    def entry_count(self) -> int:
        return len(self._entries)

    def add_entry(self, iteration: int, agent: str, action: str, result: str) -> MemoryEntry:
        """Record an action, summarizing completed blocks and evicting FIFO."""
        entry = MemoryEntry(
            iteration=iteration,
            agent=agent,
            action=action,
            result=result[: self._result_chars],
        )
        self._entries.append(entry)

        if (
            iteration > 0
            and iteration % self._summary_every == 0
            and iteration > self._last_summarized
        ):
            self.create_summary(iteration)

        self._trim()
        return entry

    def create_summary(self, iteration: int) -> MemorySummary | None:
        """Digest the entries of the block ending at ``iteration``."""
        start = iteration - (self._summary_every - 1)
        block = [e for e in self._entries if start <= e.iteration <= iteration]
        if not block:
            return None

        summary = MemorySummary(
            start=start,
            end=iteration,
            text=" | ".join(e.render(80) for e in block),
        )
        self._summaries.append(summary)
        self._last_summarized = iteration
        if len(self._summaries) > self._max_summaries:
            self._summaries = self._summaries[-self._max_summaries:]

        logger.debug("Created memory summary for iterations %d-%d", start, iteration)
        return summary

    def get_recent_context(self, current_iteration: int) -> str:
        """Render the last summaries and the latest entries before ``current_iteration``."""
        if not self._entries and not self._summaries:
            return ""

        recent = [e for e in self._entries if e.iteration < current_iteration][-4:]
        # A block's summary is built during its last iteration
        summaries = [s for s in self._summaries if s.end < current_iteration][-2:]

        context = ""
        if summaries:
            context += "\nSUMMARIES:\n" + "\n".join(str(s) for s in summaries) + "\n"
        if recent:
            context += "\nRECENT:\n" + "\n".join(f"{e.render(100)}..." for e in recent)
        return context

    def clear(self) -> None:
        """Reset entries and summaries; called when a new task starts."""
        self._entries.clear()
        self._summaries.clear()
        self._last_summarized = 0

    def _trim(self) -> None:
        if len(self._entries) > self._max_entries:
            self._entries = self._entries[-self._max_entries:]
