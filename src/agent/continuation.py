"""
agent.continuation - Keyword heuristics deciding whether a task goes on.

Pure functions of their text inputs. The controller only sees the
ContinuationPolicy protocol, so a stricter decision procedure can replace
KeywordContinuationPolicy without touching the loop.
"""

from __future__ import annotations

from domain.models import StopBias

STOP_PATTERNS = (
    "task completed",
    "all files created",
    "finished",
    "done",
    "quota limit",
)

CONTINUE_PATTERNS = (
    "next step",
    "continue",
    "create",
    "add",
    "need to",
    "should",
)

# Only these stop a continue-biased run
DEFINITE_STOP_PATTERNS = (
    "task is completely finished",
    "everything is done",
    "no more work needed",
    "waiting for user input",
    "need clarification from user",
    "ask the user",
    "user needs to decide",
)

CLARIFICATION_PATTERNS = (
    "questions for user:",
    "need clarification",
    "please specify",
    "which approach",
    "more details",
    "unclear about",
)


def should_continue_iterating(
    analyst_text: str,
    executor_text: str,
    bias: StopBias = StopBias.STOP,
) -> bool:
    """Decide from the pair of texts whether another iteration should run.

    STOP bias: any stop pattern stops; otherwise continue only if a continue
    pattern matches. CONTINUE bias: continue unless a definite stop phrase
    appears.
    """
    combined = f"{analyst_text} {executor_text}".lower()

    if bias is StopBias.CONTINUE:
        return not any(p in combined for p in DEFINITE_STOP_PATTERNS)

    if any(p in combined for p in STOP_PATTERNS):
        return False
    return any(p in combined for p in CONTINUE_PATTERNS)


def should_ask_user(analyst_text: str) -> bool:
    """True when the analyst is asking the user for clarification."""
    text = analyst_text.lower()
    return any(p in text for p in CLARIFICATION_PATTERNS)


class KeywordContinuationPolicy:
    """ContinuationPolicy backed by should_continue_iterating()."""

    def __init__(self, bias: StopBias = StopBias.STOP):
        self.bias = bias

    def should_continue(self, analyst_text: str, executor_text: str) -> bool:
        return should_continue_iterating(analyst_text, executor_text, self.bias)
