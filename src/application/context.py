"""
application.context - Session-scoped context.

Every function receives its context explicitly. Two concurrent websocket
connections get two different SessionContext instances with distinct
thread ids, so their histories never cross-contaminate.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from uuid import uuid4


def new_session_id() -> str:
    """Return an id shaped like ``conversation-<ms timestamp>-<random>``."""
    return f"conversation-{int(time.time() * 1000)}-{uuid4().hex[:9]}"


@dataclass
class SessionContext:
    """Per-session context passed through all layers.

    Attributes:
        session_id:  Unique per conversational session (CLI run or socket).
        request_id:  Unique per user request, for tracing/logging.
    """
    session_id: str = field(default_factory=new_session_id)
    request_id: str = field(default_factory=lambda: uuid4().hex)

    @property
    def analyst_thread_id(self) -> str:
        return f"thinker-{self.session_id}"

    @property
    def executor_thread_id(self) -> str:
        return f"doer-{self.session_id}"

    def thread_id(self, role: str) -> str:
        return self.analyst_thread_id if role == "analyst" else self.executor_thread_id

    def new_request(self) -> None:
        """Reset per-request state for a new request within the same session."""
        self.request_id = uuid4().hex
