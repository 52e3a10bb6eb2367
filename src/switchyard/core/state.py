"""
Run State

The shared state store every worker and the router read and write, plus
the immutable records a run produces (tool invocations, turns, routing
decisions). A StateStore lives for exactly one run.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Iterator

import structlog
from pydantic import BaseModel, ConfigDict, Field

from switchyard.core.errors import TerminalResultError

logger = structlog.get_logger(__name__)


# Signal keys shared with the specialist workers
COMPLETED = "completed"
COMPLETION_MESSAGE = "completion_message"
RESULT_TYPE = "result_type"
FINAL_SUMMARY = "final_summary"
REQUEST = "request"

CHART_RESULT = "chart_result"
UI_RESULT = "ui_result"
CONVERSATION_RESULT = "conversation_result"

# Terminal-result key -> result type discriminator
TERMINAL_RESULT_KEYS: dict[str, str] = {
    CHART_RESULT: "chart",
    UI_RESULT: "component",
    CONVERSATION_RESULT: "conversation",
}


class StateStore:
    """
    Key/value bag scoped to a single run.

    Writes are synchronous and visible to the next reader. Terminal-result
    keys are write-once: after one is set, a different value for it or a
    second terminal key is rejected with TerminalResultError.

    Example:
        ```python
        state = StateStore()
        state.set("picked_chart", {...})
        if state.has("picked_chart") and not state.has("data_result"):
            ...
        ```
    """

    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, Any] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def has(self, key: str) -> bool:
        return key in self._data

    def set(self, key: str, value: Any) -> None:
        if key in TERMINAL_RESULT_KEYS:
            self._check_terminal_write(key, value)
        self._data[key] = value

    def _check_terminal_write(self, key: str, value: Any) -> None:
        existing = self.terminal_key
        if existing is None:
            return
        if existing == key and self._data[key] == value:
            return
        raise TerminalResultError(
            f"Cannot set {key!r}: terminal result {existing!r} is already set for this run"
        )

    @property
    def terminal_key(self) -> str | None:
        """The terminal-result key that has been set, if any."""
        for key in TERMINAL_RESULT_KEYS:
            if key in self._data:
                return key
        return None

    def keys(self) -> list[str]:
        return list(self._data)

    def snapshot(self) -> dict[str, Any]:
        """Shallow copy of the current contents."""
        return dict(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"StateStore(keys={sorted(self._data)!r})"


class ToolInvocation(BaseModel):
    """One tool call made during a turn, with its textual result."""

    model_config = ConfigDict(frozen=True)

    tool_name: str
    arguments: dict[str, Any] = Field(default_factory=dict)
    result: str = ""
    error: bool = False
    call_id: str | None = None

    @property
    def success(self) -> bool:
        return not self.error


class Turn(BaseModel):
    """
    The record of one worker invocation.

    Turns are appended to the run's history and never modified.
    """

    model_config = ConfigDict(frozen=True)

    worker: str
    invocations: tuple[ToolInvocation, ...] = ()
    content: str = ""
    error: str | None = None
    timed_out: bool = False
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    @property
    def failed(self) -> bool:
        return self.error is not None or self.timed_out

    @property
    def tool_names(self) -> list[str]:
        return [inv.tool_name for inv in self.invocations]

    def find(self, tool_name: str, successful_only: bool = True) -> ToolInvocation | None:
        """Return the first invocation of ``tool_name`` in this turn."""
        for inv in self.invocations:
            if inv.tool_name == tool_name and (inv.success or not successful_only):
                return inv
        return None


class RouteDecision(BaseModel):
    """Either an ordered list of workers to run next, or termination."""

    model_config = ConfigDict(frozen=True)

    workers: tuple[str, ...] = ()
    reason: str = ""

    @property
    def terminate(self) -> bool:
        return not self.workers

    @classmethod
    def to(cls, *workers: str, reason: str = "") -> RouteDecision:
        if not workers:
            raise ValueError("A routing decision needs at least one worker")
        return cls(workers=tuple(workers), reason=reason)

    @classmethod
    def stop(cls, reason: str) -> RouteDecision:
        return cls(workers=(), reason=reason)


class RunPhase(str, Enum):
    """Current phase of the run loop."""

    INIT = "init"
    ROUTING = "routing"
    WORKER_TURN = "worker_turn"
    TERMINATED = "terminated"


class RunStatus(str, Enum):
    """How a run ended."""

    COMPLETED = "completed"
    MAX_ITERATIONS = "max_iterations"
    CANCELLED = "cancelled"
