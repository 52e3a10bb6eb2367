"""
Error Types

Exceptions raised by the orchestration core and its collaborators.
Per-tool and per-worker failures are recovered inside the run loop;
only the request and completion-service errors reach the caller.
"""

from __future__ import annotations

from typing import Any


class SwitchyardError(Exception):
    """Base class for all Switchyard errors."""


class ToolValidationError(SwitchyardError):
    """Tool arguments did not match the tool's parameter schema."""

    def __init__(self, tool_name: str, errors: list[dict[str, Any]]):
        self.tool_name = tool_name
        self.errors = errors
        super().__init__(f"Invalid arguments for {tool_name}: {self.summary}")

    @property
    def summary(self) -> str:
        parts = []
        for err in self.errors:
            loc = ".".join(str(p) for p in err.get("loc", ())) or "<root>"
            parts.append(f"{loc}: {err.get('msg', 'invalid')}")
        return "; ".join(parts)


class TerminalResultError(SwitchyardError):
    """A write would replace or duplicate the run's terminal result."""


class RequestValidationError(SwitchyardError):
    """The caller's request was malformed (client error)."""


class ReasoningServiceError(SwitchyardError):
    """The completion service failed or returned unusable output."""

    def __init__(self, message: str, provider: str | None = None, status_code: int | None = None):
        self.provider = provider
        self.status_code = status_code
        super().__init__(message)


class ExternalServiceError(SwitchyardError):
    """A specialist's external dependency (transform, chat, mail) failed."""

    def __init__(self, service: str, message: str, status_code: int | None = None):
        self.service = service
        self.status_code = status_code
        super().__init__(f"{service}: {message}")
