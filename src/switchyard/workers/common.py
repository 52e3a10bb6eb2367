"""
Helpers shared by the specialist workers.
"""

from __future__ import annotations

from pydantic import Field

from switchyard.core.state import StateStore
from switchyard.core.tool import Tool, ToolParams


class ReasonParams(ToolParams):
    reason: str = Field(description="Why this step is needed")


class ConfirmParams(ToolParams):
    confirm: bool = Field(description="Confirm you want to run this step")


def request_step_tool(name: str, flag_key: str, reason_key: str, owner: str) -> Tool:
    """
    A stand-in for a step another worker owns.

    Models sometimes call a downstream tool from the wrong worker. Instead
    of failing, the call records the need in state and tells the model who
    will handle it; the router's pipeline predicates do the actual handoff.
    """

    def handler(params: ReasonParams, state: StateStore) -> str:
        state.set(flag_key, True)
        state.set(reason_key, params.reason)
        return f"Acknowledged: {params.reason}. The {owner} will handle this step."

    return Tool(
        name,
        f"Records that the {owner} is needed for this step; it does not perform the step itself.",
        ReasonParams,
        handler,
    )


def capitalize(key: str) -> str:
    return key[:1].upper() + key[1:]
