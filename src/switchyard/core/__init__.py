"""
Orchestration Core

Shared run state, schema-validated tools, agents, the state-driven
router and the bounded run loop that ties them together.
"""

from switchyard.core.config import SwitchyardConfig
from switchyard.core.state import RouteDecision, RunPhase, RunStatus, StateStore, ToolInvocation, Turn
from switchyard.core.tool import Tool, ToolParams, dispatch, done_tool, route_tool
from switchyard.core.agent import Agent
from switchyard.core.router import PipelineStage, Router
from switchyard.core.network import Network, RunResult

__all__ = [
    "Agent",
    "Network",
    "PipelineStage",
    "RouteDecision",
    "Router",
    "RunPhase",
    "RunResult",
    "RunStatus",
    "StateStore",
    "SwitchyardConfig",
    "Tool",
    "ToolInvocation",
    "ToolParams",
    "Turn",
    "dispatch",
    "done_tool",
    "route_tool",
]
