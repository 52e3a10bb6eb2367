"""
Switchyard

A multi-agent orchestration core: a run loop routes one user request
through specialist workers (chart picking, data, cleaning, charts, UI,
email, chat history) until a final result is produced.
"""

from switchyard.core import (
    Agent,
    Network,
    PipelineStage,
    Router,
    RunResult,
    RunStatus,
    StateStore,
    SwitchyardConfig,
    Tool,
    ToolParams,
)
from switchyard.service import ChatService

__version__ = "0.1.0"

__all__ = [
    "Agent",
    "ChatService",
    "Network",
    "PipelineStage",
    "Router",
    "RunResult",
    "RunStatus",
    "StateStore",
    "SwitchyardConfig",
    "Tool",
    "ToolParams",
]
