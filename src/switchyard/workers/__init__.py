"""
Specialist Workers

The worker catalogue and the two stock networks built from it:

- chart network: picker -> data -> cleaner -> chart, driven by state
- assistant network: a triage router in front of every specialist
"""

from __future__ import annotations

from switchyard.core.config import RunConfig
from switchyard.core.network import Network
from switchyard.core.router import PipelineStage, Router
from switchyard.core.state import CHART_RESULT
from switchyard.llm.base import LLMProvider
from switchyard.workers import chart, chart_picker, cleaner, data, triage
from switchyard.workers.chart import create_chart_agent
from switchyard.workers.chart_picker import create_chart_picker
from switchyard.workers.cleaner import create_data_cleaner
from switchyard.workers.data import create_data_agent
from switchyard.workers.email import EmailTransport, SMTPTransport, create_email_agent
from switchyard.workers.history import ConversationSource, SlackConversationSource, create_history_agent
from switchyard.workers.transform import (
    BemClient,
    LocalNormalizer,
    TransformBackend,
    create_transform_backend,
)
from switchyard.workers.triage import create_triage_agent
from switchyard.workers.ui import create_ui_agent

CHART_PIPELINE = [
    PipelineStage(chart_picker.NAME, chart_picker.PICKED_CHART),
    PipelineStage(data.NAME, data.DATA_RESULT),
    PipelineStage(cleaner.NAME, cleaner.PREPARED_CHART_DATA),
    PipelineStage(chart.NAME, CHART_RESULT),
]


def _chart_workers(transform: TransformBackend | None) -> list:
    return [
        create_chart_picker(),
        create_data_agent(),
        create_data_cleaner(transform or LocalNormalizer()),
        create_chart_agent(),
    ]


def build_chart_network(
    llm: LLMProvider,
    config: RunConfig | None = None,
    transform: TransformBackend | None = None,
) -> Network:
    """
    The chart pipeline on its own.

    Example:
        ```python
        network = build_chart_network(create_llm(), transform=create_transform_backend(cfg.transform))
        result = await network.run("bar chart of monthly signups")
        ```
    """
    return Network(
        name="charts",
        agents=_chart_workers(transform),
        router=Router(pipeline=CHART_PIPELINE, entry=chart_picker.NAME),
        llm=llm,
        config=config,
    )


def build_assistant_network(
    llm: LLMProvider,
    config: RunConfig | None = None,
    transform: TransformBackend | None = None,
    email_transport: EmailTransport | None = None,
    conversation_source: ConversationSource | None = None,
) -> Network:
    """
    The full assistant: triage first, then one specialist (or the chart
    pipeline) until a result is produced.
    """
    specialists = [
        *_chart_workers(transform),
        create_ui_agent(),
        create_email_agent(email_transport),
        create_history_agent(conversation_source),
    ]
    routable = {
        agent.name: agent.description
        for agent in specialists
        if agent.name not in (data.NAME, cleaner.NAME)
    }
    return Network(
        name="assistant",
        agents=[create_triage_agent(routable), *specialists],
        router=Router(pipeline=CHART_PIPELINE, entry=triage.NAME),
        llm=llm,
        config=config,
    )


__all__ = [
    "BemClient",
    "CHART_PIPELINE",
    "ConversationSource",
    "EmailTransport",
    "LocalNormalizer",
    "SMTPTransport",
    "SlackConversationSource",
    "TransformBackend",
    "build_assistant_network",
    "build_chart_network",
    "create_chart_agent",
    "create_chart_picker",
    "create_data_agent",
    "create_data_cleaner",
    "create_email_agent",
    "create_history_agent",
    "create_transform_backend",
    "create_triage_agent",
    "create_ui_agent",
]
