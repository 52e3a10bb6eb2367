"""
Assistant Router

Entry worker of the assistant network. Answers small talk itself and
hands everything else to one specialist through ``route_to_agent``.
"""

from __future__ import annotations

from switchyard.core.agent import Agent
from switchyard.core.tool import done_tool, route_tool

NAME = "Assistant Router"

INSTRUCTIONS = """You are the front desk of a team of specialist agents.

Specialists:
{specialists}

If the request needs one of them, call route_to_agent with its exact name and
your reasoning. If it is a greeting or a question you can answer in a sentence,
call done with your answer as the summary. Never call both."""


def create_triage_agent(specialists: dict[str, str]) -> Agent:
    """
    Build the router worker.

    Args:
        specialists: Worker name -> one-line description, for every worker
            it may route to
    """
    listing = "\n".join(f"- {name}: {description}" for name, description in specialists.items())
    return Agent(
        name=NAME,
        description="Routes requests to the appropriate specialist agent",
        instructions=INSTRUCTIONS.format(specialists=listing),
        tools=(
            route_tool(list(specialists)),
            done_tool("Call this when no specialist is needed", field="summary",
                      field_description="Your answer to the user"),
        ),
    )
