"""
Chart Request Example

Runs one request through the chart pipeline:
picker -> data -> cleaner -> chart.

Requirements:
    pip install -e .
    export ANTHROPIC_API_KEY=sk-ant-...  (or OPENAI_API_KEY)
    export BEM_API_KEY=...               (optional, local normalizer otherwise)

Run:
    python examples/chart_request.py "bar chart of revenue by region for Q1"
"""

import asyncio
import json
import sys

from switchyard import SwitchyardConfig
from switchyard.llm import create_llm
from switchyard.observability import setup_logging
from switchyard.workers import build_chart_network, create_transform_backend


async def main(request: str):
    config = SwitchyardConfig.from_env()
    setup_logging(config.logging.level, config.logging.format)

    llm = create_llm(config.llm)
    transform = create_transform_backend(config.transform)
    network = build_chart_network(llm, config=config.run, transform=transform)

    print(f"📋 Request: {request}")
    print("-" * 50)

    try:
        result = await network.run(request)
    finally:
        await transform.close()
        await llm.close()

    for turn in result.turns:
        print(f"  {turn.worker}: {', '.join(turn.tool_names) or '(no tools)'}")

    print("-" * 50)
    print(f"Status: {result.status.value}")
    print(f"Message: {result.message}")
    if result.result_type == "chart":
        print(json.dumps(result.payload, indent=2))


if __name__ == "__main__":
    asyncio.run(main(" ".join(sys.argv[1:]) or "Show me monthly signups for the last six months as a line chart"))
