"""
Assistant Chat Example

A small terminal chat against the full assistant network. The router
worker answers small talk itself and sends everything else to a
specialist (charts, UI, email, chat history).

Run:
    python examples/assistant_chat.py
"""

import asyncio

from switchyard import ChatService, SwitchyardConfig
from switchyard.api import build_service
from switchyard.core.errors import ReasoningServiceError, RequestValidationError
from switchyard.observability import setup_logging


async def main():
    config = SwitchyardConfig.from_env()
    setup_logging("WARNING", config.logging.format)
    service: ChatService = build_service(config)

    conversation = []
    print("Type a request, or an empty line to quit.")
    try:
        while True:
            text = input("\nyou> ").strip()
            if not text:
                break

            conversation.append({"role": "user", "content": text})
            try:
                response = await service.respond(conversation)
            except (RequestValidationError, ReasoningServiceError) as e:
                print(f"error: {e}")
                conversation.pop()
                continue

            message = response.message
            print(f"assistant> {message.content}")
            if message.tool_call is not None:
                print(f"  [{message.tool_call.type}: {message.tool_call.name}]")
            conversation.append({"role": "assistant", "content": message.content})
    finally:
        await service.close()


if __name__ == "__main__":
    asyncio.run(main())
