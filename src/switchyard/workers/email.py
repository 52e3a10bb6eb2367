"""
Email Agent

Single-shot worker that drafts and sends email. Delivery goes through an
injected EmailTransport; sending the same message twice in one run is a
no-op.
"""

from __future__ import annotations

import asyncio
import smtplib
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from email.message import EmailMessage
from email.utils import make_msgid
from hashlib import sha256
from typing import Annotated

import structlog
from pydantic import Field

from switchyard.core.agent import Agent
from switchyard.core.config import EmailConfig
from switchyard.core.errors import ExternalServiceError
from switchyard.core.state import StateStore
from switchyard.core.tool import Tool, ToolParams, done_tool

logger = structlog.get_logger(__name__)

NAME = "Email Agent"

EMAIL_SENT = "email_sent"

INSTRUCTIONS = """You are an email management specialist.

- Use draft_email to prepare a message the user wants to review.
- Use send_email only when the user clearly asked for the message to be sent.
- Keep subjects short and bodies plain and polite.
Call done with a summary of what you drafted or sent."""

Address = Annotated[str, Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")]


@dataclass(frozen=True)
class OutgoingEmail:
    to: tuple[str, ...]
    subject: str
    body: str
    cc: tuple[str, ...] = field(default_factory=tuple)

    @property
    def fingerprint(self) -> str:
        raw = "\x1f".join([",".join(self.to), ",".join(self.cc), self.subject, self.body])
        return sha256(raw.encode()).hexdigest()[:20]


class EmailTransport(ABC):
    """Delivers an email and returns the provider's message id."""

    @abstractmethod
    async def send(self, email: OutgoingEmail) -> str:
        ...


class SMTPTransport(EmailTransport):
    """
    Plain SMTP delivery.

    smtplib is blocking, so each send runs in a worker thread.
    """

    def __init__(self, config: EmailConfig):
        if not config.host or not config.sender:
            raise ValueError("SMTPTransport requires a host and a sender address")
        self.config = config

    def _send_sync(self, email: OutgoingEmail) -> str:
        message = EmailMessage()
        message["From"] = self.config.sender
        message["To"] = ", ".join(email.to)
        if email.cc:
            message["Cc"] = ", ".join(email.cc)
        message["Subject"] = email.subject
        message["Message-ID"] = make_msgid()
        message.set_content(email.body)

        with smtplib.SMTP(self.config.host, self.config.port, timeout=self.config.timeout) as smtp:
            if self.config.use_tls:
                smtp.starttls()
            if self.config.username:
                smtp.login(self.config.username, self.config.password or "")
            smtp.send_message(message)
        return message["Message-ID"]

    async def send(self, email: OutgoingEmail) -> str:
        try:
            return await asyncio.to_thread(self._send_sync, email)
        except (smtplib.SMTPException, OSError) as e:
            raise ExternalServiceError("smtp", str(e)) from e


class EmailParams(ToolParams):
    to: list[Address] = Field(min_length=1, description="Recipient addresses")
    subject: str = Field(min_length=1, description="Subject line")
    body: str = Field(description="Plain-text body")
    cc: list[Address] = Field(default_factory=list, description="Carbon-copy addresses")

    def to_email(self) -> OutgoingEmail:
        return OutgoingEmail(to=tuple(self.to), subject=self.subject, body=self.body, cc=tuple(self.cc))


def draft_email(params: EmailParams, state: StateStore) -> str:
    email = params.to_email()
    state.set("email_action", "draft")
    state.set("email_result", {
        "id": email.fingerprint,
        "to": list(email.to),
        "cc": list(email.cc),
        "subject": email.subject,
        "body": email.body,
    })
    state.set("email_status", "pending")
    state.set("email_message", f"Draft ready for {', '.join(email.to)}")
    return f'Drafted "{email.subject}" to {", ".join(email.to)}.'


def create_email_agent(transport: EmailTransport | None = None) -> Agent:
    """Build the email worker; without a transport it can only draft."""

    async def send_email(params: EmailParams, state: StateStore) -> str:
        email = params.to_email()
        sent: dict[str, str] = dict(state.get(EMAIL_SENT) or {})

        if email.fingerprint in sent:
            return f'"{email.subject}" was already sent (message id {sent[email.fingerprint]}).'
        if transport is None:
            raise ExternalServiceError("email", "no email transport is configured; use draft_email instead")

        message_id = await transport.send(email)
        sent[email.fingerprint] = message_id
        state.set(EMAIL_SENT, sent)
        state.set("email_action", "send")
        state.set("email_result", {"id": message_id, "to": list(email.to), "subject": email.subject})
        state.set("email_status", "success")
        state.set("email_message", f"Sent to {', '.join(email.to)}")

        logger.info("Email sent", message_id=message_id, recipients=len(email.to) + len(email.cc))
        return f'Sent "{email.subject}" to {", ".join(email.to)} (message id {message_id}).'

    return Agent(
        name=NAME,
        description="Drafts and sends email on the user's behalf",
        instructions=INSTRUCTIONS,
        tools=(
            Tool("draft_email", "Prepare an email without sending it", EmailParams, draft_email),
            Tool("send_email", "Send an email", EmailParams, send_email),
            done_tool("Call this when the email task is complete"),
        ),
    )
