"""
Switchyard Configuration

One configuration object is built per process (or per run) and passed
explicitly to the network; nothing here is read from module globals.
"""

from __future__ import annotations

import os

from pydantic import BaseModel, Field


class RunConfig(BaseModel):
    """Run loop limits."""

    max_iterations: int = Field(default=10, ge=1)
    turn_timeout: float | None = Field(default=60.0, gt=0)


class LLMConfig(BaseModel):
    """Completion service settings."""

    provider: str | None = None  # anthropic, openai; None = detect
    model: str | None = None
    api_key: str | None = None
    base_url: str | None = None
    temperature: float = 0.2
    max_tokens: int = 4096


class TransformConfig(BaseModel):
    """Data transformation service (bem.ai) settings."""

    api_key: str | None = None
    base_url: str = "https://api.bem.ai/v1-beta"
    timeout: float = 30.0

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)


class SlackConfig(BaseModel):
    """Chat-history source settings."""

    token: str | None = None
    base_url: str = "https://slack.com/api"
    timeout: float = 15.0


class EmailConfig(BaseModel):
    """Outgoing mail (SMTP) settings."""

    host: str | None = None
    port: int = 587
    username: str | None = None
    password: str | None = None
    sender: str | None = None
    use_tls: bool = True
    timeout: float = 30.0

    @property
    def enabled(self) -> bool:
        return bool(self.host and self.sender)


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "console"  # console or json


class SwitchyardConfig(BaseModel):
    """
    Top-level configuration.

    Example:
        ```python
        config = SwitchyardConfig.from_env()
        config.run.max_iterations = 5
        ```
    """

    run: RunConfig = Field(default_factory=RunConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    transform: TransformConfig = Field(default_factory=TransformConfig)
    slack: SlackConfig = Field(default_factory=SlackConfig)
    email: EmailConfig = Field(default_factory=EmailConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls) -> SwitchyardConfig:
        """Build a configuration from environment variables."""
        run = RunConfig(
            max_iterations=int(os.getenv("SWITCHYARD_MAX_ITERATIONS", "10")),
            turn_timeout=float(os.getenv("SWITCHYARD_TURN_TIMEOUT", "60")),
        )

        provider = os.getenv("SWITCHYARD_LLM_PROVIDER")
        api_key = None
        if provider == "openai":
            api_key = os.getenv("OPENAI_API_KEY")
        elif provider == "anthropic":
            api_key = os.getenv("ANTHROPIC_API_KEY")

        llm = LLMConfig(
            provider=provider,
            model=os.getenv("SWITCHYARD_LLM_MODEL"),
            api_key=api_key,
            base_url=os.getenv("SWITCHYARD_LLM_BASE_URL"),
        )

        transform = TransformConfig(api_key=os.getenv("BEM_API_KEY"))
        if os.getenv("BEM_BASE_URL"):
            transform.base_url = os.environ["BEM_BASE_URL"]

        return cls(
            run=run,
            llm=llm,
            transform=transform,
            slack=SlackConfig(token=os.getenv("SLACK_BOT_TOKEN")),
            email=EmailConfig(
                host=os.getenv("SMTP_HOST"),
                port=int(os.getenv("SMTP_PORT", "587")),
                username=os.getenv("SMTP_USERNAME"),
                password=os.getenv("SMTP_PASSWORD"),
                sender=os.getenv("SMTP_SENDER"),
            ),
            logging=LoggingConfig(
                level=os.getenv("SWITCHYARD_LOG_LEVEL", "INFO"),
                format=os.getenv("SWITCHYARD_LOG_FORMAT", "console"),
            ),
        )
