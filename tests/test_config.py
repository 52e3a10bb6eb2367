"""
Tests for configuration and logging setup.
"""

import pytest
import structlog
from pydantic import ValidationError

from switchyard.core.config import RunConfig, SwitchyardConfig
from switchyard.observability import setup_logging


class TestSwitchyardConfig:
    """Tests for SwitchyardConfig."""

    def test_defaults(self):
        cfg = SwitchyardConfig()
        assert cfg.run.max_iterations == 10
        assert cfg.run.turn_timeout == 60.0
        assert not cfg.transform.enabled
        assert not cfg.email.enabled

    def test_max_iterations_must_be_positive(self):
        with pytest.raises(ValidationError):
            RunConfig(max_iterations=0)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("SWITCHYARD_MAX_ITERATIONS", "4")
        monkeypatch.setenv("SWITCHYARD_LLM_PROVIDER", "openai")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        monkeypatch.setenv("BEM_API_KEY", "bem-key")
        monkeypatch.setenv("SLACK_BOT_TOKEN", "xoxb-1")
        monkeypatch.setenv("SMTP_HOST", "smtp.example.com")
        monkeypatch.setenv("SMTP_SENDER", "bot@example.com")
        monkeypatch.setenv("SWITCHYARD_LOG_FORMAT", "json")

        cfg = SwitchyardConfig.from_env()

        assert cfg.run.max_iterations == 4
        assert cfg.llm.provider == "openai"
        assert cfg.llm.api_key == "sk-test"
        assert cfg.transform.enabled
        assert cfg.slack.token == "xoxb-1"
        assert cfg.email.enabled
        assert cfg.logging.format == "json"


class TestLogging:
    """Tests for setup_logging."""

    @pytest.mark.parametrize("fmt", ["json", "console"])
    def test_setup_logging(self, fmt):
        setup_logging("DEBUG", fmt)
        with structlog.contextvars.bound_contextvars(run_id="r1"):
            structlog.get_logger("switchyard.test").info("Logging configured", fmt=fmt)
