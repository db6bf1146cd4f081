"""Tests for model construction and credentials."""

import pytest

from mcp_evals.core.models import ANTHROPIC_BASE_URL, OpenAIChatModel, create_model
from mcp_evals.utils.exceptions import ConfigError


@pytest.fixture
def no_keys(monkeypatch):
    for name in ("OPENAI_API_KEY", "ANTHROPIC_API_KEY", "ANTHROPIC_BASE_URL"):
        monkeypatch.delenv(name, raising=False)


def test_create_openai_model(no_keys):
    """Test that an explicit key builds an OpenAI model."""
    model = create_model("openai", "gpt-4o-mini", "sk-test")
    assert isinstance(model, OpenAIChatModel)
    assert model.name == "gpt-4o-mini"
    assert model.client.api_key == "sk-test"


def test_openai_model_without_key_is_a_config_error(no_keys):
    """Test that a missing OpenAI key surfaces as ConfigError."""
    with pytest.raises(ConfigError):
        create_model("openai", "gpt-4o")


def test_anthropic_model_uses_anthropic_key(no_keys, monkeypatch):
    """Test that the anthropic provider uses ANTHROPIC_API_KEY and Anthropic's endpoint."""
    monkeypatch.setenv("OPENAI_API_KEY", "sk-openai-secret")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test")
    model = create_model("anthropic", "claude-sonnet-4-5")
    assert model.client.api_key == "sk-ant-test"
    assert str(model.client.base_url).rstrip("/") == ANTHROPIC_BASE_URL.rstrip("/")


def test_anthropic_model_never_borrows_openai_key(no_keys, monkeypatch):
    """Test that the anthropic provider refuses to start without its own key."""
    monkeypatch.setenv("OPENAI_API_KEY", "sk-openai-secret")
    with pytest.raises(ConfigError, match="ANTHROPIC_API_KEY"):
        create_model("anthropic", "claude-sonnet-4-5")


def test_unsupported_provider(no_keys):
    """Test that unknown providers are rejected."""
    with pytest.raises(ConfigError, match="Unsupported"):
        create_model("gemini", "gemini-pro", "key")
