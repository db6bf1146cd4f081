"""Chat model interface and the OpenAI-compatible implementation."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI, OpenAIError

from .types import JSON, Message
from ..utils.constants import DEFAULT_MODEL_NAME, DEFAULT_MODEL_PROVIDER, ROLE_ASSISTANT
from ..utils.exceptions import ConfigError
from ..utils.helpers import convert_messages_to_openai_format

logger = logging.getLogger(__name__)

ANTHROPIC_BASE_URL = "https://api.anthropic.com/v1/"


class ChatModel:
    """A model that answers an ordered conversation.

    ``complete`` returns an assistant message: ``{"role": "assistant",
    "content": str, "tool_calls": [...]}`` where ``tool_calls`` is present
    only when the model requests tool invocations, each in OpenAI function
    format ``{"id", "type": "function", "function": {"name", "arguments"}}``.
    The same interface serves the acting model and the grading model.
    """

    name: str = "model"

    async def complete(self, messages: List[Message], tools: Optional[List[JSON]] = None) -> Message:
        raise NotImplementedError


class OpenAIChatModel(ChatModel):
    """Chat model backed by any OpenAI-compatible chat completions API."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL_NAME,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        temperature: float = 0.0,
        max_tokens: Optional[int] = None,
        timeout_s: float = 120,
    ):
        """Initialize the model.

        Args:
            model: Model name to use
            api_key: API key (defaults to OPENAI_API_KEY env var)
            base_url: Base URL for API (defaults to OPENAI_BASE_URL env var or OpenAI default)
            temperature: Sampling temperature (0.0-2.0)
            max_tokens: Maximum tokens to generate
            timeout_s: Request timeout in seconds
        """
        self.name = model
        self.temperature = temperature
        self.max_tokens = max_tokens

        client_kwargs: Dict[str, Any] = {"timeout": timeout_s}
        if api_key:
            client_kwargs["api_key"] = api_key
        if base_url:
            client_kwargs["base_url"] = base_url
        try:
            self.client = AsyncOpenAI(**client_kwargs)
        except OpenAIError as e:
            raise ConfigError(f"Cannot create client for model {model}: {e}") from e

    def __repr__(self) -> str:
        return f"OpenAIChatModel(model={self.name!r})"

    async def complete(self, messages: List[Message], tools: Optional[List[JSON]] = None) -> Message:
        request_params: Dict[str, Any] = {
            "model": self.name,
            "messages": convert_messages_to_openai_format(messages),
            "temperature": self.temperature,
        }
        if self.max_tokens is not None:
            request_params["max_tokens"] = self.max_tokens
        if tools:
            request_params["tools"] = tools
            request_params["tool_choice"] = "auto"

        response = await self.client.chat.completions.create(**request_params)
        choice = response.choices[0].message

        msg: Message = {"role": ROLE_ASSISTANT, "content": choice.content or ""}
        if choice.tool_calls:
            msg["tool_calls"] = [
                {
                    "id": tc.id,
                    "type": "function",
                    "function": {
                        "name": tc.function.name,
                        "arguments": tc.function.arguments or "",
                    },
                }
                for tc in choice.tool_calls
            ]
        return msg


def create_model(
    provider: str = DEFAULT_MODEL_PROVIDER,
    name: str = DEFAULT_MODEL_NAME,
    api_key: Optional[str] = None,
) -> ChatModel:
    """Create a chat model for a provider.

    Anthropic models are reached through Anthropic's OpenAI-compatible endpoint.

    Raises:
        ConfigError: If the provider is not supported or its API key is missing
    """
    provider = (provider or DEFAULT_MODEL_PROVIDER).lower()
    if provider == "openai":
        return OpenAIChatModel(model=name, api_key=api_key)
    if provider == "anthropic":
        # without an explicit key the client would fall back to OPENAI_API_KEY
        api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not api_key:
            raise ConfigError("ANTHROPIC_API_KEY is not set")
        return OpenAIChatModel(
            model=name,
            api_key=api_key,
            base_url=os.getenv("ANTHROPIC_BASE_URL", ANTHROPIC_BASE_URL),
        )
    raise ConfigError(f"Unsupported model provider: {provider}")
