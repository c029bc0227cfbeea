"""OpenAI chat completions provider."""

from __future__ import annotations

import logging
import os
from typing import Any

import openai
from openai import OpenAI

from sqlassist.exceptions import ConfigurationError, ModelError
from sqlassist.llm.provider import ModelProvider

logger = logging.getLogger(__name__)


class OpenAIChatProvider(ModelProvider):
    """OpenAI API chat completions provider.

    The SDK's typed response is serialized back to JSON so callers get the
    same envelope text the REST API returns.

    Example:
        >>> provider = OpenAIChatProvider()  # Uses OPENAI_API_KEY env var
        >>> envelope = provider.generate("Explain this SQL query: SELECT 1")
    """

    DEFAULT_MODEL = "gpt-4o-mini"
    DEFAULT_TEMPERATURE = 0.3

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
        base_url: str | None = None,
        timeout: float = 60.0,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int | None = None,
    ) -> None:
        """Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key. Falls back to OPENAI_API_KEY env var.
            model: Chat model name.
            base_url: Alternative API root (OpenAI-compatible services).
            timeout: Request timeout in seconds.
            temperature: Sampling temperature.
            max_tokens: Optional completion token limit.

        Raises:
            ConfigurationError: If no API key is available.
        """
        api_key = api_key or os.environ.get("OPENAI_API_KEY")
        if not api_key:
            raise ConfigurationError(
                "OpenAI API key required. Set SQLASSIST_OPENAI_API_KEY "
                "or pass api_key parameter."
            )

        self._client = OpenAI(api_key=api_key, base_url=base_url, timeout=timeout)
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens

    @property
    def envelope_format(self) -> str:
        return "openai"

    @property
    def model_name(self) -> str:
        return self._model

    def generate(self, prompt: str, system_prompt: str | None = None) -> str:
        """Send a prompt as a chat completion.

        Args:
            prompt: User message.
            system_prompt: Optional system message.

        Returns:
            Chat completion envelope as JSON text.

        Raises:
            ModelError: On timeout, connection failure or error status.
        """
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        options: dict[str, Any] = {"temperature": self._temperature}
        if self._max_tokens is not None:
            options["max_tokens"] = self._max_tokens

        try:
            response = self._client.chat.completions.create(
                model=self._model,
                messages=messages,  # type: ignore[arg-type]
                **options,
            )
        except openai.APIConnectionError as e:
            logger.error(f"OpenAI API timeout or connection error: {e}")
            raise ModelError(f"OpenAI API timeout or connection error: {e}") from e
        except openai.APIStatusError as e:
            logger.error(f"OpenAI API returned status {e.status_code}")
            raise ModelError(
                f"OpenAI API error: {e.status_code} - {e.message}", e.status_code
            ) from e
        except openai.OpenAIError as e:
            logger.error(f"OpenAI API request failed: {e}")
            raise ModelError(f"OpenAI API request failed: {e}") from e

        return response.model_dump_json()
