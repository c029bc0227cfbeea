"""Gemini generateContent provider."""

from __future__ import annotations

import logging
import os
from typing import Any

import requests

from sqlassist.exceptions import ConfigurationError, ModelError
from sqlassist.llm.provider import ModelProvider

logger = logging.getLogger(__name__)


class GeminiProvider(ModelProvider):
    """Google Gemini REST API provider.

    Example:
        >>> provider = GeminiProvider()  # Uses GEMINI_API_KEY env var
        >>> envelope = provider.generate("Generate a SQL query that ...")
    """

    DEFAULT_MODEL = "gemini-2.0-flash"
    DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
    DEFAULT_TIMEOUT_SECONDS = 60.0

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize Gemini provider.

        Args:
            api_key: Gemini API key. Falls back to GEMINI_API_KEY env var.
            model: Model name. Defaults to gemini-2.0-flash.
            base_url: API root URL.
            timeout: Request timeout in seconds.

        Raises:
            ConfigurationError: If no API key is available.
        """
        api_key = api_key or os.environ.get("GEMINI_API_KEY")
        if not api_key:
            raise ConfigurationError(
                "Gemini API key not configured. Set SQLASSIST_GEMINI_API_KEY "
                "or pass api_key parameter."
            )
        self._api_key = api_key
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    @property
    def envelope_format(self) -> str:
        return "gemini"

    @property
    def model_name(self) -> str:
        return self._model

    @property
    def endpoint(self) -> str:
        """generateContent URL for the configured model."""
        return f"{self._base_url}/models/{self._model}:generateContent"

    def build_request_body(self, prompt: str, system_prompt: str | None = None) -> dict[str, Any]:
        body: dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
        if system_prompt:
            body["systemInstruction"] = {"parts": [{"text": system_prompt}]}
        return body

    def generate(self, prompt: str, system_prompt: str | None = None) -> str:
        """Send a prompt to Gemini.

        Args:
            prompt: Prompt text.
            system_prompt: Optional system instruction.

        Returns:
            Raw generateContent response body.

        Raises:
            ModelError: On timeout, connection failure or non-2xx status.
        """
        headers = {"Content-Type": "application/json", "x-goog-api-key": self._api_key}
        try:
            resp = requests.post(
                self.endpoint,
                headers=headers,
                json=self.build_request_body(prompt, system_prompt),
                timeout=self._timeout,
            )
        except (requests.Timeout, requests.ConnectionError) as e:
            logger.error(f"Gemini API timeout or connection error: {e}")
            raise ModelError(f"Gemini API timeout or connection error: {e}") from e
        except requests.RequestException as e:
            logger.error(f"Gemini API request failed: {e}")
            raise ModelError(f"Gemini API request failed: {e}") from e

        if not resp.ok:
            logger.error(f"Gemini API returned status {resp.status_code}")
            raise ModelError(
                f"Gemini API error: {resp.status_code} - {resp.text}",
                status_code=resp.status_code,
            )

        return resp.text
