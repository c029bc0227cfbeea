"""Extraction of SQL from language model responses.

Provider responses arrive as JSON envelopes whose shape depends on the
service. An envelope parser digs the model's text payload out of the
envelope; the extractor then turns that payload into a GeneratedQuery.
"""

from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any

from sqlassist.core.types import Complexity, GeneratedQuery, QueryMetadata, QueryType

logger = logging.getLogger(__name__)

SERVICE_UNAVAILABLE_WARNING = "AI service unavailable or returned invalid response"
NO_CANDIDATES_MESSAGE = "No valid candidates found in model response"
RAW_TEXT_EXPLANATION = "Generated SQL query (raw text)"

FENCE_PATTERN = re.compile(r"```(?:json)?", re.IGNORECASE)
SQL_START_PATTERN = re.compile(r"^(SELECT|WITH)\b", re.IGNORECASE)


class EnvelopeError(ValueError):
    """Raised by envelope parsers when the payload cannot be located."""


class ResponseEnvelopeParser(ABC):
    """Interface for provider envelope parsers."""

    name: str = ""

    @abstractmethod
    def payload(self, envelope: Any) -> str:
        """Return the model's text payload from a decoded envelope.

        Args:
            envelope: Decoded JSON envelope.

        Returns:
            The text the model produced.

        Raises:
            EnvelopeError: If the envelope has no usable payload.
        """
        ...


class GeminiEnvelopeParser(ResponseEnvelopeParser):
    """Gemini generateContent: ``candidates[0].content.parts[0].text``."""

    name = "gemini"

    def payload(self, envelope: Any) -> str:
        try:
            text = envelope["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise EnvelopeError(NO_CANDIDATES_MESSAGE) from e
        if not isinstance(text, str):
            raise EnvelopeError(NO_CANDIDATES_MESSAGE)
        return text


class ChatCompletionEnvelopeParser(ResponseEnvelopeParser):
    """OpenAI chat completions: ``choices[0].message.content``."""

    name = "openai"

    def payload(self, envelope: Any) -> str:
        try:
            text = envelope["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise EnvelopeError(NO_CANDIDATES_MESSAGE) from e
        if not isinstance(text, str):
            raise EnvelopeError(NO_CANDIDATES_MESSAGE)
        return text


def get_envelope_parser(parser: str | ResponseEnvelopeParser = "gemini") -> ResponseEnvelopeParser:
    """Get an envelope parser by name or return the parser if already instantiated.

    Args:
        parser: Parser name ("gemini", "openai") or ResponseEnvelopeParser instance.

    Returns:
        ResponseEnvelopeParser instance.

    Raises:
        ValueError: If parser name is unknown.
    """
    if isinstance(parser, ResponseEnvelopeParser):
        return parser

    if parser == "gemini":
        return GeminiEnvelopeParser()
    elif parser == "openai":
        return ChatCompletionEnvelopeParser()
    else:
        raise ValueError(f"Unknown response format: {parser}. Available: 'gemini', 'openai'")


def strip_code_fences(text: str) -> str:
    """Remove ```json / ``` fences and surrounding whitespace."""
    return FENCE_PATTERN.sub("", text).strip()


def extract_sql_from_text(text: str) -> str | None:
    """Find a SELECT statement inside free-form model text.

    Tries a ```sql block, then any ``` block, then the first SELECT keyword.
    A candidate is only accepted when it starts with SELECT.
    """
    candidate = None
    lowered = text.lower()

    sql_fence = lowered.find("```sql")
    plain_fence = lowered.find("```")
    if sql_fence != -1:
        start = sql_fence + len("```sql")
        end = text.find("```", start)
        candidate = text[start:] if end == -1 else text[start:end]
    elif plain_fence != -1:
        start = plain_fence + len("```")
        end = text.find("```", start)
        candidate = text[start:] if end == -1 else text[start:end]
    else:
        select_at = text.upper().find("SELECT")
        if select_at != -1:
            end = text.find(";", select_at)
            candidate = text[select_at:] if end == -1 else text[select_at : end + 1]

    if candidate is None:
        return None
    candidate = candidate.strip()
    if not candidate.upper().startswith("SELECT"):
        return None
    return candidate


def error_result(message: str) -> GeneratedQuery:
    """GeneratedQuery describing a failed generation."""
    return GeneratedQuery(
        generated_sql=None,
        explanation=message,
        warnings=[SERVICE_UNAVAILABLE_WARNING],
        is_executable=False,
        metadata=QueryMetadata(query_type=QueryType.ERROR, complexity=Complexity.ERROR),
    )


def _generated_metadata() -> QueryMetadata:
    return QueryMetadata(query_type=QueryType.SELECT, complexity=Complexity.AI_GENERATED)


class ModelResponseExtractor:
    """Turns a raw provider response into a GeneratedQuery.

    ``extract`` never raises: every failure is reported as an error result.

    Example:
        >>> extractor = ModelResponseExtractor("gemini")
        >>> query = extractor.extract(raw_response_text)
        >>> query.generated_sql
        'SELECT name FROM users LIMIT 10'
    """

    def __init__(self, parser: str | ResponseEnvelopeParser = "gemini") -> None:
        """Initialize the extractor.

        Args:
            parser: Envelope parser name or instance matching the provider.
        """
        self._parser = get_envelope_parser(parser)

    @property
    def parser(self) -> ResponseEnvelopeParser:
        return self._parser

    def extract(self, raw_response: str) -> GeneratedQuery:
        """Extract the generated query from a raw envelope.

        Args:
            raw_response: Envelope text exactly as returned by the provider

        Returns:
            GeneratedQuery (an error result when the envelope is unusable)
        """
        try:
            envelope = json.loads(raw_response)
        except (TypeError, ValueError, RecursionError) as e:
            logger.error(f"Model response is not valid JSON: {e}")
            return error_result(f"Failed to parse model response: {e}")

        try:
            payload = self._parser.payload(envelope)
        except EnvelopeError as e:
            logger.error(f"Model response has no usable payload: {e}")
            return error_result(str(e))

        cleaned = strip_code_fences(payload)

        structured = self._parse_structured(cleaned)
        if structured is not None:
            return structured

        return self._raw_text_result(payload, cleaned)

    def _parse_structured(self, cleaned: str) -> GeneratedQuery | None:
        try:
            data = json.loads(cleaned)
        except (ValueError, RecursionError):
            return None
        if not isinstance(data, dict) or not isinstance(data.get("sql"), str):
            return None

        warnings = data.get("warnings") or []
        if not isinstance(warnings, list):
            warnings = [warnings]
        explanation = data.get("explanation")

        return GeneratedQuery(
            generated_sql=data["sql"],
            explanation="" if explanation is None else str(explanation),
            warnings=[str(w) for w in warnings],
            is_executable=True,
            metadata=_generated_metadata(),
        )

    def _raw_text_result(self, payload: str, cleaned: str) -> GeneratedQuery:
        sql = cleaned
        if not SQL_START_PATTERN.match(cleaned):
            sql = extract_sql_from_text(payload) or cleaned
        logger.debug("Model payload was not a JSON object, using raw text")

        return GeneratedQuery(
            generated_sql=sql,
            explanation=RAW_TEXT_EXPLANATION,
            warnings=[],
            is_executable=True,
            metadata=_generated_metadata(),
        )
