"""Tests for model response extraction."""

from __future__ import annotations

import json
from collections.abc import Callable

import pytest

from sqlassist.core.types import Complexity, QueryType
from sqlassist.query.extractor import (
    NO_CANDIDATES_MESSAGE,
    RAW_TEXT_EXPLANATION,
    SERVICE_UNAVAILABLE_WARNING,
    ChatCompletionEnvelopeParser,
    GeminiEnvelopeParser,
    ModelResponseExtractor,
    error_result,
    extract_sql_from_text,
    get_envelope_parser,
)


class TestStructuredPayload:
    """Payloads that follow the JSON response contract."""

    def test_fenced_json_payload(self, make_gemini_envelope: Callable[[str], str]) -> None:
        """```json fences are stripped and the object is used."""
        payload = (
            "```json\n"
            '{"sql": "SELECT name FROM users LIMIT 10", '
            '"explanation": "Lists ten users", "warnings": ["no index on name"]}\n'
            "```"
        )
        result = ModelResponseExtractor("gemini").extract(make_gemini_envelope(payload))

        assert result.is_executable
        assert result.generated_sql == "SELECT name FROM users LIMIT 10"
        assert result.explanation == "Lists ten users"
        assert result.warnings == ["no index on name"]
        assert result.metadata.query_type == QueryType.SELECT
        assert result.metadata.complexity == Complexity.AI_GENERATED
        assert result.metadata.tables_involved == []
        assert not result.metadata.has_joins

    def test_unfenced_json_payload(self, make_gemini_envelope: Callable[[str], str]) -> None:
        """A bare JSON object works too."""
        payload = json.dumps({"sql": "SELECT 1", "explanation": "one", "warnings": []})
        result = ModelResponseExtractor().extract(make_gemini_envelope(payload))

        assert result.generated_sql == "SELECT 1"
        assert result.warnings == []

    def test_openai_envelope(self, make_openai_envelope: Callable[[str], str]) -> None:
        """Chat completion envelopes are read from choices[0].message.content."""
        payload = json.dumps({"sql": "SELECT 2", "explanation": "two", "warnings": []})
        result = ModelResponseExtractor("openai").extract(make_openai_envelope(payload))

        assert result.is_executable
        assert result.generated_sql == "SELECT 2"


class TestRawTextFallback:
    """Payloads that are not a JSON object."""

    def test_bad_json_in_fence(self, make_gemini_envelope: Callable[[str], str]) -> None:
        """Broken JSON becomes an executable raw-text result."""
        result = ModelResponseExtractor().extract(make_gemini_envelope("```json {bad} ```"))

        assert result.is_executable
        assert result.generated_sql == "{bad}"
        assert result.explanation == RAW_TEXT_EXPLANATION
        assert result.warnings == []

    def test_plain_sql(self, make_gemini_envelope: Callable[[str], str]) -> None:
        """Plain SQL is used verbatim."""
        result = ModelResponseExtractor().extract(
            make_gemini_envelope("SELECT id FROM orders WHERE total > 100")
        )

        assert result.generated_sql == "SELECT id FROM orders WHERE total > 100"
        assert result.metadata.complexity == Complexity.AI_GENERATED

    def test_sql_block_inside_prose(self, make_gemini_envelope: Callable[[str], str]) -> None:
        """A ```sql block inside prose is recovered."""
        payload = "Here is your query:\n```sql\nSELECT name FROM users;\n```\nEnjoy!"
        result = ModelResponseExtractor().extract(make_gemini_envelope(payload))

        assert result.generated_sql == "SELECT name FROM users;"

    def test_select_inside_prose(self, make_gemini_envelope: Callable[[str], str]) -> None:
        """Without fences the first SELECT up to ';' is taken."""
        payload = "You can run SELECT name FROM users; to list names."
        result = ModelResponseExtractor().extract(make_gemini_envelope(payload))

        assert result.generated_sql == "SELECT name FROM users;"

    def test_prose_without_sql(self, make_gemini_envelope: Callable[[str], str]) -> None:
        """Text without SQL is kept verbatim."""
        result = ModelResponseExtractor().extract(make_gemini_envelope("I cannot help with that."))

        assert result.is_executable
        assert result.generated_sql == "I cannot help with that."


class TestErrorResults:
    """Unusable envelopes."""

    def test_non_json_envelope(self) -> None:
        """Envelope that is not JSON."""
        result = ModelResponseExtractor().extract("<html>502 Bad Gateway</html>")

        assert not result.is_executable
        assert result.generated_sql is None
        assert result.explanation.startswith("Failed to parse model response:")
        assert result.warnings == [SERVICE_UNAVAILABLE_WARNING]
        assert result.metadata.query_type == QueryType.ERROR
        assert result.metadata.complexity == Complexity.ERROR

    def test_no_candidates(self) -> None:
        """Envelope without candidates."""
        result = ModelResponseExtractor().extract(json.dumps({"candidates": []}))

        assert result.generated_sql is None
        assert result.explanation == NO_CANDIDATES_MESSAGE

    def test_missing_text_part(self) -> None:
        """Candidate without parts."""
        envelope = json.dumps({"candidates": [{"content": {"parts": []}}]})
        result = ModelResponseExtractor().extract(envelope)

        assert result.explanation == NO_CANDIDATES_MESSAGE

    def test_wrong_provider_format(self, make_gemini_envelope: Callable[[str], str]) -> None:
        """A Gemini envelope read as chat completion has no payload."""
        result = ModelResponseExtractor("openai").extract(make_gemini_envelope("SELECT 1"))

        assert result.generated_sql is None
        assert result.explanation == NO_CANDIDATES_MESSAGE

    @pytest.mark.parametrize("raw", ["", "null", "[]", "42", '"text"', None])
    def test_never_raises(self, raw: str | None) -> None:
        """extract returns an error result for any junk input."""
        result = ModelResponseExtractor().extract(raw)  # type: ignore[arg-type]

        assert result.generated_sql is None
        assert not result.is_executable

    def test_deeply_nested_envelope(self) -> None:
        """Nesting too deep to decode is an error result."""
        result = ModelResponseExtractor().extract("[" * 100000 + "]" * 100000)

        assert result.generated_sql is None
        assert result.explanation.startswith("Failed to parse model response:")

    def test_deeply_nested_payload(self, make_gemini_envelope: Callable[[str], str]) -> None:
        """A payload nested too deep to decode falls back to raw text."""
        payload = "[" * 100000 + "]" * 100000

        result = ModelResponseExtractor().extract(make_gemini_envelope(payload))

        assert result.generated_sql == payload
        assert result.explanation == RAW_TEXT_EXPLANATION

    def test_error_result(self) -> None:
        """error_result carries the message and ERROR tags."""
        result = error_result("Gemini API error: 500")

        assert result.explanation == "Gemini API error: 500"
        assert result.metadata.query_type == QueryType.ERROR


class TestHelpers:
    """Envelope parser selection and text heuristics."""

    def test_get_envelope_parser(self) -> None:
        assert isinstance(get_envelope_parser("gemini"), GeminiEnvelopeParser)
        assert isinstance(get_envelope_parser("openai"), ChatCompletionEnvelopeParser)

        parser = GeminiEnvelopeParser()
        assert get_envelope_parser(parser) is parser

    def test_unknown_parser(self) -> None:
        with pytest.raises(ValueError, match="Unknown response format"):
            get_envelope_parser("claude-xml")

    def test_extract_sql_rejects_non_select(self) -> None:
        """Candidates must start with SELECT."""
        assert extract_sql_from_text("```\nDROP TABLE users\n```") is None
        assert extract_sql_from_text("no sql here") is None
