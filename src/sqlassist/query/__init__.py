"""LLM-driven query pipeline for SQLAssist.

Architecture:
    1. Prompt Compiler - Renders schema and request into model prompt text
    2. Response Extractor - Pulls SQL out of the provider's response envelope
    3. Query Validator - Validates and sanitizes LLM-generated SQL
    4. Query Executor - Executes validated SQL within row and time bounds

Example:
    prompt = compile_prompt(snapshot, "Ten most recent orders")
    generated = ModelResponseExtractor("gemini").extract(provider.generate(prompt))
    result = BoundedQueryExecutor().execute(connection, generated.generated_sql, limit=10)
"""

from sqlassist.query.analysis import analyze_query
from sqlassist.query.executor import BoundedQueryExecutor, execute_query
from sqlassist.query.extractor import (
    ChatCompletionEnvelopeParser,
    GeminiEnvelopeParser,
    ModelResponseExtractor,
    ResponseEnvelopeParser,
    get_envelope_parser,
)
from sqlassist.query.prompt import PromptCompiler, compile_prompt
from sqlassist.query.validator import QueryValidator, sanitize, validate_query

__all__ = [
    "PromptCompiler",
    "compile_prompt",
    "ResponseEnvelopeParser",
    "GeminiEnvelopeParser",
    "ChatCompletionEnvelopeParser",
    "ModelResponseExtractor",
    "get_envelope_parser",
    "QueryValidator",
    "sanitize",
    "validate_query",
    "analyze_query",
    "BoundedQueryExecutor",
    "execute_query",
]
