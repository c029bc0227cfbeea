"""SQLAssist: natural-language questions in, bounded read-only SQL out.

The SQLAssistant class wires the pipeline together:
schema capture, prompt compilation, model call, response extraction,
validation and bounded execution.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from sqlalchemy.engine import URL

from sqlassist.config import Settings, get_settings
from sqlassist.core.connection import ConnectionDescriptor, DatabaseConnection
from sqlassist.core.types import ExecutionResult, GeneratedQuery, SchemaSnapshot, ValidationResult
from sqlassist.exceptions import ConfigurationError, ModelError
from sqlassist.llm import ModelProvider, get_provider
from sqlassist.query.executor import BoundedQueryExecutor
from sqlassist.query.extractor import (
    EnvelopeError,
    ModelResponseExtractor,
    error_result,
    get_envelope_parser,
)
from sqlassist.query.prompt import PromptCompiler
from sqlassist.query.validator import QueryValidator
from sqlassist.schema.introspector import SchemaSnapshotBuilder

logger = logging.getLogger(__name__)

EXPLAIN_SYSTEM_PROMPT = "You are a SQL expert. Explain SQL queries in simple, clear language."
EXPLAIN_FALLBACK = "Unable to generate explanation"

Target = ConnectionDescriptor | DatabaseConnection | URL | str


class SQLAssistant:
    """End-to-end natural language to SQL assistant.

    Example:
        >>> assistant = SQLAssistant()
        >>> target = ConnectionDescriptor(type="sqlite", database="shop.db")
        >>> generated = assistant.generate_query(target, "Ten most recent orders")
        >>> result = assistant.execute_query(target, generated.generated_sql, limit=10)
        >>> result.row_count
        10
    """

    def __init__(
        self,
        provider: ModelProvider | str | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the assistant.

        Args:
            provider: Model provider instance or name. When None, the provider
                      named by settings is created on first use.
            settings: Settings (loaded from the environment if None)
        """
        self._settings = settings or get_settings()
        self._provider_choice = provider
        self._provider: ModelProvider | None = (
            provider if isinstance(provider, ModelProvider) else None
        )

        self._validator = QueryValidator(dialect=self._settings.sql_dialect)
        self._compiler = PromptCompiler()
        self._executor = BoundedQueryExecutor(
            validator=self._validator,
            statement_timeout_seconds=self._settings.statement_timeout_seconds,
            max_rows=self._settings.max_rows,
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def validator(self) -> QueryValidator:
        return self._validator

    @property
    def provider(self) -> ModelProvider:
        """Model provider, created from settings on first access.

        Raises:
            ConfigurationError: If the provider is not configured
        """
        if self._provider is None:
            name = self._provider_choice or self._settings.model_provider
            try:
                self._provider = get_provider(name, **self._settings.provider_kwargs())
            except ValueError as e:
                raise ConfigurationError(str(e)) from e
        return self._provider

    @contextmanager
    def _open(self, target: Target) -> Iterator[DatabaseConnection]:
        """Yield a connection for ``target``; connections built here are closed on exit."""
        if isinstance(target, DatabaseConnection):
            yield target
            return
        connection = DatabaseConnection(target)
        try:
            yield connection
        finally:
            connection.close()

    def test_connection(self, target: Target) -> str:
        """Check that a database is reachable.

        Args:
            target: Connection descriptor, open connection or database URL

        Returns:
            Connection id of the target

        Raises:
            ConnectivityError: If the connection test fails
        """
        with self._open(target) as connection:
            connection.test_connection()
            descriptor = connection.descriptor or ConnectionDescriptor.from_url(connection.url)
        connection_id = descriptor.connection_id()
        logger.info(f"Connection {connection_id} verified")
        return connection_id

    def get_schema(self, target: Target, schema: str | None = None) -> SchemaSnapshot:
        """Capture a schema snapshot.

        Raises:
            ConnectivityError: If the database cannot be introspected
        """
        with self._open(target) as connection:
            return SchemaSnapshotBuilder(schema=schema).build(connection)

    def generate_query(
        self,
        target: Target | SchemaSnapshot,
        natural_language_query: str,
        context: Mapping[str, Any] | None = None,
    ) -> GeneratedQuery:
        """Ask the model for SQL answering a question.

        Model failures are returned as an error GeneratedQuery.

        Args:
            target: Database to describe, or a snapshot already captured
            natural_language_query: The user's question
            context: Optional extra key/value hints

        Returns:
            GeneratedQuery

        Raises:
            ConnectivityError: If the schema snapshot cannot be captured
        """
        snapshot = target if isinstance(target, SchemaSnapshot) else self.get_schema(target)
        prompt = self._compiler.compile(snapshot, natural_language_query, context)

        try:
            provider = self.provider
            raw_response = provider.generate(prompt)
        except (ConfigurationError, ModelError) as e:
            logger.error(f"Query generation failed: {e.message}")
            return error_result(e.message)

        return ModelResponseExtractor(provider.envelope_format).extract(raw_response)

    def validate_query(self, sql: str | None) -> ValidationResult:
        """Validate SQL without executing it."""
        return self._validator.validate(sql)

    def execute_query(
        self,
        target: Target,
        sql: str | None,
        limit: int | None = None,
        offset: int | None = None,
        dry_run: bool = False,
    ) -> ExecutionResult:
        """Validate then execute SQL within the configured bounds."""
        with self._open(target) as connection:
            return self._executor.execute(
                connection, sql, limit=limit, offset=offset, dry_run=dry_run
            )

    def explain_query(self, sql: str) -> str:
        """Explain SQL in plain language.

        Returns:
            The model's explanation, or "Unable to generate explanation"
        """
        try:
            provider = self.provider
            raw_response = provider.generate(
                f"Explain this SQL query: {sql}", system_prompt=EXPLAIN_SYSTEM_PROMPT
            )
            envelope = json.loads(raw_response)
            return get_envelope_parser(provider.envelope_format).payload(envelope).strip()
        except (ConfigurationError, ModelError, EnvelopeError, ValueError) as e:
            logger.error(f"Query explanation failed: {e}")
            return EXPLAIN_FALLBACK
