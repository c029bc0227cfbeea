"""Bounded execution of validated SQL.

Every statement is validated before it reaches the database, runs under a
statement timeout and returns at most ``max_rows`` rows.
"""

from __future__ import annotations

import logging
import time
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from sqlassist.core.types import ExecutionResult, ExecutionStatus
from sqlassist.exceptions import ConnectivityError
from sqlassist.query.analysis import analyze_query
from sqlassist.query.validator import QueryValidator

if TYPE_CHECKING:
    from sqlalchemy import Connection, CursorResult

    from sqlassist.core.connection import DatabaseConnection

logger = logging.getLogger(__name__)

DEFAULT_STATEMENT_TIMEOUT_SECONDS = 30
DEFAULT_MAX_ROWS = 1000

# SQLite progress handler granularity (virtual machine instructions)
SQLITE_PROGRESS_STEPS = 1000

_PYTHON_TYPE_NAMES: list[tuple[type, str]] = [
    (bool, "BOOLEAN"),
    (int, "INTEGER"),
    (float, "REAL"),
    (Decimal, "DECIMAL"),
    (str, "TEXT"),
    (bytes, "BLOB"),
    (datetime, "TIMESTAMP"),
    (date, "DATE"),
]


def _infer_type_name(values: list[Any]) -> str:
    for value in values:
        if value is None:
            continue
        for python_type, name in _PYTHON_TYPE_NAMES:
            if isinstance(value, python_type):
                return name
        return type(value).__name__.upper()
    return "UNKNOWN"


def _driver_message(error: Exception) -> str:
    if isinstance(error, DBAPIError) and error.orig is not None:
        return str(error.orig)
    return str(error)


class BoundedQueryExecutor:
    """Runs read-only SQL against a target database within fixed bounds.

    Example:
        >>> executor = BoundedQueryExecutor()
        >>> result = executor.execute(connection, "SELECT name FROM users", limit=10)
        >>> result.status
        'SUCCESS'
    """

    def __init__(
        self,
        validator: QueryValidator | None = None,
        statement_timeout_seconds: int = DEFAULT_STATEMENT_TIMEOUT_SECONDS,
        max_rows: int = DEFAULT_MAX_ROWS,
    ) -> None:
        """Initialize the executor.

        Args:
            validator: Validator applied before execution (default validator if None)
            statement_timeout_seconds: Per-statement timeout
            max_rows: Hard cap on returned rows
        """
        self._validator = validator or QueryValidator()
        self._timeout_seconds = statement_timeout_seconds
        self._max_rows = max_rows

    @property
    def max_rows(self) -> int:
        return self._max_rows

    def row_cap(self, limit: int | None) -> int:
        """Number of rows a request may return."""
        if limit is None or limit <= 0:
            return self._max_rows
        return min(limit, self._max_rows)

    def execute(
        self,
        connection: DatabaseConnection,
        sql: str | None,
        limit: int | None = None,
        offset: int | None = None,
        dry_run: bool = False,
    ) -> ExecutionResult:
        """Validate then execute a query.

        Args:
            connection: Target database
            sql: SQL text to run
            limit: Requested maximum rows (capped at max_rows)
            offset: Rows to skip before the cap is applied
            dry_run: Validate and analyze only, without touching the database

        Returns:
            ExecutionResult. Failures are reported in the result, never raised.
        """
        validation = self._validator.validate(sql)
        if not validation.is_valid:
            logger.warning(f"Query failed validation: {validation.errors}")
            return ExecutionResult(
                status=ExecutionStatus.VALIDATION_FAILED,
                error="; ".join(validation.errors),
            )

        statement = validation.sanitized_query or ""
        metadata = analyze_query(statement, self._validator)

        if dry_run:
            return ExecutionResult(status=ExecutionStatus.DRY_RUN_SUCCESS, metadata=metadata)

        cap = self.row_cap(limit)
        start_time = time.perf_counter()
        try:
            with connection.connect() as conn:
                self._apply_timeout(conn)
                start_time = time.perf_counter()
                result = conn.execution_options(
                    stream_results=True, max_row_buffer=cap
                ).execute(text(statement))
                columns, rows, column_types = self._fetch(result, cap, offset or 0)
                execution_time_ms = (time.perf_counter() - start_time) * 1000
        except (SQLAlchemyError, ConnectivityError) as e:
            execution_time_ms = (time.perf_counter() - start_time) * 1000
            message = e.message if isinstance(e, ConnectivityError) else _driver_message(e)
            logger.warning(f"Query execution failed: {message}")
            return ExecutionResult(
                status=ExecutionStatus.ERROR,
                error=message,
                execution_time_ms=execution_time_ms,
                metadata=metadata,
            )

        logger.debug(f"Query returned {len(rows)} rows in {execution_time_ms:.2f}ms")
        return ExecutionResult(
            results=rows,
            column_names=columns,
            column_types=column_types,
            row_count=len(rows),
            execution_time_ms=execution_time_ms,
            status=ExecutionStatus.SUCCESS,
            metadata=metadata,
        )

    def _apply_timeout(self, conn: Connection) -> None:
        """Install the statement timeout for the dialect of ``conn``."""
        timeout_ms = int(self._timeout_seconds * 1000)
        dialect = conn.dialect.name

        if dialect == "postgresql":
            conn.execute(text(f"SET LOCAL statement_timeout = {timeout_ms}"))
        elif dialect == "mysql":
            conn.execute(text(f"SET SESSION MAX_EXECUTION_TIME = {timeout_ms}"))
        elif dialect == "sqlite":
            deadline = time.monotonic() + self._timeout_seconds

            def _interrupt() -> int:
                # Non-zero aborts the running statement
                return 1 if time.monotonic() > deadline else 0

            raw = conn.connection.driver_connection
            raw.set_progress_handler(_interrupt, SQLITE_PROGRESS_STEPS)

    def _fetch(
        self, result: CursorResult[Any], cap: int, offset: int
    ) -> tuple[list[str], list[dict[str, Any]], list[str]]:
        if not result.returns_rows:
            return [], [], []

        columns = list(result.keys())
        description = result.cursor.description if result.cursor is not None else None

        skipped = 0
        while skipped < offset:
            chunk = result.fetchmany(min(offset - skipped, self._max_rows))
            if not chunk:
                break
            skipped += len(chunk)

        raw_rows = result.fetchmany(cap) if cap > 0 else []
        rows = [dict(zip(columns, row, strict=True)) for row in raw_rows]
        column_types = self._column_types(columns, description, raw_rows)
        return columns, rows, column_types

    @staticmethod
    def _column_types(
        columns: list[str], description: Any, raw_rows: list[Any]
    ) -> list[str]:
        """Type names parallel to ``columns``.

        Uses the driver's type name when it reports one, otherwise infers
        it from the fetched values.
        """
        column_types = []
        for index in range(len(columns)):
            entry = description[index] if description and index < len(description) else None
            type_display = getattr(entry, "type_display", None)
            type_code = entry[1] if entry is not None else None
            if isinstance(type_display, str) and type_display:
                column_types.append(type_display.upper())
            elif isinstance(type_code, str) and type_code:
                column_types.append(type_code.upper())
            else:
                column_types.append(_infer_type_name([row[index] for row in raw_rows]))
        return column_types


def execute_query(
    connection: DatabaseConnection,
    sql: str | None,
    limit: int | None = None,
    offset: int | None = None,
    dry_run: bool = False,
) -> ExecutionResult:
    """Convenience function to run a query with default bounds."""
    return BoundedQueryExecutor().execute(
        connection, sql, limit=limit, offset=offset, dry_run=dry_run
    )
