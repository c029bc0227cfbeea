"""Tests for bounded query execution."""

from __future__ import annotations

from pathlib import Path

from sqlalchemy import event, inspect

from sqlassist.core.connection import DatabaseConnection
from sqlassist.core.types import ExecutionStatus, QueryType
from sqlassist.query.executor import BoundedQueryExecutor, execute_query

SLOW_QUERY = (
    "WITH RECURSIVE cnt(x) AS (SELECT 1 UNION ALL SELECT x + 1 FROM cnt WHERE x < 100000000) "
    "SELECT COUNT(*) FROM cnt"
)


class TestSuccessfulExecution:
    """Queries that run."""

    def test_rows_and_columns(self, shop_connection: DatabaseConnection) -> None:
        result = BoundedQueryExecutor().execute(
            shop_connection, "SELECT id, name FROM users WHERE id <= 3 ORDER BY id"
        )

        assert result.status == ExecutionStatus.SUCCESS
        assert result.error is None
        assert result.column_names == ["id", "name"]
        assert result.row_count == 3
        assert result.results[0] == {"id": 1, "name": "User 1"}
        assert list(result.results[0]) == ["id", "name"]
        assert result.execution_time_ms >= 0

    def test_column_types_parallel_to_names(self, shop_connection: DatabaseConnection) -> None:
        """Types are inferred from values when the driver has none."""
        result = BoundedQueryExecutor().execute(
            shop_connection, "SELECT id, name, created_at FROM users LIMIT 1"
        )

        assert len(result.column_types) == len(result.column_names)
        assert result.column_types[:2] == ["INTEGER", "TEXT"]
        assert result.column_types[2] == "UNKNOWN"

    def test_limit_caps_rows(self, shop_connection: DatabaseConnection) -> None:
        """limit=10 against 50 rows returns 10."""
        result = BoundedQueryExecutor().execute(shop_connection, "SELECT * FROM users", limit=10)

        assert result.row_count == 10
        assert len(result.results) == 10

    def test_max_rows_caps_large_limits(self, shop_connection: DatabaseConnection) -> None:
        """Requested limits never exceed max_rows."""
        executor = BoundedQueryExecutor(max_rows=20)

        assert executor.execute(shop_connection, "SELECT * FROM users", limit=5000).row_count == 20
        assert executor.execute(shop_connection, "SELECT * FROM users").row_count == 20

    def test_row_cap(self) -> None:
        executor = BoundedQueryExecutor()

        assert executor.row_cap(None) == 1000
        assert executor.row_cap(10) == 10
        assert executor.row_cap(5000) == 1000
        assert executor.row_cap(0) == 1000

    def test_rows_are_streamed(self, shop_connection: DatabaseConnection) -> None:
        """The statement runs on a streaming cursor buffered to the row cap."""
        seen: list[dict] = []

        @event.listens_for(shop_connection.engine, "before_cursor_execute")
        def record_options(conn, cursor, statement, parameters, context, executemany):
            if "FROM users" in statement:
                seen.append(dict(context.execution_options))

        BoundedQueryExecutor(max_rows=20).execute(shop_connection, "SELECT * FROM users")

        assert len(seen) == 1
        assert seen[0]["stream_results"] is True
        assert seen[0]["max_row_buffer"] == 20

    def test_offset_skips_rows(self, shop_connection: DatabaseConnection) -> None:
        result = BoundedQueryExecutor().execute(
            shop_connection, "SELECT id FROM users ORDER BY id", limit=5, offset=10
        )

        assert [row["id"] for row in result.results] == [11, 12, 13, 14, 15]

    def test_offset_past_end(self, shop_connection: DatabaseConnection) -> None:
        result = BoundedQueryExecutor().execute(
            shop_connection, "SELECT id FROM users", offset=500
        )

        assert result.status == ExecutionStatus.SUCCESS
        assert result.row_count == 0

    def test_metadata(self, shop_connection: DatabaseConnection) -> None:
        """Successful results carry syntactic metadata."""
        result = BoundedQueryExecutor().execute(
            shop_connection,
            "SELECT u.name, COUNT(o.id) AS n FROM users u JOIN orders o ON o.user_id = u.id "
            "GROUP BY u.name LIMIT 5",
        )

        assert result.status == ExecutionStatus.SUCCESS
        assert result.metadata is not None
        assert result.metadata.has_joins
        assert result.metadata.has_aggregations
        assert set(result.metadata.tables_involved) == {"users", "orders"}

    def test_convenience_function(self, shop_connection: DatabaseConnection) -> None:
        result = execute_query(shop_connection, "SELECT COUNT(*) AS n FROM users")

        assert result.results == [{"n": 50}]


class TestDryRun:
    """dry_run validates and analyzes only."""

    def test_dry_run(self, shop_connection: DatabaseConnection) -> None:
        result = BoundedQueryExecutor().execute(
            shop_connection, "SELECT * FROM users", dry_run=True
        )

        assert result.status == ExecutionStatus.DRY_RUN_SUCCESS
        assert result.row_count == 0
        assert result.results == []
        assert result.metadata is not None
        assert result.metadata.query_type == QueryType.SELECT

    def test_dry_run_does_not_connect(self, tmp_path: Path) -> None:
        """No connection is opened for a dry run."""
        connection = DatabaseConnection(f"sqlite:///{tmp_path}/missing/dir/x.db")

        result = BoundedQueryExecutor().execute(connection, "SELECT 1", dry_run=True)

        assert result.status == ExecutionStatus.DRY_RUN_SUCCESS


class TestFailures:
    """Rejected and failing queries."""

    def test_validation_failed(self, shop_connection: DatabaseConnection) -> None:
        """Invalid SQL never reaches the database."""
        result = BoundedQueryExecutor().execute(shop_connection, "DROP TABLE users")

        assert result.status == ExecutionStatus.VALIDATION_FAILED
        assert result.metadata is None
        assert result.row_count == 0
        assert result.error is not None
        assert "Destructive operations (DROP/TRUNCATE) are strictly forbidden" in result.error
        assert "; " in result.error

        with shop_connection.connect() as conn:
            assert "users" in inspect(conn).get_table_names()

    def test_stacked_statement_rejected(self, shop_connection: DatabaseConnection) -> None:
        result = BoundedQueryExecutor().execute(
            shop_connection, "SELECT * FROM users; DELETE FROM users"
        )

        assert result.status == ExecutionStatus.VALIDATION_FAILED

    def test_driver_error(self, shop_connection: DatabaseConnection) -> None:
        """Driver failures become ERROR results with metadata."""
        result = BoundedQueryExecutor().execute(shop_connection, "SELECT nope FROM missing_table")

        assert result.status == ExecutionStatus.ERROR
        assert result.error is not None
        assert "no such table" in result.error
        assert result.results == []
        assert result.column_names == []
        assert result.metadata is not None

    def test_unreachable_database(self, tmp_path: Path) -> None:
        connection = DatabaseConnection(f"sqlite:///{tmp_path}/missing/dir/x.db")

        result = BoundedQueryExecutor().execute(connection, "SELECT 1")

        assert result.status == ExecutionStatus.ERROR
        assert result.error is not None

    def test_statement_timeout(self, shop_connection: DatabaseConnection) -> None:
        """Long-running statements are interrupted."""
        executor = BoundedQueryExecutor(statement_timeout_seconds=0)

        result = executor.execute(shop_connection, SLOW_QUERY)

        assert result.status == ExecutionStatus.ERROR
        assert result.error is not None
        assert "interrupted" in result.error
