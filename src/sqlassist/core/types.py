"""Core value objects for SQLAssist.

All types are immutable once built and JSON-serializable for API consumers.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, model_validator


def utc_now() -> datetime:
    """Timezone-aware timestamp used for generated metadata."""
    return datetime.now(UTC)


class ReferentialAction(StrEnum):
    """Resolved ON UPDATE / ON DELETE action of a foreign key."""

    CASCADE = "CASCADE"
    RESTRICT = "RESTRICT"
    SET_NULL = "SET NULL"
    SET_DEFAULT = "SET DEFAULT"
    NO_ACTION = "NO ACTION"

    @classmethod
    def from_vendor(cls, action: str | None) -> ReferentialAction:
        """Map a reflected action string to a known action (default NO ACTION)."""
        if not action:
            return cls.NO_ACTION
        normalized = " ".join(action.replace("_", " ").upper().split())
        try:
            return cls(normalized)
        except ValueError:
            return cls.NO_ACTION


class QueryType(StrEnum):
    """Statement kind inferred for a query."""

    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    CREATE = "CREATE"
    DROP = "DROP"
    ALTER = "ALTER"
    ERROR = "ERROR"


class Complexity(StrEnum):
    """Coarse complexity tier of a query."""

    SIMPLE = "SIMPLE"
    MODERATE = "MODERATE"
    COMPLEX = "COMPLEX"
    AI_GENERATED = "AI_GENERATED"  # Not analyzed yet, straight from the model
    ERROR = "ERROR"


class ExecutionStatus(StrEnum):
    """Outcome tag of an execution request."""

    SUCCESS = "SUCCESS"
    ERROR = "ERROR"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    DRY_RUN_SUCCESS = "DRY_RUN_SUCCESS"


class _Frozen(BaseModel):
    model_config = {"frozen": True, "use_enum_values": True}


# === Schema Snapshot ===


class ColumnInfo(_Frozen):
    """A column of a table or view."""

    name: str
    data_type: str = Field(description="Raw vendor type, e.g. VARCHAR(120)")
    column_type: str = Field(description="Normalized type name, e.g. VARCHAR")
    nullable: bool = True
    is_primary_key: bool = False
    is_auto_increment: bool = False
    default_value: str | None = None
    column_size: int | None = None
    precision: int | None = None
    scale: int | None = None
    comment: str | None = None


class IndexInfo(_Frozen):
    """An index, with its columns in index order."""

    name: str
    is_unique: bool
    columns: list[str] = Field(default_factory=list)
    index_type: str | None = None


class ForeignKeyInfo(_Frozen):
    """One column pair of a foreign key constraint."""

    name: str | None
    column_name: str
    referenced_table: str
    referenced_column: str
    on_update: ReferentialAction = ReferentialAction.NO_ACTION
    on_delete: ReferentialAction = ReferentialAction.NO_ACTION


class TableInfo(_Frozen):
    """A base table."""

    name: str
    schema_name: str | None = None
    table_type: str = "TABLE"
    columns: list[ColumnInfo] = Field(default_factory=list)
    indexes: list[IndexInfo] = Field(default_factory=list)
    foreign_keys: list[ForeignKeyInfo] = Field(default_factory=list)
    comment: str | None = None


class ViewInfo(_Frozen):
    """A view. The definition is None when the dialect cannot report it."""

    name: str
    schema_name: str | None = None
    definition: str | None = None
    columns: list[ColumnInfo] = Field(default_factory=list)
    comment: str | None = None


class SchemaSnapshot(_Frozen):
    """Point-in-time description of a database."""

    database_name: str | None
    tables: list[TableInfo] = Field(default_factory=list)
    views: list[ViewInfo] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    def get_table(self, name: str) -> TableInfo | None:
        """Look up a table by name (case-insensitive)."""
        lowered = name.lower()
        for table in self.tables:
            if table.name.lower() == lowered:
                return table
        return None


# === Query pipeline ===


class QueryMetadata(_Frozen):
    """Syntactic classification of a statement.

    ``tables_involved`` is best-effort and may be incomplete.
    """

    query_type: QueryType = QueryType.SELECT
    tables_involved: list[str] = Field(default_factory=list)
    has_joins: bool = False
    has_subqueries: bool = False
    has_aggregations: bool = False
    complexity: Complexity = Complexity.SIMPLE
    timestamp: datetime = Field(default_factory=utc_now)


class GeneratedQuery(_Frozen):
    """SQL extracted from a model response."""

    generated_sql: str | None
    explanation: str
    warnings: list[str] = Field(default_factory=list)
    is_executable: bool = False
    metadata: QueryMetadata


class ValidationResult(_Frozen):
    """Verdict of the query validator.

    ``sanitized_query`` is only present for valid queries.
    """

    is_valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    sanitized_query: str | None = None

    @model_validator(mode="after")
    def _check_verdict(self) -> ValidationResult:
        if self.is_valid == bool(self.errors):
            raise ValueError("is_valid must be true exactly when there are no errors")
        if not self.is_valid and self.sanitized_query is not None:
            raise ValueError("sanitized_query must be absent for invalid queries")
        return self


class ExecutionResult(_Frozen):
    """Rows and metadata of a bounded execution."""

    results: list[dict[str, Any]] = Field(default_factory=list)
    column_names: list[str] = Field(default_factory=list)
    column_types: list[str] = Field(default_factory=list)
    row_count: int = 0
    execution_time_ms: float = 0.0
    status: ExecutionStatus
    error: str | None = None
    metadata: QueryMetadata | None = None
