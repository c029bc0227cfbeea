"""Core components for SQLAssist."""

from sqlassist.core.connection import ConnectionDescriptor, DatabaseConnection, DatabaseType
from sqlassist.core.types import (
    ColumnInfo,
    Complexity,
    ExecutionResult,
    ExecutionStatus,
    ForeignKeyInfo,
    GeneratedQuery,
    IndexInfo,
    QueryMetadata,
    QueryType,
    ReferentialAction,
    SchemaSnapshot,
    TableInfo,
    ValidationResult,
    ViewInfo,
)

__all__ = [
    "ConnectionDescriptor",
    "DatabaseConnection",
    "DatabaseType",
    "ColumnInfo",
    "IndexInfo",
    "ForeignKeyInfo",
    "TableInfo",
    "ViewInfo",
    "SchemaSnapshot",
    "ReferentialAction",
    "QueryType",
    "Complexity",
    "QueryMetadata",
    "GeneratedQuery",
    "ValidationResult",
    "ExecutionStatus",
    "ExecutionResult",
]
