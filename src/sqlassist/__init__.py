"""SQLAssist - Natural language to safe, bounded SQL.

Captures the schema of a relational database, asks a language model for a
SQL statement answering a question, proves the statement is read-only and
runs it under row and time limits.

Example:
    from sqlassist import ConnectionDescriptor, SQLAssistant

    assistant = SQLAssistant()
    target = ConnectionDescriptor(type="postgresql", host="localhost", database="shop",
                                  username="reader", password="secret")

    # Generate SQL from a question (schema is captured automatically)
    generated = assistant.generate_query(target, "Top 5 customers by total spend")

    # Validate and run it within bounds
    validation = assistant.validate_query(generated.generated_sql)
    result = assistant.execute_query(target, generated.generated_sql, limit=5)
"""

from sqlassist.assistant import SQLAssistant
from sqlassist.config import Settings, get_settings
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
from sqlassist.exceptions import (
    ConfigurationError,
    ConnectivityError,
    ModelError,
    SQLAssistError,
)
from sqlassist.llm import ModelProvider, get_provider
from sqlassist.query import (
    BoundedQueryExecutor,
    ModelResponseExtractor,
    PromptCompiler,
    QueryValidator,
    ResponseEnvelopeParser,
    analyze_query,
    sanitize,
)
from sqlassist.schema import SchemaSnapshotBuilder

__version__ = "0.1.0"

__all__ = [
    # Main classes
    "SQLAssistant",
    "Settings",
    "get_settings",
    # Connections
    "ConnectionDescriptor",
    "DatabaseConnection",
    "DatabaseType",
    # Schema snapshot
    "SchemaSnapshotBuilder",
    "SchemaSnapshot",
    "TableInfo",
    "ViewInfo",
    "ColumnInfo",
    "IndexInfo",
    "ForeignKeyInfo",
    "ReferentialAction",
    # Query pipeline
    "PromptCompiler",
    "ResponseEnvelopeParser",
    "ModelResponseExtractor",
    "QueryValidator",
    "sanitize",
    "analyze_query",
    "BoundedQueryExecutor",
    "QueryType",
    "Complexity",
    "QueryMetadata",
    "GeneratedQuery",
    "ValidationResult",
    "ExecutionStatus",
    "ExecutionResult",
    # Model providers
    "ModelProvider",
    "get_provider",
    # Exceptions
    "SQLAssistError",
    "ConnectivityError",
    "ModelError",
    "ConfigurationError",
]
