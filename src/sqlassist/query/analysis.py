"""Lightweight syntactic classification of SQL statements."""

from __future__ import annotations

from sqlassist.core.types import Complexity, QueryMetadata, QueryType
from sqlassist.query.validator import QueryValidator

# Leading keywords that name a statement kind; everything else reads as SELECT
_LEADING_KEYWORDS = (
    QueryType.INSERT,
    QueryType.UPDATE,
    QueryType.DELETE,
    QueryType.CREATE,
    QueryType.DROP,
    QueryType.ALTER,
)

AGGREGATE_MARKERS = ("COUNT(", "SUM(", "AVG(", "MIN(", "MAX(", "GROUP BY")


def detect_query_type(sql: str) -> QueryType:
    """Statement kind from the leading keyword (SELECT when unrecognized)."""
    upper_sql = sql.strip().upper()
    for query_type in _LEADING_KEYWORDS:
        if upper_sql.startswith(query_type.value):
            return query_type
    return QueryType.SELECT


def analyze_query(sql: str, validator: QueryValidator | None = None) -> QueryMetadata:
    """Classify a statement without executing it.

    Args:
        sql: SQL text
        validator: Validator used to extract table names (a default one if None)

    Returns:
        QueryMetadata with kind, structural flags, complexity and tables
    """
    upper_sql = sql.strip().upper()

    has_joins = " JOIN " in upper_sql
    has_subqueries = "(SELECT" in upper_sql or "( SELECT" in upper_sql
    has_aggregations = any(marker in upper_sql for marker in AGGREGATE_MARKERS)

    if has_subqueries or (has_joins and has_aggregations):
        complexity = Complexity.COMPLEX
    elif has_joins or has_aggregations:
        complexity = Complexity.MODERATE
    else:
        complexity = Complexity.SIMPLE

    validator = validator or QueryValidator()
    return QueryMetadata(
        query_type=detect_query_type(sql),
        tables_involved=validator.extract_table_names(sql),
        has_joins=has_joins,
        has_subqueries=has_subqueries,
        has_aggregations=has_aggregations,
        complexity=complexity,
    )
