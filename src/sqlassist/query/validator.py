"""SQL Query Validator for LLM-generated queries.

Validates and sanitizes SQL queries before execution to ensure:
- Only SELECT statements are allowed
- No stacked statements, dangerous functions or administrative commands
- Suspicious injection patterns are reported
- Costly query shapes come back as performance suggestions

This is a defense-in-depth sieve of syntactic and lexical checks, not a formal
proof of safety. Every stage runs, so a single result lists all findings.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

import sqlglot
from sqlglot import exp
from sqlglot.errors import ParseError, SqlglotError

from sqlassist.core.types import ValidationResult

logger = logging.getLogger(__name__)

EMPTY_QUERY_ERROR = "Query cannot be null or empty"

COMMENT_PATTERN = re.compile(r"--[^\r\n]*|/\*.*?\*/", re.DOTALL)
ANSI_ESCAPE_PATTERN = re.compile(r"\x1b\[[0-9;]*m")
SELECT_INTO_ERROR = "SELECT INTO creates objects and is not allowed"
WHITESPACE_PATTERN = re.compile(r"\s+")

# Statement kinds that only read data
READ_ONLY_STATEMENTS = (exp.Select, exp.Union, exp.Intersect, exp.Except, exp.Subquery)
MODIFYING_STATEMENTS = (exp.Insert, exp.Update, exp.Delete)
DESTRUCTIVE_STATEMENTS = (exp.Drop, exp.TruncateTable)

MAX_SUBQUERIES = 3
MAX_JOINS = 5

DANGEROUS_FUNCTIONS = ("EXEC", "SP_", "XP_", "OPENROWSET", "OPENDATASOURCE")

DANGEROUS_KEYWORDS = (
    "DROP",
    "DELETE",
    "TRUNCATE",
    "ALTER",
    "CREATE",
    "INSERT",
    "UPDATE",
    "EXEC",
    "EXECUTE",
    "SP_",
    "XP_",
    "SCRIPT",
    "SHUTDOWN",
    "BULK",
)

ADMIN_OPERATIONS = ("GRANT", "REVOKE", "CREATE USER", "DROP USER", "ALTER USER")

SUSPICIOUS_PATTERNS = [
    re.compile(r"\b1\s*=\s*1\b"),
    re.compile(r"'\s*=\s*'"),
]

SUBQUERY_PATTERN = re.compile(r"\(\s*SELECT\b", re.IGNORECASE)
JOIN_PATTERN = re.compile(r"\bJOIN\b", re.IGNORECASE)
FROM_CLAUSE_PATTERN = re.compile(
    r"\bFROM\b(.*?)(?=\bWHERE\b|\bGROUP\s+BY\b|\bORDER\s+BY\b|\bHAVING\b|\bLIMIT\b"
    r"|\bUNION\b|\bJOIN\b|\bON\b|\)|;|$)",
    re.IGNORECASE | re.DOTALL,
)
TABLE_FALLBACK_PATTERN = re.compile(r"\bFROM\s+([A-Za-z_][A-Za-z0-9_]*)", re.IGNORECASE)


def _keyword_pattern(keyword: str) -> re.Pattern[str]:
    """Word-bounded pattern; keywords ending in '_' match as prefixes."""
    body = r"\s+".join(re.escape(part) for part in keyword.split())
    suffix = "" if keyword.endswith("_") else r"\b"
    return re.compile(rf"\b{body}{suffix}", re.IGNORECASE)


_FUNCTION_PATTERNS = {name: _keyword_pattern(name) for name in DANGEROUS_FUNCTIONS}
_KEYWORD_PATTERNS = {name: _keyword_pattern(name) for name in DANGEROUS_KEYWORDS}
_ADMIN_PATTERNS = {name: _keyword_pattern(name) for name in ADMIN_OPERATIONS}


def clean_sql(sql: str) -> str:
    """Strip comments and collapse whitespace.

    Args:
        sql: Raw SQL string

    Returns:
        Cleaned SQL string
    """
    cleaned = COMMENT_PATTERN.sub(" ", sql)
    return WHITESPACE_PATTERN.sub(" ", cleaned).strip()


def sanitize(sql: str) -> str:
    """Cleaned form of a query, terminated by a single trailing semicolon.

    Idempotent: sanitize(sanitize(s)) == sanitize(s).
    """
    sanitized = clean_sql(sql)
    if not sanitized.endswith(";"):
        sanitized += ";"
    return sanitized


@dataclass
class ParseOutcome:
    """Result of running the SQL parser: statements or an error message."""

    statements: list[exp.Expression] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def statement(self) -> exp.Expression | None:
        """First parsed statement, if any."""
        return self.statements[0] if self.statements else None


def parse_sql(sql: str, dialect: str | None = None) -> ParseOutcome:
    """Parse SQL without raising.

    Args:
        sql: SQL text
        dialect: Optional sqlglot read dialect

    Returns:
        ParseOutcome with the parsed statements or the parser's error message
    """
    try:
        statements = [s for s in sqlglot.parse(sql, read=dialect) if s is not None]
    except SqlglotError as e:
        return ParseOutcome(error=_parse_error_message(e))
    if not statements:
        return ParseOutcome(error="No statement could be parsed")
    return ParseOutcome(statements=statements)


def _parse_error_message(error: SqlglotError) -> str:
    """Plain-text parser error, without the terminal highlighting sqlglot adds."""
    if isinstance(error, ParseError) and error.errors:
        first = error.errors[0]
        message = str(first.get("description") or "Invalid SQL")
        if first.get("line") is not None and first.get("col") is not None:
            message += f". Line {first['line']}, Col: {first['col']}."
        return message
    return ANSI_ESCAPE_PATTERN.sub("", str(error))


def _selects_into(statement: exp.Expression) -> bool:
    """True when any SELECT in the tree writes its rows into a new table."""
    return any(select.args.get("into") for select in statement.find_all(exp.Select))


def _statement_segments(sql: str) -> list[str]:
    return [segment for segment in sql.split(";") if segment.strip()]


class QueryValidator:
    """Validates LLM-generated SQL queries before execution.

    Provides multiple layers of protection:
    1. Preprocessing (comments stripped, whitespace normalized)
    2. Syntax check and statement type gate (SELECT only)
    3. Complexity advisories
    4. Injection, stacked-statement and dangerous-operation checks
    5. Performance suggestions
    """

    def __init__(self, dialect: str | None = None) -> None:
        """Initialize the validator.

        Args:
            dialect: Optional sqlglot dialect used to parse queries
                     (e.g. "postgres", "mysql", "sqlite")
        """
        self._dialect = dialect

    def validate(self, sql: str | None) -> ValidationResult:
        """Validate an SQL query.

        Args:
            sql: SQL query string to validate

        Returns:
            ValidationResult with errors, warnings, suggestions and, when
            valid, the sanitized query
        """
        if sql is None or not sql.strip():
            return ValidationResult(is_valid=False, errors=[EMPTY_QUERY_ERROR])

        cleaned = clean_sql(sql)
        if not cleaned:
            return ValidationResult(is_valid=False, errors=[EMPTY_QUERY_ERROR])

        errors: list[str] = []
        warnings: list[str] = []
        suggestions: list[str] = []

        outcome = parse_sql(cleaned, self._dialect)
        if outcome.ok and outcome.statement is not None:
            self._check_statement_type(outcome.statement, errors, warnings)
            if _selects_into(outcome.statement):
                errors.append(SELECT_INTO_ERROR)
            self._check_complexity(cleaned, warnings, suggestions)
        else:
            errors.append(f"SQL syntax error: {outcome.error}")

        # Security checks work on the text, not the parse tree
        self._check_injection(cleaned, errors, warnings)
        self._check_dangerous_operations(cleaned, errors)

        self._suggest_performance(cleaned, suggestions)

        is_valid = not errors
        if not is_valid:
            logger.debug(f"Query rejected with {len(errors)} error(s): {errors}")

        return ValidationResult(
            is_valid=is_valid,
            errors=errors,
            warnings=warnings,
            suggestions=suggestions,
            sanitized_query=sanitize(cleaned) if is_valid else None,
        )

    def is_read_only(self, sql: str | None) -> bool:
        """Check whether a query is a single read-only statement.

        Returns False when the query cannot be parsed.
        """
        if not sql or not sql.strip():
            return False
        outcome = parse_sql(clean_sql(sql), self._dialect)
        if not outcome.ok or len(outcome.statements) != 1:
            return False
        statement = outcome.statement
        return isinstance(statement, READ_ONLY_STATEMENTS) and not _selects_into(statement)

    def extract_table_names(self, sql: str | None) -> list[str]:
        """Extract table names referenced by a query (best-effort).

        Uses the parse tree when the query parses and a ``FROM <name>`` regex
        otherwise, so the result may be incomplete.

        Returns:
            Table names in order of first appearance
        """
        if not sql or not sql.strip():
            return []
        cleaned = clean_sql(sql)
        outcome = parse_sql(cleaned, self._dialect)

        names: list[str] = []
        if outcome.ok:
            cte_names = {
                cte.alias_or_name.lower()
                for statement in outcome.statements
                for cte in statement.find_all(exp.CTE)
            }
            for statement in outcome.statements:
                for table in statement.find_all(exp.Table):
                    name = table.name
                    if name and name.lower() not in cte_names and name not in names:
                        names.append(name)
        else:
            for match in TABLE_FALLBACK_PATTERN.finditer(cleaned):
                if match.group(1) not in names:
                    names.append(match.group(1))
        return names

    def _check_statement_type(
        self, statement: exp.Expression, errors: list[str], warnings: list[str]
    ) -> None:
        if isinstance(statement, READ_ONLY_STATEMENTS):
            return

        if isinstance(statement, MODIFYING_STATEMENTS):
            errors.append(
                "Data modification queries (INSERT/UPDATE/DELETE) are not allowed in this context"
            )
            return

        if isinstance(statement, DESTRUCTIVE_STATEMENTS) or (
            isinstance(statement, exp.Command) and statement.name.upper() == "TRUNCATE"
        ):
            errors.append("Destructive operations (DROP/TRUNCATE) are strictly forbidden")
            return

        warnings.append("Query type could not be determined or may not be safe")
        errors.append("Only SELECT statements are allowed")

    def _check_complexity(self, sql: str, warnings: list[str], suggestions: list[str]) -> None:
        subquery_count = len(SUBQUERY_PATTERN.findall(sql))
        if subquery_count > MAX_SUBQUERIES:
            warnings.append(
                f"Query has many nested subqueries ({subquery_count}), "
                "which may impact performance"
            )
            suggestions.append(
                "Consider breaking down complex subqueries into simpler parts or using CTEs"
            )

        join_count = len(JOIN_PATTERN.findall(sql))
        if join_count > MAX_JOINS:
            warnings.append(f"Query has many joins ({join_count}), which may impact performance")
            suggestions.append("Consider if all joins are necessary and ensure proper indexing")

        has_where = re.search(r"\bWHERE\b", sql, re.IGNORECASE) is not None
        if not has_where and any("," in m.group(1) for m in FROM_CLAUSE_PATTERN.finditer(sql)):
            warnings.append("Query may contain cartesian product - missing JOIN conditions")

    def _check_injection(self, sql: str, errors: list[str], warnings: list[str]) -> None:
        if any(pattern.search(sql) for pattern in SUSPICIOUS_PATTERNS):
            warnings.append("Query contains suspicious patterns that may indicate SQL injection")

        if len(_statement_segments(sql)) > 1:
            errors.append("Multiple statements in a single query are not allowed")

        for name, pattern in _FUNCTION_PATTERNS.items():
            if pattern.search(sql):
                errors.append(f"Query contains dangerous function: {name}")

    def _check_dangerous_operations(self, sql: str, errors: list[str]) -> None:
        for keyword, pattern in _KEYWORD_PATTERNS.items():
            if pattern.search(sql):
                errors.append(f"Query contains dangerous operation: {keyword}")

        for operation, pattern in _ADMIN_PATTERNS.items():
            if pattern.search(sql):
                errors.append(f"Administrative operations are not permitted: {operation}")

    def _suggest_performance(self, sql: str, suggestions: list[str]) -> None:
        upper_sql = sql.upper()
        has_where = re.search(r"\bWHERE\b", upper_sql) is not None
        has_limit = re.search(r"\bLIMIT\b", upper_sql) is not None

        if re.search(r"\bSELECT\s+(DISTINCT\s+)?\*", upper_sql):
            suggestions.append(
                "Consider specifying column names instead of using SELECT * for better performance"
            )

        if re.search(r"\bSELECT\b", upper_sql) and not has_where and not has_limit:
            suggestions.append(
                "Consider adding a WHERE clause or LIMIT to avoid scanning entire tables"
            )

        if re.search(r"\bWHERE\b.*\b\w+\([^)]*\)", upper_sql, re.DOTALL):
            suggestions.append("Using functions in WHERE clause may prevent index usage")

        if re.search(r"\bLIKE\s+['\"]%", upper_sql):
            suggestions.append(
                "LIKE patterns starting with wildcard (%) cannot use indexes efficiently"
            )

        if re.search(r"\bORDER\s+BY\b", upper_sql) and not has_limit:
            suggestions.append("Consider adding LIMIT when using ORDER BY to improve performance")


def validate_query(sql: str | None, dialect: str | None = None) -> ValidationResult:
    """Convenience function to validate a query.

    Args:
        sql: SQL query to validate
        dialect: Optional sqlglot read dialect

    Returns:
        ValidationResult
    """
    return QueryValidator(dialect=dialect).validate(sql)
