"""Prompt compilation for LLM SQL generation.

Renders a SchemaSnapshot and a natural-language request into the prompt text
sent to the model. The output is deterministic: the same snapshot, request and
context always produce byte-identical prompts.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqlassist.core.types import ColumnInfo, SchemaSnapshot, TableInfo, ViewInfo

SYSTEM_ROLE = (
    "You are a SQL query assistant. Generate safe, read-only SQL queries "
    "based on natural language requests."
)

RULES = [
    "Generate ONLY SELECT queries",
    "Never generate INSERT, UPDATE, DELETE, DROP, CREATE, ALTER, or any data-modifying queries",
    "Always use proper JOIN syntax instead of comma joins",
    "Include appropriate WHERE clauses to limit results",
    "Use meaningful column aliases for better readability",
    "Consider adding LIMIT clauses for large result sets",
]

RESPONSE_CONTRACT = [
    "sql: the generated SQL query",
    "explanation: brief explanation of what the query does",
    "warnings: array of any warnings about the query",
]

CLOSING_INSTRUCTION = (
    "Generate a SQL query that answers this request. "
    "Ensure the query is safe, efficient, and follows best practices."
)

# Separates the system block from the user block
BLOCK_SEPARATOR = "\n\n\n"


class PromptCompiler:
    """Compiles schema + request into model prompt text.

    Tables, columns and views are rendered in snapshot order, context entries
    in mapping order.
    """

    def compile(
        self,
        schema: SchemaSnapshot,
        natural_language_query: str,
        context: Mapping[str, Any] | None = None,
    ) -> str:
        """Build the full prompt.

        Args:
            schema: Schema snapshot of the target database
            natural_language_query: The user's question
            context: Optional extra key/value hints

        Returns:
            Prompt text (system block + user block)
        """
        return (
            self.system_prompt(schema)
            + BLOCK_SEPARATOR
            + self.user_prompt(natural_language_query, context)
        )

    def system_prompt(self, schema: SchemaSnapshot) -> str:
        """Render the fixed rules followed by the schema description."""
        lines = [SYSTEM_ROLE, "", "IMPORTANT RULES:"]
        lines.extend(f"- {rule}" for rule in RULES)
        lines.extend(["", "DATABASE SCHEMA:", f"Database: {schema.database_name or ''}", ""])

        for table in schema.tables:
            lines.extend(self._render_table(table))
            lines.append("")

        if schema.views:
            lines.append("VIEWS:")
            for view in schema.views:
                lines.extend(self._render_view(view))
                lines.extend(["", ""])

        lines.append("Respond with a JSON object containing:")
        lines.extend(f"- {item}" for item in RESPONSE_CONTRACT)
        return "\n".join(lines) + "\n"

    def user_prompt(
        self, natural_language_query: str, context: Mapping[str, Any] | None = None
    ) -> str:
        """Render the request, its context and the closing instruction."""
        lines = [f"Natural language query: {natural_language_query}", ""]
        if context:
            lines.append("Additional context:")
            lines.extend(f"- {key}: {value}" for key, value in context.items())
        lines.extend(["", CLOSING_INSTRUCTION])
        return "\n".join(lines)

    def _render_table(self, table: TableInfo) -> list[str]:
        lines = [f"TABLE: {table.name}"]
        if table.comment:
            lines.append(f"Description: {table.comment}")

        lines.append("Columns:")
        lines.extend(f"  - {self._render_column(column)}" for column in table.columns)

        if table.foreign_keys:
            lines.append("Foreign Keys:")
            lines.extend(
                f"  - {fk.column_name} → {fk.referenced_table}.{fk.referenced_column}"
                for fk in table.foreign_keys
            )
        return lines

    def _render_column(self, column: ColumnInfo) -> str:
        text = f"{column.name} ({column.column_type})"
        if column.is_primary_key:
            text += " [PRIMARY KEY]"
        if not column.nullable:
            text += " [NOT NULL]"
        if column.is_auto_increment:
            text += " [AUTO_INCREMENT]"
        if column.comment:
            text += f" - {column.comment}"
        return text

    def _render_view(self, view: ViewInfo) -> list[str]:
        lines = [f"VIEW: {view.name}"]
        if view.comment:
            lines.append(f"Description: {view.comment}")
        lines.append(
            "Columns: " + ", ".join(f"{c.name} ({c.column_type})" for c in view.columns)
        )
        return lines


def compile_prompt(
    schema: SchemaSnapshot,
    natural_language_query: str,
    context: Mapping[str, Any] | None = None,
) -> str:
    """Convenience function to compile a prompt.

    Args:
        schema: Schema snapshot of the target database
        natural_language_query: The user's question
        context: Optional extra key/value hints

    Returns:
        Prompt text
    """
    return PromptCompiler().compile(schema, natural_language_query, context)
