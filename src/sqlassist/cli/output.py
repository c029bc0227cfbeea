"""Output formatting for CLI commands."""

import json
from typing import Any

from pydantic import BaseModel
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from sqlassist.core.types import ExecutionResult, SchemaSnapshot, ValidationResult
from sqlassist.exceptions import SQLAssistError

console = Console()


class OutputFormatter:
    """Formats output for terminal or JSON mode."""

    def __init__(self, json_mode: bool = False) -> None:
        """Initialize formatter.

        Args:
            json_mode: If True, output JSON instead of Rich formatting
        """
        self.json_mode = json_mode

    def print_table(
        self,
        title: str,
        data: list[dict[str, Any]],
        columns: list[str],
    ) -> None:
        """Print data as Rich table or JSON array.

        Args:
            title: Table title
            data: List of row dictionaries
            columns: Column names to display
        """
        if self.json_mode:
            print(json.dumps(data, default=str, indent=2))
        else:
            table = Table(title=title, show_header=True, header_style="bold magenta")
            for col in columns:
                table.add_column(col)
            for row in data:
                table.add_row(*[str(row.get(col, "")) for col in columns])
            console.print(table)

    def print_model(self, model: BaseModel) -> None:
        """Print a result model as JSON."""
        print(json.dumps(model.model_dump(mode="json"), indent=2))

    def print_schema(self, snapshot: SchemaSnapshot) -> None:
        """Print a schema snapshot with tables, keys and views.

        Args:
            snapshot: Snapshot to display
        """
        if self.json_mode:
            self.print_model(snapshot)
            return

        console.print(f"\n[bold]Database:[/bold] {snapshot.database_name or ''}")
        product = snapshot.metadata.get("databaseProductName")
        if product:
            version = snapshot.metadata.get("databaseProductVersion", "")
            console.print(f"Product: {product} {version}".rstrip())

        for table_info in snapshot.tables:
            console.print(f"\n[bold]Table:[/bold] {table_info.name}")
            if table_info.comment:
                console.print(f"Description: {table_info.comment}")

            columns_table = Table(show_header=True, header_style="bold cyan")
            columns_table.add_column("Name")
            columns_table.add_column("Type")
            columns_table.add_column("Nullable")
            columns_table.add_column("PK")
            columns_table.add_column("Auto")
            for column in table_info.columns:
                columns_table.add_row(
                    column.name,
                    column.data_type,
                    "✓" if column.nullable else "",
                    "✓" if column.is_primary_key else "",
                    "✓" if column.is_auto_increment else "",
                )
            console.print(columns_table)

            if table_info.foreign_keys:
                console.print(f"[bold]Foreign Keys ({len(table_info.foreign_keys)}):[/bold]")
                for fk in table_info.foreign_keys:
                    console.print(
                        f"  {fk.column_name} → {fk.referenced_table}.{fk.referenced_column}"
                        f" (ON DELETE {fk.on_delete})"
                    )

        if snapshot.views:
            console.print(f"\n[bold]Views ({len(snapshot.views)}):[/bold]")
            for view in snapshot.views:
                console.print(f"  {view.name}: " + ", ".join(c.name for c in view.columns))

    def print_validation(self, validation: ValidationResult) -> None:
        """Print a validation verdict with its findings."""
        if self.json_mode:
            self.print_model(validation)
            return

        if validation.is_valid:
            console.print("✓ Query is valid", style="green")
            console.print(f"  {validation.sanitized_query}", style="dim")
        else:
            console.print("✗ Query is invalid", style="red")
            for error in validation.errors:
                console.print(f"  • {error}", style="red")
        if validation.warnings:
            console.print("\n⚠️  Warnings:")
            for warning in validation.warnings:
                console.print(f"  • {warning}")
        if validation.suggestions:
            console.print("\n💡 Suggestions:")
            for suggestion in validation.suggestions:
                console.print(f"  • {suggestion}")

    def print_execution(self, result: ExecutionResult) -> None:
        """Print rows and timing of an execution."""
        if self.json_mode:
            self.print_model(result)
            return

        if result.error:
            console.print(
                Panel(result.error, title=f"[red]{result.status}[/red]", border_style="red")
            )
            return

        if result.column_names:
            self.print_table(
                f"Query returned {result.row_count} rows",
                result.results,
                result.column_names,
            )
        else:
            console.print(f"✓ {result.status}", style="green")

        console.print(f"\n⏱️  Execution time: {result.execution_time_ms:.2f}ms", style="dim")
        if result.metadata is not None:
            console.print(
                f"Type: {result.metadata.query_type}  Complexity: {result.metadata.complexity}",
                style="dim",
            )

    def print_success(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Print success message.

        Args:
            message: Success message
            details: Optional details to display
        """
        if self.json_mode:
            output = {"success": True, "message": message}
            if details:
                output.update(details)
            print(json.dumps(output, default=str, indent=2))
        else:
            console.print(f"✓ {message}", style="green")
            if details:
                for key, value in details.items():
                    console.print(f"  {key}: {value}", style="dim")

    def print_error(self, error: Exception) -> None:
        """Print error message.

        Args:
            error: Exception to display
        """
        if self.json_mode:
            if isinstance(error, SQLAssistError):
                print(json.dumps(error.to_dict(), default=str, indent=2))
            else:
                print(json.dumps({"error": str(error)}, indent=2))
        else:
            error_text = str(error)
            # For SQLAssistError, include context if available
            if isinstance(error, SQLAssistError) and error.context:
                context_str = "\n".join(f"{k}: {v}" for k, v in error.context.items())
                error_text = f"{error_text}\n\n{context_str}"

            panel = Panel(
                error_text,
                title="[red]Error[/red]",
                border_style="red",
            )
            console.print(panel)

    def print_data(self, data: Any) -> None:
        """Print generic data (dict, list, etc.).

        Args:
            data: Data to print
        """
        if self.json_mode:
            print(json.dumps(data, default=str, indent=2))
        else:
            console.print(data)
