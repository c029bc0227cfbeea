"""Query validation and execution commands."""

from typing import Annotated

import typer

from sqlassist.cli.context import CLIContext
from sqlassist.cli.output import OutputFormatter
from sqlassist.cli.parsing import read_sql
from sqlassist.core.types import ExecutionStatus

# Create query subcommand group
app = typer.Typer(help="Validate and execute SQL queries")


@app.command("validate")
def query_validate(
    ctx: typer.Context,
    sql: Annotated[
        str | None,
        typer.Argument(help="SQL query to validate"),
    ] = None,
    from_file: Annotated[
        str | None,
        typer.Option("--file", "-f", help="Load SQL from file"),
    ] = None,
) -> None:
    """Validate SQL query without executing.

    No database is needed. Exits with code 1 when the query is rejected.

    Examples:

        sqlassist query validate "SELECT name FROM users LIMIT 10"
        sqlassist query validate --file query.sql
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        sql_content = read_sql(sql, from_file)
        validation = cli_ctx.get_assistant().validate_query(sql_content)
        formatter.print_validation(validation)
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)

    if not validation.is_valid:
        raise typer.Exit(code=1)


@app.command("run")
def query_run(
    ctx: typer.Context,
    sql: Annotated[
        str | None,
        typer.Argument(help="SQL query to execute"),
    ] = None,
    from_file: Annotated[
        str | None,
        typer.Option("--file", "-f", help="Load SQL from file"),
    ] = None,
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-l", help="Maximum rows to return (capped at max_rows)"),
    ] = None,
    offset: Annotated[
        int | None,
        typer.Option("--offset", help="Rows to skip before returning results"),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Validate and analyze without executing"),
    ] = False,
) -> None:
    """Execute a validated SQL query within row and time bounds.

    The query is validated first and only read-only statements run.

    Examples:

        sqlassist -u sqlite:///shop.db query run "SELECT * FROM orders" --limit 10
        sqlassist -u sqlite:///shop.db query run --file report.sql --dry-run
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        sql_content = read_sql(sql, from_file)
        result = cli_ctx.get_assistant().execute_query(
            cli_ctx.get_target(),
            sql_content,
            limit=limit,
            offset=offset,
            dry_run=dry_run,
        )
        formatter.print_execution(result)
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)

    if result.status in (ExecutionStatus.ERROR, ExecutionStatus.VALIDATION_FAILED):
        raise typer.Exit(code=1)
