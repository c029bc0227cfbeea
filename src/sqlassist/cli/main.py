"""SQLAssist CLI - Main entry point."""

import logging
import sys
from typing import Annotated

import typer

import sqlassist
from sqlassist.cli.context import CLIContext
from sqlassist.config import get_settings

# Create main Typer app
app = typer.Typer(
    name="sqlassist",
    help="SQLAssist CLI - Natural language to safe, bounded SQL",
    no_args_is_help=True,
)


def configure_logging(verbose: bool) -> None:
    """Send log records to stderr so JSON output on stdout stays clean."""
    level = logging.DEBUG if verbose else get_settings().log_level.upper()
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.callback()
def main_callback(
    ctx: typer.Context,
    url: Annotated[
        str | None,
        typer.Option(
            "--url",
            "-u",
            envvar="SQLASSIST_DATABASE_URL",
            help="Database URL (PostgreSQL, MySQL or SQLite)",
        ),
    ] = None,
    db_type: Annotated[
        str | None,
        typer.Option("--type", "-t", help="Database type: mysql, postgresql, sqlite"),
    ] = None,
    host: Annotated[str | None, typer.Option("--host", help="Database host")] = None,
    port: Annotated[int | None, typer.Option("--port", help="Database port")] = None,
    database: Annotated[
        str | None,
        typer.Option("--database", "-d", help="Database name (file path for SQLite)"),
    ] = None,
    user: Annotated[str | None, typer.Option("--user", help="Database user")] = None,
    password: Annotated[
        str | None,
        typer.Option("--password", help="Database password"),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            "-j",
            help="Output as JSON (machine-readable)",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Initialize CLI context with global options."""
    configure_logging(verbose)

    # Store in Typer context for command access
    ctx.obj = CLIContext(
        json_output=json_output,
        verbose=verbose,
        database_url=url,
        db_type=db_type,
        host=host,
        port=port,
        database=database,
        user=user,
        password=password,
    )


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"SQLAssist v{sqlassist.__version__}")


# Register command groups
from sqlassist.cli.commands import database, generate, query  # noqa: E402

app.add_typer(query.app, name="query")

# Register standalone commands (not groups)
app.command(name="connect")(database.connect_command)
app.command(name="schema")(database.schema_command)
app.command(name="generate")(generate.generate_command)
app.command(name="explain")(generate.explain_command)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
