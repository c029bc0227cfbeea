"""Natural language generation and explanation commands."""

from typing import Annotated

import typer
from rich.panel import Panel

from sqlassist.cli.context import CLIContext
from sqlassist.cli.output import OutputFormatter, console
from sqlassist.cli.parsing import parse_context_items


def generate_command(
    ctx: typer.Context,
    question: Annotated[str, typer.Argument(help="Question in natural language")],
    context: Annotated[
        list[str] | None,
        typer.Option("--context", "-c", help="Extra hint as key=value (repeatable)"),
    ] = None,
) -> None:
    """Generate SQL for a natural language question.

    The schema is captured from the database and sent to the configured model.

    Examples:

        sqlassist -u sqlite:///shop.db generate "Ten most recent orders"
        sqlassist -u sqlite:///shop.db generate "Revenue by month" -c year=2024
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        hints = parse_context_items(context)
        generated = cli_ctx.get_assistant().generate_query(
            cli_ctx.get_target(), question, hints or None
        )
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)

    if cli_ctx.json_output:
        formatter.print_model(generated)
    elif generated.generated_sql is None:
        console.print(Panel(generated.explanation, title="[red]Error[/red]", border_style="red"))
    else:
        console.print(Panel(generated.generated_sql, title="SQL", border_style="green"))
        if generated.explanation:
            console.print(generated.explanation)
        for warning in generated.warnings:
            console.print(f"⚠️  {warning}")

    if generated.generated_sql is None:
        raise typer.Exit(code=1)


def explain_command(
    ctx: typer.Context,
    sql: Annotated[str, typer.Argument(help="SQL query to explain")],
) -> None:
    """Explain a SQL query in plain language.

    Examples:

        sqlassist explain "SELECT COUNT(*) FROM orders GROUP BY user_id"
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        explanation = cli_ctx.get_assistant().explain_query(sql)
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)

    if cli_ctx.json_output:
        formatter.print_data({"sql": sql, "explanation": explanation})
    else:
        console.print(explanation)
