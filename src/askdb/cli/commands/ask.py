"""Ask a question against a database."""

import asyncio
from typing import Annotated

import typer

from askdb.cli.context import CLIContext
from askdb.cli.output import OutputFormatter
from askdb.cli.parsing import read_schema_file
from askdb.query.orchestrator import QueryOrchestrator


def ask_command(
    ctx: typer.Context,
    question: Annotated[str, typer.Argument(help="Natural language question")],
    schema_file: Annotated[
        str,
        typer.Option(
            "--schema",
            "-s",
            help="Schema file (.json structured schema, anything else is context text)",
        ),
    ],
    max_rows: Annotated[
        int | None,
        typer.Option("--max-rows", "-n", min=1, help="Row cap for unbounded queries"),
    ] = None,
    format_results: Annotated[
        bool | None,
        typer.Option("--format/--no-format", help="Ask the model for a prose answer"),
    ] = None,
    timeout_ms: Annotated[
        int | None,
        typer.Option("--timeout", "-t", min=1, help="Pipeline deadline in milliseconds"),
    ] = None,
) -> None:
    """Answer a question by generating, validating and running a read-only query.

    Examples:

        askdb -d postgresql://readonly@localhost/shop ask "How many orders today?" -s schema.md
        askdb ask "Top 5 products by revenue" -s schema.json --no-format --json
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)
    settings = cli_ctx.settings

    try:
        schema = read_schema_file(schema_file)
        deadline_ms = timeout_ms or settings.timeout_ms
        orchestrator = QueryOrchestrator(
            cli_ctx.get_model(),
            cli_ctx.get_executor(statement_timeout_ms=deadline_ms),
            max_rows=max_rows or settings.max_rows,
            format_results=settings.format_results if format_results is None else format_results,
            timeout_ms=deadline_ms,
        )
        result = asyncio.run(orchestrator.ask(question, schema))
        formatter.print_result(result)
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)
    finally:
        cli_ctx.close()
