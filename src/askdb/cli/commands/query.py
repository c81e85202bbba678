"""Query validation and limiting commands."""

from typing import Annotated

import typer

from askdb.cli.context import CLIContext
from askdb.cli.output import OutputFormatter
from askdb.cli.parsing import read_sql
from askdb.query.limiter import DEFAULT_MAX_ROWS, add_safety_limits
from askdb.query.validator import validate_sql

# Create query subcommand group
app = typer.Typer(help="Validate and limit SQL queries without running them")


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
    """Check a query against the safety policy.

    Exits with code 1 when the query would be rejected.

    Examples:

        askdb query validate "SELECT * FROM orders"
        askdb query validate --file query.sql
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        sql_content = read_sql(sql, from_file)
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)

    result = validate_sql(sql_content)
    formatter.print_validation(sql_content, result)
    if not result.valid:
        raise typer.Exit(code=1)


@app.command("limit")
def query_limit(
    ctx: typer.Context,
    sql: Annotated[
        str | None,
        typer.Argument(help="SQL query to limit"),
    ] = None,
    from_file: Annotated[
        str | None,
        typer.Option("--file", "-f", help="Load SQL from file"),
    ] = None,
    max_rows: Annotated[
        int,
        typer.Option("--max-rows", "-n", min=1, help="Row cap to append"),
    ] = DEFAULT_MAX_ROWS,
) -> None:
    """Validate a query and print it with the safety row limit applied.

    Examples:

        askdb query limit "SELECT * FROM orders" -n 100
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        sql_content = read_sql(sql, from_file)
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)

    result = validate_sql(sql_content)
    if not result.valid:
        formatter.print_validation(sql_content, result)
        raise typer.Exit(code=1)

    formatter.print_text(add_safety_limits(sql_content, max_rows), key="sql")
