"""Schema context commands."""

from typing import Annotated

import typer

from askdb.cli.context import CLIContext
from askdb.cli.output import OutputFormatter
from askdb.cli.parsing import read_schema_file
from askdb.query.context import create_schema_template, resolve_schema_context

# Create schema subcommand group
app = typer.Typer(help="Render and scaffold schema context")


@app.command("render")
def schema_render(
    ctx: typer.Context,
    schema_file: Annotated[str, typer.Argument(help="Schema file (.json or text)")],
) -> None:
    """Print the context text the model sees for a schema file.

    Sensitive columns are left out.

    Examples:

        askdb schema render schema.json
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        context = resolve_schema_context(read_schema_file(schema_file))
        formatter.print_text(context, key="context")
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)


@app.command("template")
def schema_template(
    ctx: typer.Context,
    app_name: Annotated[str, typer.Argument(help="Application name")],
) -> None:
    """Print a starter schema module to copy into an application."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)
    formatter.print_text(create_schema_template(app_name), key="template")
