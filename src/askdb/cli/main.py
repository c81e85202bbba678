"""askdb CLI - Main entry point."""

import logging
from typing import Annotated

import typer

import askdb
from askdb.cli.context import CLIContext
from askdb.cli.output import OutputFormatter
from askdb.config import AskDBSettings
from askdb.core.types import ProviderName
from askdb.exceptions import ConfigurationError

# Create main Typer app
app = typer.Typer(
    name="askdb",
    help="askdb CLI - Ask your database questions in plain language, safely",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    database: Annotated[
        str | None,
        typer.Option(
            "--database",
            "-d",
            envvar="ASKDB_DATABASE_URL",
            help="Database URL (read-only credentials recommended)",
        ),
    ] = None,
    provider: Annotated[
        ProviderName | None,
        typer.Option("--provider", "-p", help="Language model provider"),
    ] = None,
    model: Annotated[
        str | None,
        typer.Option("--model", "-m", help="Model name (provider default if unset)"),
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
        typer.Option("--verbose", "-v", help="Log pipeline stages and generated SQL"),
    ] = False,
) -> None:
    """Initialize CLI context with global options."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    # CLI options take precedence over the environment
    try:
        settings = AskDBSettings.from_env(database_url=database, provider=provider, model=model)
    except ConfigurationError as e:
        OutputFormatter(json_output).print_error(e)
        raise typer.Exit(code=1)

    # Store in Typer context for command access
    ctx.obj = CLIContext(settings=settings, json_output=json_output)


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"askdb v{askdb.__version__}")


# Register command groups
from askdb.cli.commands import ask, query, schema  # noqa: E402

app.add_typer(query.app, name="query")
app.add_typer(schema.app, name="schema")

# Register ask as a standalone command (not a group)
app.command(name="ask")(ask.ask_command)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
