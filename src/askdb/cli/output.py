"""Output formatting for CLI commands."""

import json
from typing import Any

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from askdb.core.types import AskDatabaseResult
from askdb.exceptions import AskDBError
from askdb.query.validator import ValidationResult

console = Console()

# Rows shown in the terminal table; JSON output always carries every row
MAX_TABLE_ROWS = 50


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

    def print_result(self, result: AskDatabaseResult) -> None:
        """Print a pipeline result: answer, SQL, rows and usage."""
        if self.json_mode:
            print(json.dumps(result.to_dict(), default=str, indent=2))
            return

        console.print(Panel(Markdown(result.answer), title="[bold]Answer[/bold]"))
        console.print(Syntax(result.sql, "sql", word_wrap=True))
        if result.explanation:
            console.print(f"[dim]{result.explanation}[/dim]")

        rows = [row for row in result.raw_data if isinstance(row, dict)]
        if rows:
            columns = list(rows[0].keys())
            shown = rows[:MAX_TABLE_ROWS]
            title = f"Rows ({len(shown)} of {len(rows)})"
            self.print_table(title, shown, columns)

        total = result.usage.total
        console.print(
            f"\n⏱️  {result.execution_time_ms:.0f}ms · "
            f"tokens in {total.input_tokens:,} / out {total.output_tokens:,}",
            style="dim",
        )

    def print_validation(self, sql: str, result: ValidationResult) -> None:
        """Print the outcome of validating a query."""
        if self.json_mode:
            print(json.dumps({"sql": sql, **result.to_dict()}, indent=2))
        elif result.valid:
            console.print("✓ Query is valid", style="green")
        else:
            console.print(
                Panel(result.error or "", title="[red]Invalid query[/red]", border_style="red")
            )

    def print_text(self, text: str, key: str = "text") -> None:
        """Print plain text, or ``{key: text}`` in JSON mode."""
        if self.json_mode:
            print(json.dumps({key: text}, indent=2))
        else:
            console.print(text, markup=False, highlight=False)

    def print_error(self, error: Exception) -> None:
        """Print error message.

        Args:
            error: Exception to display
        """
        if self.json_mode:
            if isinstance(error, AskDBError):
                print(json.dumps(error.to_dict(), default=str, indent=2))
            else:
                print(json.dumps({"error": str(error)}, indent=2))
        else:
            error_text = str(error)
            # For AskDBError, include context if available
            if isinstance(error, AskDBError) and error.context:
                context_str = "\n".join(f"{k}: {v}" for k, v in error.context.items())
                error_text = f"{error_text}\n\n{context_str}"

            panel = Panel(
                error_text,
                title="[red]Error[/red]",
                border_style="red",
            )
            console.print(panel)
