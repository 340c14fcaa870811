"""Console output formatting for pycoresync."""

import json
from typing import Any, Optional

import click
from rich.console import Console
from rich.table import Table


class OutputFormatter:
    """Formats user-facing output.

    Human readable messages go to a rich console. In JSON mode only
    ``output_json`` prints to stdout, so the result can be piped.
    """

    def __init__(
        self,
        json_output: bool = False,
        quiet: bool = False,
        console: Optional[Console] = None,
        error_console: Optional[Console] = None,
    ):
        """Initialize output formatter.

        Args:
            json_output: Emit machine-readable JSON instead of text
            quiet: Suppress non-essential output
            console: Console for regular output
            error_console: Console for errors (defaults to stderr)
        """
        self.json_output = json_output
        self.quiet = quiet
        self.console = console or Console(highlight=False, soft_wrap=True)
        self.error_console = error_console or Console(
            stderr=True, highlight=False, soft_wrap=True
        )

    @property
    def _silent(self) -> bool:
        return self.quiet or self.json_output

    def print(self, message: str = "") -> None:
        """Print a plain line."""
        if not self._silent:
            self.console.print(message, markup=False)

    def info(self, message: str) -> None:
        """Print an informational message."""
        if not self._silent:
            self.console.print(message, markup=False)

    def success(self, message: str) -> None:
        """Print a success message."""
        if not self._silent:
            self.console.print(message, style="green", markup=False)

    def warning(self, message: str) -> None:
        """Print a warning. Shown even in quiet mode."""
        if not self.json_output:
            self.error_console.print(message, style="yellow", markup=False)

    def error(self, message: str) -> None:
        """Print an error. Always shown."""
        self.error_console.print(message, style="bold red", markup=False)

    def print_summary(self, title: str, items: list[tuple[str, str]]) -> None:
        """Print a two column summary table.

        Args:
            title: Table title
            items: (label, value) rows
        """
        if self._silent:
            return
        table = Table(title=title, show_header=False)
        table.add_column("Field", style="cyan")
        table.add_column("Value")
        for label, value in items:
            table.add_row(label, value)
        self.console.print(table)

    def output_json(self, data: Any) -> None:
        """Print data as JSON to stdout."""
        click.echo(json.dumps(data, indent=2))
