"""Console output helpers built on rich."""

import json
from typing import Any, Optional

from rich.console import Console
from rich.markup import escape


class OutputFormatter:
    """Formats user-facing messages for the terminal or as JSON."""

    def __init__(
        self,
        json_output: bool = False,
        quiet: bool = False,
        console: Optional[Console] = None,
        err_console: Optional[Console] = None,
    ):
        """Initialize output formatter.

        Args:
            json_output: Emit machine readable JSON instead of text summaries
            quiet: Suppress informational and success messages
            console: Console for regular output
            err_console: Console for warnings and errors
        """
        self.json_output = json_output
        self.quiet = quiet
        self.console = console or Console(highlight=False, soft_wrap=True)
        self.err_console = err_console or Console(
            stderr=True, highlight=False, soft_wrap=True
        )

    def info(self, message: str) -> None:
        if self.quiet or self.json_output:
            return
        self.console.print(message, markup=False)

    def success(self, message: str) -> None:
        if self.quiet or self.json_output:
            return
        self.console.print(f"[green]✓[/green] {escape(message)}")

    def warning(self, message: str) -> None:
        self.err_console.print(f"[yellow]WARNING[/yellow] {escape(message)}")

    def error(self, message: str) -> None:
        self.err_console.print(f"[red]ERROR[/red] {escape(message)}")

    def command_error(self, command: str, err: BaseException) -> None:
        """Report an error raised while running a command."""
        self.error(f'"{command}": {err}')

    def command_warning(self, command: str, err: BaseException) -> None:
        self.warning(f'"{command}": {err}')

    def output_json(self, data: Any) -> None:
        self.console.print_json(json.dumps(data, default=str))
