"""Console output for the bouncer, built on Rich.

Every message carries a level tag and is filtered by verbosity.
Warnings and errors go to stderr so that stdout stays clean for
``fwb apply --metrics``.
"""

from enum import IntEnum
from typing import Any, Union

from rich.console import Console as RichConsole
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.theme import Theme


class Verbosity(IntEnum):
    """Output verbosity levels."""
    QUIET = 0    # Warnings and errors only
    NORMAL = 1
    VERBOSE = 2  # Per-decision outcomes
    DEBUG = 3    # pfctl command lines


THEME = Theme({
    "fwb.info": "green",
    "fwb.ok": "bold green",
    "fwb.warn": "yellow",
    "fwb.error": "bold red",
    "fwb.debug": "cyan",
    "fwb.dry": "blue",
    "fwb.hint": "cyan",
    "fwb.applied": "green",
    "fwb.tolerated": "yellow",
    "fwb.skipped": "dim",
})

# level -> (tag, style, lowest verbosity that shows it, stderr)
LEVELS: dict[str, tuple[str, str, Verbosity, bool]] = {
    "info": ("INFO", "fwb.info", Verbosity.NORMAL, False),
    "success": ("OK", "fwb.ok", Verbosity.NORMAL, False),
    "warn": ("WARN", "fwb.warn", Verbosity.QUIET, True),
    "error": ("ERROR", "fwb.error", Verbosity.QUIET, True),
    "debug": ("DEBUG", "fwb.debug", Verbosity.DEBUG, False),
}


class Console:
    """Level-filtered output shared by the CLI, backends and services."""

    def __init__(self) -> None:
        self.verbosity = Verbosity.NORMAL
        self.dry_run = False
        self._open(no_color=False)

    def _open(self, no_color: bool) -> None:
        self._out = RichConsole(theme=THEME, highlight=False, no_color=no_color)
        self._err = RichConsole(theme=THEME, highlight=False, no_color=no_color, stderr=True)

    def configure(
        self,
        verbosity: int = Verbosity.NORMAL,
        dry_run: bool = False,
        no_color: bool = False,
    ) -> None:
        """Apply the invocation's output flags."""
        self.verbosity = Verbosity(max(Verbosity.QUIET, min(verbosity, Verbosity.DEBUG)))
        self.dry_run = dry_run
        self._open(no_color)

    def _log(self, level: str, message: str) -> None:
        tag, style, threshold, to_stderr = LEVELS[level]
        if self.verbosity < threshold:
            return
        target = self._err if to_stderr else self._out
        target.print(f"[{style}][{tag}][/{style}] {message}")

    def info(self, message: str) -> None:
        self._log("info", message)

    def success(self, message: str) -> None:
        self._log("success", message)

    def warn(self, message: str) -> None:
        self._log("warn", message)

    def error(self, message: str) -> None:
        self._log("error", message)

    def debug(self, message: str) -> None:
        self._log("debug", message)

    def dry_run_msg(self, message: str) -> None:
        """Announce an action that dry-run mode suppresses."""
        if self.dry_run:
            self._out.print(f"[fwb.dry][DRY-RUN][/fwb.dry] Would: {message}")

    def hint(self, message: str) -> None:
        self._err.print(f"[fwb.hint]Hint:[/fwb.hint] {message}")

    def outcome(self, action: str, value: str, status: str) -> None:
        """One decision's result, shown from -v upwards."""
        if self.verbosity >= Verbosity.VERBOSE:
            self._out.print(f"  {action} {value}: [fwb.{status}]{status}[/fwb.{status}]")

    def print(self, message: Any = "", **kwargs: Any) -> None:
        """Print raw text or a Rich renderable to stdout."""
        self._out.print(message, **kwargs)

    def table(self, title: str, columns: list[str], rows: list[list[str]]) -> None:
        table = Table(title=title)
        for column in columns:
            table.add_column(column)
        for row in rows:
            table.add_row(*row)
        self._out.print(table)

    def yaml(self, text: str, title: str) -> None:
        self._out.print(Panel(Syntax(text, "yaml", theme="ansi_dark"), title=title))

    def summary(self, title: str, counts: dict[str, Union[int, str]]) -> None:
        """Two-column key/value panel, hidden in quiet mode."""
        if self.verbosity < Verbosity.NORMAL:
            return
        grid = Table.grid(padding=(0, 2))
        grid.add_column(style="bold")
        grid.add_column(justify="right")
        for key, value in counts.items():
            grid.add_row(key, str(value))
        self._out.print(Panel(grid, title=title, expand=False))


console = Console()
