"""Output formatting with strict stdout/stderr discipline.

* **stdout** -- primary data only: query results, decoded token claims,
  profile listings.  This is what downstream tools pipe and parse.
* **stderr** -- all diagnostics: status, warnings (including GraphQL
  ``errors`` returned by the server), errors, and debug traces of HTTP
  exchanges.
* **TTY detection** -- Rich formatting when stdout is an interactive
  terminal, plain text when piped to another process.
* **Colour control** -- respects ``NO_COLOR``, ``TERM=dumb``, and the
  ``--no-color`` CLI flag.

The module exposes two layers:

1. :class:`OutputManager` -- a stateful object holding format preferences,
   Rich consoles, and quiet/verbose flags.  Created once in
   :func:`~xmcnbi.app.main_callback` and installed via :func:`set_output`.
2. Module-level convenience functions (:func:`info`, :func:`error`,
   :func:`debug`, etc.) that delegate to the global ``OutputManager``.
   Library code such as :class:`~xmcnbi.client.NBIClient` only ever calls
   :meth:`OutputManager.debug`.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table


class OutputFormat(str, Enum):
    """Supported output formats.

    ``AUTO`` resolves to ``RICH`` when stdout is an interactive TTY and colour
    is not disabled, or to ``PLAIN`` otherwise.
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


Record = list[tuple[str, str]]


class OutputManager:
    """Central manager for all output.

    Maintains two Rich :class:`~rich.console.Console` instances -- one for
    stdout (data) and one for stderr (diagnostics).

    Args:
        format: Desired output format. ``AUTO`` resolves based on TTY
            detection.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress informational messages on stderr.
        verbose: Enable debug messages on stderr.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose

        if format == OutputFormat.AUTO:
            self._format = (
                OutputFormat.RICH if _is_tty() and not self._no_color else OutputFormat.PLAIN
            )
        else:
            self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=(self._format == OutputFormat.RICH),
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        """The resolved output format."""
        return self._format

    # ------------------------------------------------------------------ #
    # Data output (stdout)
    # ------------------------------------------------------------------ #

    def print_query_result(self, body: str) -> None:
        """Print a raw NBI response body.

        Entries of a GraphQL ``errors`` array are reported as warnings on
        stderr; the body itself always goes to stdout.

        * **Rich mode** -- syntax-highlighted, indented JSON.
        * **JSON mode** -- indented JSON.
        * **Plain mode** -- the body exactly as received.

        A body that is not JSON is printed verbatim in every mode.
        """
        try:
            parsed = json.loads(body)
        except ValueError:
            self.print_data(body)
            return

        for message in _graphql_errors(parsed):
            self.warning(f"server reported: {message}")

        if self._format == OutputFormat.PLAIN:
            self.print_data(body)
            return
        indented = json.dumps(parsed, indent=2, ensure_ascii=False)
        if self._format == OutputFormat.JSON:
            self.print_data(indented)
        else:
            self._stdout.print(Syntax(indented, "json", theme="monokai", word_wrap=True))

    def print_record(self, fields: Record, title: Optional[str] = None) -> None:
        """Print ordered ``(name, value)`` pairs describing one object.

        * **Rich mode** -- two-column table.
        * **JSON mode** -- a single JSON object.
        * **Plain mode** -- ``name<TAB>value`` lines.
        """
        if self._format == OutputFormat.JSON:
            self.print_data(json.dumps(dict(fields), indent=2, ensure_ascii=False))
        elif self._format == OutputFormat.PLAIN:
            for name, value in fields:
                self.print_data(f"{name}\t{value}")
        else:
            table = Table(title=title, show_header=False, box=None, pad_edge=False)
            table.add_column(style="bold cyan")
            table.add_column()
            for name, value in fields:
                table.add_row(name, escape(value))
            self._stdout.print(table)

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Print tabular data to stdout in the active format.

        * **Rich mode** -- styled :class:`~rich.table.Table`.
        * **JSON mode** -- array of objects keyed by header names.
        * **Plain mode** -- tab-separated values, one row per line.
        """
        if self._format == OutputFormat.JSON:
            records = [dict(zip(headers, row)) for row in rows]
            self.print_data(json.dumps(records, indent=2, ensure_ascii=False))
        elif self._format == OutputFormat.PLAIN:
            self.print_data("\t".join(headers))
            for row in rows:
                self.print_data("\t".join(row))
        else:
            table = Table(title=title, show_header=True, header_style="bold cyan")
            for h in headers:
                table.add_column(h)
            for row in rows:
                table.add_row(*(escape(cell) for cell in row))
            self._stdout.print(table)

    def print_data(self, text: str) -> None:
        """Print raw text to stdout."""
        print(text, file=sys.stdout, flush=True)

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        """Print an informational message. Suppressed by ``--quiet``."""
        if not self._quiet:
            self._diagnostic(message, escape(message))

    def success(self, message: str) -> None:
        """Print a green success message. Suppressed by ``--quiet``."""
        if not self._quiet:
            self._diagnostic(message, f"[green]{escape(message)}[/green]")

    def warning(self, message: str) -> None:
        """Print a yellow warning. NOT suppressed by ``--quiet``."""
        self._diagnostic(f"Warning: {message}", f"[yellow]Warning:[/yellow] {escape(message)}")

    def error(self, message: str) -> None:
        """Print a bold-red error. Never suppressed."""
        self._diagnostic(f"Error: {message}", f"[bold red]Error:[/bold red] {escape(message)}")

    def debug(self, message: str) -> None:
        """Print a debug message. Only shown with ``--verbose``."""
        if self._verbose:
            self._diagnostic(f"[debug] {message}", f"[dim]\\[debug] {escape(message)}[/dim]")

    def _diagnostic(self, plain: str, styled: str) -> None:
        if self._no_color:
            print(plain, file=sys.stderr, flush=True)
        else:
            self._stderr.print(styled, highlight=False)


# ------------------------------------------------------------------ #
# Module-level helpers
# ------------------------------------------------------------------ #


def _graphql_errors(parsed: Any) -> list[str]:
    """Return the messages of a GraphQL ``errors`` array, if any."""
    if not isinstance(parsed, dict):
        return []
    errors = parsed.get("errors")
    if not isinstance(errors, list):
        return []
    messages = []
    for entry in errors:
        if isinstance(entry, dict) and "message" in entry:
            messages.append(str(entry["message"]))
        else:
            messages.append(json.dumps(entry))
    return messages


def _is_tty() -> bool:
    """Check if stdout is a TTY."""
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """Return True when ``NO_COLOR`` is set (any value) or ``TERM=dumb``."""
    if os.environ.get("NO_COLOR") is not None:
        return True
    return os.environ.get("TERM") == "dumb"


# ------------------------------------------------------------------ #
# Global output instance (set during app startup)
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the global :class:`OutputManager`, creating a default one lazily."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    """Install *output* as the global :class:`OutputManager` instance."""
    global _output
    _output = output


def reset_output() -> None:
    """Reset the global :class:`OutputManager` to ``None``."""
    global _output
    _output = None


# ------------------------------------------------------------------ #
# Convenience functions that use the global instance
# ------------------------------------------------------------------ #


def print_query_result(body: str) -> None:
    get_output().print_query_result(body)


def print_record(fields: Record, title: Optional[str] = None) -> None:
    get_output().print_record(fields, title)


def print_table(
    headers: list[str],
    rows: list[list[str]],
    title: Optional[str] = None,
) -> None:
    get_output().print_table(headers, rows, title)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def debug(message: str) -> None:
    get_output().debug(message)
