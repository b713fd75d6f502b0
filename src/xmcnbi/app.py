"""Typer application and CLI entry point for xmcnbi.

This module wires together the top-level Typer application and registers
the built-in commands (``query``, ``token``, ``profile``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.  It installs a SIGINT handler and invokes the Typer app.
:class:`~xmcnbi.exceptions.NBIError` instances that escape a command exit
with the error's ``exit_code``; any other exception is written to a crash
log under the data directory.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any

import typer

from xmcnbi import __version__
from xmcnbi.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="xmcnbi",
    help="Query the Northbound Interface of a network management server.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"xmcnbi {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show HTTP exchanges and token refreshes."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~xmcnbi.output.OutputManager` from the
    output flags.
    """
    from xmcnbi.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(
        OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    )


from xmcnbi.commands.profile import profile_app  # noqa: E402
from xmcnbi.commands.query import query_command, token_command  # noqa: E402

app.command("query")(query_command)
app.command("token")(token_command)
app.add_typer(profile_app, name="profile", help="Manage stored connection profiles.")


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from xmcnbi.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``xmcnbi`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from xmcnbi.exceptions import NBIError
        from xmcnbi.output import error

        if isinstance(exc, NBIError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
