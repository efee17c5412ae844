"""Typer application and CLI entry point for fetchkit.

This module wires together the top-level Typer application: the
``request``, ``graphql`` and ``download`` commands plus the ``cache`` and
``config`` sub-command groups.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs a SIGINT handler and invokes the Typer app.
Unhandled exceptions are written to a crash log under the cache directory.

See Also:
    :mod:`fetchkit.config`: Defaults resolution used by every command.
    :mod:`fetchkit.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer
from rich.logging import RichHandler

from fetchkit import __version__
from fetchkit.commands.cache import cache_app
from fetchkit.commands.config import config_app
from fetchkit.commands.http import download_command, graphql_command, request_command
from fetchkit.exit_codes import EXIT_GENERIC_FAILURE
from fetchkit.output import OutputFormat, OutputManager, set_output


app = typer.Typer(
    name="fetchkit",
    help="Send HTTP requests, GraphQL queries and downloads from the command line.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("request")(request_command)
app.command("graphql")(graphql_command)
app.command("download")(download_command)
app.add_typer(cache_app, name="cache", help="Persistent response cache.")
app.add_typer(config_app, name="config", help="Persisted request defaults.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"fetchkit {__version__}")
        raise typer.Exit()


def _configure_logging(output: OutputManager) -> None:
    """Route the library's ``logging`` records to stderr through Rich."""
    logger = logging.getLogger("fetchkit")
    logger.handlers.clear()
    logger.addHandler(RichHandler(console=output.stderr, show_path=False))
    logger.setLevel(logging.DEBUG)


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Request timeout in seconds (overrides config and FETCHKIT_TIMEOUT)."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~fetchkit.output.OutputManager` from
    CLI flags and stores shared options in ``ctx.obj``.

    Args:
        ctx: Typer invocation context.
        version: If ``True``, print the version string and exit.
        json_output: Force JSON output format.
        plain_output: Force plain-text output format.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress non-essential diagnostic output.
        verbose: Enable debug-level diagnostics, including library logs.
        timeout: Timeout override for this invocation.
    """
    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    set_output(output)
    if verbose:
        _configure_logging(output)

    ctx.ensure_object(dict)
    ctx.obj["timeout"] = timeout
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from fetchkit.config import get_cache_dir

    logs_dir = get_cache_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``fetchkit`` console script.

    Unhandled :class:`~fetchkit.exceptions.FetchkitError` instances cause a
    clean exit with the error's ``exit_code``. All other exceptions produce
    a crash log and a generic failure exit.

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
        from fetchkit.exceptions import FetchkitError
        from fetchkit.output import error

        if isinstance(exc, FetchkitError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
