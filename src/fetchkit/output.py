"""Terminal output for the ``fetchkit`` command line.

Response bodies and saved file paths go to **stdout**, so they can be piped
into other tools. Everything else (status lines, warnings, errors, the
download progress bar) goes to **stderr**.

When stdout is a terminal, JSON responses are syntax-highlighted with Rich;
when it is piped they are printed as plain text. ``NO_COLOR``,
``TERM=dumb`` and ``--no-color`` all turn colour off.

The library itself never writes here; only :mod:`fetchkit.app` and
:mod:`fetchkit.commands` do.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn
from rich.syntax import Syntax


class OutputFormat(str, Enum):
    """How response data is rendered. ``AUTO`` means ``RICH`` on a terminal, else ``PLAIN``."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Writes response data to stdout and diagnostics to stderr.

    Args:
        format: Rendering for response data.
        no_color: Disable colour and Rich markup.
        quiet: Drop ``info`` and ``success`` messages and the progress bar.
        verbose: Show ``debug`` messages.
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
            rich = _is_tty() and not self._no_color
            format = OutputFormat.RICH if rich else OutputFormat.PLAIN
        self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=(format == OutputFormat.RICH),
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def stderr(self) -> Console:
        """Console for log handlers and progress bars."""
        return self._stderr

    # ------------------------------------------------------------------ #
    # stdout
    # ------------------------------------------------------------------ #

    def format_response(self, data: Any) -> None:
        """Render a decoded JSON value or a string in the active format."""
        if self._format == OutputFormat.JSON:
            if isinstance(data, str):
                try:
                    data = json.loads(data)
                except json.JSONDecodeError:
                    self.print_data(data)
                    return
            self.print_data(_dump(data))
        elif self._format == OutputFormat.RICH and isinstance(data, (dict, list)):
            self._stdout.print(Syntax(_dump(data), "json", theme="monokai", word_wrap=True))
        elif self._format == OutputFormat.RICH:
            self._stdout.print(str(data), markup=False, highlight=False)
        else:
            for line in _plain_lines(data):
                self.print_data(line)

    def print_data(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)

    # ------------------------------------------------------------------ #
    # stderr
    # ------------------------------------------------------------------ #

    def _diagnostic(self, message: str, prefix: str = "", style: str = "") -> None:
        if self._no_color or not style:
            print(f"{prefix}{message}", file=sys.stderr, flush=True)
        elif prefix:
            self._stderr.print(f"[{style}]{escape(prefix)}[/{style}]{escape(message)}", highlight=False)
        else:
            self._stderr.print(f"[{style}]{escape(message)}[/{style}]", highlight=False)

    def info(self, message: str) -> None:
        """Status line. Dropped in quiet mode."""
        if not self._quiet:
            self._diagnostic(message)

    def success(self, message: str) -> None:
        """Green status line. Dropped in quiet mode."""
        if not self._quiet:
            self._diagnostic(message, style="green")

    def warning(self, message: str) -> None:
        self._diagnostic(message, "Warning: ", "yellow")

    def error(self, message: str) -> None:
        self._diagnostic(message, "Error: ", "bold red")

    def debug(self, message: str) -> None:
        """Shown only in verbose mode."""
        if self._verbose:
            self._diagnostic(message, "[debug] ", "dim")

    def progress_bar(self) -> Progress:
        """Return a download progress bar on stderr.

        The bar renders nothing in quiet mode or when stderr is not a terminal.
        """
        return Progress(
            TextColumn("[bold]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=self._stderr,
            disable=self._quiet or not self._stderr.is_terminal,
        )


def _dump(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def _plain_lines(data: Any) -> list[str]:
    """Tab-separated lines: ``key<TAB>value`` for objects, one row per list item."""
    if isinstance(data, dict):
        return [f"{key}\t{value}" for key, value in data.items()]
    if isinstance(data, list):
        return [
            "\t".join(str(v) for v in item.values()) if isinstance(item, dict) else str(item)
            for item in data
        ]
    return [str(data)]


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """True when ``NO_COLOR`` is set to anything, or ``TERM=dumb``."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


# ------------------------------------------------------------------ #
# Process-wide instance, installed by the root CLI callback
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating a default one on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager. Used between tests."""
    global _output
    _output = None


def format_response(data: Any) -> None:
    get_output().format_response(data)


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
