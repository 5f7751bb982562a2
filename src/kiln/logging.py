"""Logging and console output for kiln.

Library modules log through child loggers of ``kiln`` and never print.
Only the CLI prints, using the console helpers below.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

if TYPE_CHECKING:
    from kiln.errors import ResolutionReport

Verbosity = Literal["quiet", "normal", "verbose"]

LOGGER_NAME = "kiln"

LEVELS: dict[str, int] = {
    "quiet": logging.ERROR,
    "normal": logging.INFO,
    "verbose": logging.DEBUG,
}

# Console instances for stdout/stderr
console = Console()
err_console = Console(stderr=True)


def setup_logging(verbosity: Verbosity = "normal", no_color: bool = False) -> logging.Logger:
    """Route ``kiln`` log records to stderr at the level for ``verbosity``."""
    console.no_color = no_color
    err_console.no_color = no_color

    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.setLevel(LEVELS[verbosity])
    logger.propagate = False

    verbose = verbosity == "verbose"
    handler = RichHandler(
        console=err_console,
        show_time=verbose,
        show_path=verbose,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """The ``kiln`` logger, or its ``kiln.<name>`` child."""
    return logging.getLogger(f"{LOGGER_NAME}.{name}" if name else LOGGER_NAME)


# Messages carry paths and regexes; escape them so brackets are not
# read as rich markup.


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    err_console.print(f"[red]Error:[/red] {escape(message)}")


def print_warning(message: str) -> None:
    """Print a warning message to stderr."""
    err_console.print(f"[yellow]Warning:[/yellow] {escape(message)}")


def print_success(message: str) -> None:
    console.print(f"[green]{escape(message)}[/green]")


def print_info(message: str) -> None:
    console.print(escape(message))


def print_report(report: ResolutionReport, verbose: bool = False) -> None:
    """Surface resolution issues as warnings; cycles only when verbose."""
    for error in report.errors:
        print_warning(error.message)
    if verbose:
        for specifier, requested_by in report.cycles:
            print_warning(f"Cyclic dependency: {requested_by} -> {specifier}")
