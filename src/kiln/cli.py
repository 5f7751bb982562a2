"""kiln CLI - build-time bundler command-line interface."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Literal

from dotenv import load_dotenv

# Load .env file before any other imports that might use env vars
load_dotenv()

import click  # noqa: E402

from kiln import __version__  # noqa: E402
from kiln.commands import bundle, copy_cmd, init, modules  # noqa: E402

if TYPE_CHECKING:
    from kiln.config import KilnConfig

VerbosityLevel = Literal["quiet", "normal", "verbose"]


class KilnContext:
    """Shared context for CLI commands."""

    def __init__(self) -> None:
        self.config: KilnConfig | None = None
        self.verbosity: VerbosityLevel = "normal"
        self.debug: bool = False
        self.no_color: bool = False


pass_context = click.make_pass_decorator(KilnContext, ensure=True)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option("-q", "--quiet", is_flag=True, help="Suppress non-error output")
@click.option("--debug", is_flag=True, help="Show full tracebacks on errors")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
)
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.version_option(version=__version__, prog_name="kiln")
@pass_context
def cli(
    ctx: KilnContext,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config: Path | None,
    no_color: bool,
) -> None:
    """kiln - bundle scripts, text assets and images into build artifacts.

    \b
    Commands:
      copy         Copy/concatenate files through filters
      bundle       Resolve a module graph and bundle it into one file
      modules      Report the module graph of entry points
      init         Create a .kilnrc.toml configuration file

    Use 'kiln <command> --help' for details.
    """
    import sys

    from kiln.config import KilnConfig
    from kiln.logging import print_error, setup_logging

    ctx.debug = debug

    if quiet:
        ctx.verbosity = "quiet"
    elif verbose:
        ctx.verbosity = "verbose"
    else:
        ctx.verbosity = "normal"

    setup_logging(ctx.verbosity, no_color=no_color)
    ctx.no_color = no_color or not sys.stdout.isatty()

    try:
        ctx.config = KilnConfig.load(config)
    except Exception as e:
        if not quiet:
            print_error(f"Failed to load configuration: {e}")
        # Commands fall back to defaults


cli.add_command(copy_cmd)
cli.add_command(bundle)
cli.add_command(modules)
cli.add_command(init)


def main() -> None:
    """Entry point for the ``kiln`` console script.

    Errors escaping a command are reported on stderr and mapped to an
    ``ExitCode``: ``KilnError`` subclasses carry their own, I/O and any
    other failure exit with FATAL_ERROR.
    """
    import sys

    from kiln.errors import ExitCode, KilnError

    debug_mode = "--debug" in sys.argv

    try:
        cli()
    except click.ClickException:
        raise
    except KeyboardInterrupt:
        sys.exit(130)
    except KilnError as e:
        _report_crash(e.message, e.context, debug_mode)
        sys.exit(e.exit_code)
    except OSError as e:
        _report_crash(f"I/O error: {e}", {"path": e.filename}, debug_mode)
        sys.exit(ExitCode.FATAL_ERROR)
    except Exception as e:
        _report_crash(f"Unexpected error: {e}", {}, debug_mode)
        sys.exit(ExitCode.FATAL_ERROR)


def _report_crash(message: str, context: dict, debug_mode: bool) -> None:
    import traceback

    from kiln.logging import print_error, print_info

    print_error(message)
    if not debug_mode:
        print_info("Run with --debug for full traceback.")
        return

    for key, value in context.items():
        if value is not None:
            print_info(f"  {key}: {value}")
    traceback.print_exc()


if __name__ == "__main__":
    main()
