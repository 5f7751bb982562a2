"""kiln init command - Write a .kilnrc.toml for a module tree."""

from __future__ import annotations

import sys
from pathlib import Path

import click


def _relative_roots(directory: Path, roots: tuple[Path, ...]) -> list[str]:
    """Roots as written to the config: relative to DIRECTORY when inside it."""
    relative: list[str] = []
    for root in roots:
        resolved = root.resolve()
        try:
            relative.append(resolved.relative_to(directory).as_posix() or ".")
        except ValueError:
            relative.append(str(resolved))
    return relative


@click.command()
@click.argument(
    "directory",
    default=".",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.option(
    "--root",
    "-r",
    "roots",
    multiple=True,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Module root to record under [resolver] (repeatable, priority order)",
)
@click.option("--alias", "alias_options", multiple=True, help="Alias as NAME=PATH (repeatable)")
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing .kilnrc.toml")
def init(
    directory: Path,
    roots: tuple[Path, ...],
    alias_options: tuple[str, ...],
    force: bool,
) -> None:
    """Write a .kilnrc.toml into DIRECTORY (default: the current one).

    \b
    Examples:
        kiln init
        kiln init web -r web/lib -r web/vendor --alias jquery=vendor/jquery
    """
    from kiln.commands._utils import parse_aliases
    from kiln.config import get_default_config_toml
    from kiln.errors import ExitCode
    from kiln.logging import print_error, print_info, print_success
    from kiln.paths import CONFIG_FILE

    directory = directory.resolve()
    config_path = directory / CONFIG_FILE
    if config_path.exists() and not force:
        print_error(f"{config_path} exists; pass --force to replace it")
        sys.exit(ExitCode.CONFIG_ERROR)

    recorded = _relative_roots(directory, roots)
    content = get_default_config_toml(recorded, parse_aliases(alias_options))
    try:
        config_path.write_text(content)
    except OSError as e:
        print_error(f"Cannot write {config_path}: {e.strerror or e}")
        sys.exit(ExitCode.CONFIG_ERROR)

    print_success(f"Created {config_path}")
    if not recorded:
        print_info(f"No roots recorded; add them under [resolver] in {CONFIG_FILE}")
    elif directory != Path.cwd().resolve():
        print_info(f"Roots are relative to {directory}; run kiln from there")


__all__ = ["init"]
