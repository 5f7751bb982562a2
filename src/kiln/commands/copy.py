"""kiln copy command - Copy or concatenate files through filters."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

if TYPE_CHECKING:
    from kiln.cli import KilnContext


def _describe_sources(
    sources: tuple[Path, ...], include: tuple[str, ...], exclude: tuple[str, ...]
) -> Any:
    """Turn command arguments into a source description for ``copy()``."""
    members: list[Any] = []
    for path in sources:
        if path.is_dir() and (include or exclude):
            members.append(
                {
                    "root": str(path),
                    "include": list(include) or None,
                    "exclude": list(exclude) or None,
                }
            )
        else:
            members.append(str(path))
    return members[0] if len(members) == 1 else members


@click.command("copy")
@click.argument(
    "sources",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, path_type=Path),
)
@click.option(
    "--output",
    "-o",
    "dest",
    required=True,
    type=click.Path(),
    help="Output file, or directory (existing, or ending in '/') to mirror into",
)
@click.option(
    "--filter",
    "-f",
    "filter_names",
    multiple=True,
    help="Filter to apply, in order (debug, minify, module-wrap, inline-text, inline-base64)",
)
@click.option("--include", multiple=True, help="Regex a directory entry must match")
@click.option("--exclude", multiple=True, help="Regex excluding directory entries")
@click.pass_obj
def copy_cmd(
    ctx: KilnContext,
    sources: tuple[Path, ...],
    dest: str,
    filter_names: tuple[str, ...],
    include: tuple[str, ...],
    exclude: tuple[str, ...],
) -> None:
    """Copy SOURCES to a file or directory, running filters on the way.

    \b
    Examples:
        kiln copy a.js b.js -o build/all.js
        kiln copy lib/ --include '\\.js$' -o build/lib/
        kiln copy logo.png -f inline-base64 -f module-wrap -o build/logo.js
    """
    from kiln.commands._utils import get_config
    from kiln.errors import KilnError
    from kiln.filters import get_filter
    from kiln.logging import print_error, print_success
    from kiln.paths import mkdirs
    from kiln.pipeline import copy

    config = get_config(ctx)

    try:
        filters = [get_filter(name, config.minify) for name in filter_names]
        if dest.endswith(("/", "\\")):
            mkdirs(dest)
        copy(source=_describe_sources(sources, include, exclude), dest=dest, filter=filters)
    except KilnError as e:
        print_error(e.message)
        sys.exit(e.exit_code)

    print_success(f"Wrote {dest}")


__all__ = ["copy_cmd"]
