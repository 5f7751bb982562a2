"""kiln bundle command - Bundle a module graph into a single file."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click

if TYPE_CHECKING:
    from kiln.cli import KilnContext


@click.command()
@click.option(
    "--root",
    "-r",
    "roots",
    multiple=True,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Search root (repeatable, first has priority)",
)
@click.option(
    "--require",
    "-m",
    "requires",
    multiple=True,
    required=True,
    help="Entry point module (repeatable)",
)
@click.option(
    "--exclude-from",
    multiple=True,
    help="Module whose graph is assumed already loaded (repeatable)",
)
@click.option("--alias", multiple=True, help="Path alias NAME=PATH (repeatable)")
@click.option(
    "--output",
    "-o",
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Bundle file to write",
)
@click.option("--minify", is_flag=True, help="Minify the bundle")
@click.option("--mini-require", is_flag=True, help="Prepend a minimal AMD loader")
@click.pass_obj
def bundle(
    ctx: KilnContext,
    roots: tuple[Path, ...],
    requires: tuple[str, ...],
    exclude_from: tuple[str, ...],
    alias: tuple[str, ...],
    output: Path,
    minify: bool,
    mini_require: bool,
) -> None:
    """Resolve entry points and write every module they need to one file.

    Each module is wrapped in a named define(...) so the bundle can be
    loaded without a filesystem-aware loader. Modules reachable from
    --exclude-from entries are left out.

    \b
    Examples:
        kiln bundle -r lib -m app/main -o build/app.js
        kiln bundle -r lib -m app/page --exclude-from app/main -o build/page.js
        kiln bundle -r lib -m app/main --mini-require --minify -o build/app.min.js
    """
    from kiln.commands._utils import build_project, get_config
    from kiln.destinations import FileDestination, get_mini_require
    from kiln.errors import KilnError
    from kiln.filters import minify_filter, module_wrap
    from kiln.logging import print_error, print_info, print_report, print_success
    from kiln.pipeline import copy
    from kiln.sources import CommonJsSource

    config = get_config(ctx)
    project = build_project(ctx, roots, alias)

    if exclude_from:
        for name in exclude_from:
            project.require(name)
        excluded = len(project.current_modules)
        project.assume_all_files_loaded()
        print_info(f"Excluding {excluded} already loaded modules")

    filters = [module_wrap]
    if minify:
        filters.append(minify_filter(config.minify))

    source: list[object] = []
    if mini_require:
        source.append(get_mini_require())
    source.append(CommonJsSource(project, list(requires), [module_wrap]))

    try:
        copy(
            source=source,
            dest=FileDestination(output, filters, config.output.encoding),
            filter=filters,
        )
    except KilnError as e:
        print_error(e.message)
        sys.exit(e.exit_code)

    print_report(project.report, verbose=ctx.verbosity == "verbose")
    print_success(f"Bundled {len(project.current_modules)} modules into {output}")


__all__ = ["bundle"]
