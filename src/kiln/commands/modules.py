"""kiln modules command - Report the module graph of entry points."""

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
@click.option("--alias", multiple=True, help="Path alias NAME=PATH (repeatable)")
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["text", "json", "graphml"]),
    default="text",
    help="Output format",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the report to a file instead of stdout",
)
@click.pass_obj
def modules(
    ctx: KilnContext,
    roots: tuple[Path, ...],
    requires: tuple[str, ...],
    alias: tuple[str, ...],
    output_format: str,
    output: Path | None,
) -> None:
    """Resolve entry points and report the module graph.

    Exits with code 2 when modules are missing, duplicated or unparseable.

    \b
    Examples:
        kiln modules -r lib -m app/main
        kiln modules -r lib -m app/main -f graphml -o deps.graphml
    """
    from kiln.commands._utils import build_project
    from kiln.errors import ExitCode
    from kiln.logging import print_success
    from kiln.reporter import ProjectReporter

    project = build_project(ctx, roots, alias)
    for name in requires:
        project.require(name)

    reporter = ProjectReporter()
    if output_format == "json":
        rendered = reporter.report_json(project)
    elif output_format == "graphml":
        rendered = reporter.report_graphml(project)
    else:
        rendered = reporter.report_text(project, no_color=ctx.no_color or output is not None)

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(rendered)
        print_success(f"Report written to {output}")
    else:
        click.echo(rendered)

    if project.report.exit_code != ExitCode.SUCCESS:
        sys.exit(project.report.exit_code)


__all__ = ["modules"]
