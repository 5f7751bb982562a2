"""Shared helpers for kiln commands."""

from __future__ import annotations

import sys
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING

import click

if TYPE_CHECKING:
    from kiln.cli import KilnContext
    from kiln.config import KilnConfig
    from kiln.project import CommonJsProject


def get_config(ctx: KilnContext) -> KilnConfig:
    """The loaded configuration, or defaults."""
    from kiln.config import KilnConfig

    if ctx.config is None:
        ctx.config = KilnConfig()
    return ctx.config


def parse_aliases(values: Iterable[str]) -> dict[str, str]:
    """Parse repeated ``NAME=PATH`` options into a mapping."""
    aliases: dict[str, str] = {}
    for value in values:
        name, sep, target = value.partition("=")
        if not sep or not name or not target:
            raise click.BadParameter(f"expected NAME=PATH, got '{value}'", param_hint="--alias")
        aliases[name] = target
    return aliases


def build_project(
    ctx: KilnContext,
    roots: Iterable[Path],
    alias_options: Iterable[str],
) -> CommonJsProject:
    """Create a project from configured roots/aliases plus command options.

    Command-line roots are searched before configured ones; command-line
    aliases override configured ones.
    """
    from kiln.errors import ConfigurationError, ExitCode
    from kiln.logging import print_error
    from kiln.project import CommonJsProject

    resolver = get_config(ctx).resolver
    all_roots = [str(r) for r in roots] + list(resolver.roots)
    if not all_roots:
        print_error("No search roots given (use --root or [resolver] roots)")
        sys.exit(ExitCode.CONFIG_ERROR)

    aliases = {**resolver.aliases, **parse_aliases(alias_options)}
    try:
        return CommonJsProject(
            all_roots,
            aliases=aliases,
            text_plugin_pattern=resolver.text_plugin_pattern,
        )
    except ConfigurationError as e:
        print_error(e.message)
        sys.exit(e.exit_code)
