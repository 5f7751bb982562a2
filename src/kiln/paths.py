"""Path helpers shared by the resolver, sources and destinations.

Module specifiers and locations are plain ``/``-separated strings rather
than ``Path`` objects: a specifier such as ``text!templates/item.html`` is
not a filesystem path, and root-relative module names must keep their
exact spelling to be usable as ``define()`` names.
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from pathlib import Path

# Config file lives at the project root (user-editable)
CONFIG_FILE = ".kilnrc.toml"

_SEPARATORS = re.compile(r"[/\\]+")


def ensure_trailing_slash(filename: str) -> str:
    """Add a trailing slash to a non-empty directory path if needed."""
    if filename and not filename.endswith("/"):
        filename += "/"
    return filename


def relative(path_a: str, path_b: str) -> str:
    """Compute the ``/``-joined path leading from ``path_a`` to ``path_b``.

    Both arguments are split on ``/`` and ``\\``; the shared leading
    segments are dropped, each remaining segment of ``path_a`` becomes a
    ``..`` and the rest of ``path_b`` is appended.

    >>> relative("/root/", "/root/a/b/sibling")
    'a/b/sibling'
    >>> relative("/root/lib/", "/root/vendor/x")
    '../vendor/x'
    """
    # "." segments carry no information: "./" and "" name the same directory
    parts_a = [p for p in _SEPARATORS.split(path_a) if p != "."]
    parts_b = [p for p in _SEPARATORS.split(path_b) if p != "."]

    i = 0
    while i < len(parts_a) and i < len(parts_b) and parts_a[i] == parts_b[i]:
        i += 1

    rest_a = [p for p in parts_a[i:] if p]
    rest_b = [p for p in parts_b[i:] if p]
    return "/".join([".."] * len(rest_a) + rest_b)


def apply_aliases(specifier: str, aliases: Mapping[str, str]) -> str:
    """Substitute aliased leading segments of a module specifier.

    The last segment is the bare module name and is never substituted.
    """
    parts = specifier.split("/")
    name = parts.pop()
    resolved = [aliases.get(part, part) for part in parts]
    return ensure_trailing_slash("/".join(resolved)) + name


def join(base: str, path: str) -> str:
    """Join a base and a root-relative path without discarding the base."""
    if not base:
        return path
    return os.path.join(base, path.lstrip("/"))


def is_file(full_path: str | Path) -> bool:
    return os.path.isfile(full_path)


def is_directory(full_path: str | Path) -> bool:
    return os.path.isdir(full_path)


def mkdirs(dirname: str | Path) -> None:
    """Create a directory and any missing parents."""
    Path(dirname).mkdir(parents=True, exist_ok=True)
