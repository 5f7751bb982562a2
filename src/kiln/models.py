"""Data models for locations, resolved modules and extracted call sites."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any

from kiln.paths import join


@dataclass(frozen=True)
class Location:
    """A search root plus a root-relative path.

    Remembering the root lets a copy operation know where in a destination
    tree a file belongs, and lets the module filters derive module names.
    """

    base: str
    path: str

    def __post_init__(self) -> None:
        if self.base is None:
            raise ValueError(f"base is None for {self.path}")

    @property
    def fullname(self) -> str:
        return join(self.base, self.path)

    @property
    def dirname(self) -> str:
        return os.path.dirname(self.fullname)

    def to_dict(self) -> dict[str, Any]:
        return {"base": self.base, "path": self.path}


@dataclass(eq=False)
class Module:
    """A resolved module: where it lives plus its direct dependencies.

    ``deps`` holds root-relative specifiers (keys into the resolver's
    module tables), in the order they were discovered.
    """

    location: Location
    name: str = ""  # the specifier it was resolved under
    is_text: bool = False
    deps: list[str] = field(default_factory=list)
    resolved: bool = False  # True once the dependency scan has finished

    @property
    def base(self) -> str:
        return self.location.base

    @property
    def path(self) -> str:
        return self.location.path

    @property
    def fullname(self) -> str:
        return self.location.fullname

    @property
    def dirname(self) -> str:
        return self.location.dirname

    def add_dep(self, specifier: str) -> None:
        if specifier not in self.deps:
            self.deps.append(specifier)

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.location.to_dict(),
            "name": self.name,
            "is_text": self.is_text,
            "deps": list(self.deps),
        }


@dataclass
class CallArgument:
    """A simplified view of one call argument.

    kind is one of ``string``, ``array``, ``function`` or ``other``. For
    strings ``value`` is the literal text, for arrays it is the list of
    element arguments, for functions it is the number of formal parameters.
    """

    kind: str
    value: Any = None
    text: str = ""


@dataclass
class CallSite:
    """A call expression whose callee is a plain identifier."""

    callee: str
    args: list[CallArgument] = field(default_factory=list)
    line: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "callee": self.callee,
            "args": [a.kind for a in self.args],
            "line": self.line,
        }


@dataclass
class ParsedScript:
    """Result of scanning one script for call sites."""

    call_sites: list[CallSite] = field(default_factory=list)
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class DataHolder:
    """An in-memory store for the result of copy operations.

    Usable both as a destination (output is appended to ``value``) and as
    a source (``value`` is read back), so one build step can feed another
    without touching disk::

        holder = create_data_object()
        copy(source="x.txt", dest=holder)
        copy(source="y.txt", dest=holder)
        copy(source=holder, dest="z.txt")
    """

    value: str = ""
