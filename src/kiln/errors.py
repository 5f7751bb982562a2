"""Error handling framework for kiln."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ExitCode(IntEnum):
    """kiln CLI exit codes."""

    SUCCESS = 0
    CONFIG_ERROR = 1  # Bad build description (user fixable)
    PARTIAL_SUCCESS = 2  # Artifact written, but resolution issues reported
    FATAL_ERROR = 3  # Unexpected crash


class KilnError(Exception):
    """Base exception for kiln errors."""

    exit_code: ExitCode = ExitCode.FATAL_ERROR

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for JSON output."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "exit_code": self.exit_code,
            **self.context,
        }


class ConfigurationError(KilnError):
    """Invalid build description. Aborts the build."""

    exit_code = ExitCode.CONFIG_ERROR


class ModuleNotFound(KilnError):
    """No search root contains the requested module."""

    exit_code = ExitCode.PARTIAL_SUCCESS

    def __init__(self, specifier: str, requested_by: str | None = None) -> None:
        super().__init__(
            f"Failed to find module: {specifier} from {requested_by or '<unknown>'}",
            specifier=specifier,
            requested_by=requested_by,
        )
        self.specifier = specifier
        self.requested_by = requested_by


class DuplicateModuleMatch(KilnError):
    """More than one search root contains the module. The first one wins."""

    exit_code = ExitCode.PARTIAL_SUCCESS

    def __init__(self, specifier: str, roots: list[str]) -> None:
        super().__init__(
            f"Found several matches for {specifier} (ignoring all but the first)",
            specifier=specifier,
            roots=roots,
        )
        self.specifier = specifier
        self.roots = roots


class ParseFailure(KilnError):
    """A module could not be parsed for dependencies."""

    exit_code = ExitCode.PARTIAL_SUCCESS

    def __init__(self, path: str, cause: str) -> None:
        super().__init__(f"Failed to compile {path}: {cause}", path=path, cause=cause)
        self.path = path
        self.cause = cause


@dataclass
class ResolutionReport:
    """Issues collected while resolving a module graph.

    Resolution problems never abort a build; they are gathered here so the
    caller can decide how to surface them.
    """

    errors: list[KilnError] = field(default_factory=list)
    cycles: list[tuple[str, str]] = field(default_factory=list)

    @property
    def not_found(self) -> list[ModuleNotFound]:
        return [e for e in self.errors if isinstance(e, ModuleNotFound)]

    @property
    def duplicates(self) -> list[DuplicateModuleMatch]:
        return [e for e in self.errors if isinstance(e, DuplicateModuleMatch)]

    @property
    def parse_failures(self) -> list[ParseFailure]:
        return [e for e in self.errors if isinstance(e, ParseFailure)]

    @property
    def exit_code(self) -> ExitCode:
        """Determine exit code based on recorded issues."""
        if not self.errors:
            return ExitCode.SUCCESS
        return max(e.exit_code for e in self.errors)

    def add_error(self, error: KilnError) -> None:
        """Record an error unless an identical one is already recorded."""
        if error.to_dict() not in (e.to_dict() for e in self.errors):
            self.errors.append(error)

    def add_cycle(self, specifier: str, requested_by: str) -> None:
        if (specifier, requested_by) not in self.cycles:
            self.cycles.append((specifier, requested_by))

    def copy(self) -> ResolutionReport:
        return ResolutionReport(errors=list(self.errors), cycles=list(self.cycles))

    def to_dict(self) -> dict[str, Any]:
        """Convert report to dictionary for JSON output."""
        return {
            "exit_code": self.exit_code,
            "not_found": len(self.not_found),
            "duplicates": len(self.duplicates),
            "parse_failures": len(self.parse_failures),
            "errors": [e.to_dict() for e in self.errors],
            "cycles": [list(c) for c in self.cycles],
        }
