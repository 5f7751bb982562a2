"""CommonJS / AMD module graph resolution.

Statically discovers every module transitively required by a set of entry
points, without executing any code.

Usage:
    project = CommonJsProject(["lib/"], aliases={"vendor": "third_party"})
    project.require("app/main")
    for module in project.get_current_modules():
        print(module.path, module.deps)
"""

from __future__ import annotations

import os
import re
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import TYPE_CHECKING

from kiln.errors import (
    ConfigurationError,
    DuplicateModuleMatch,
    ModuleNotFound,
    ParseFailure,
    ResolutionReport,
)
from kiln.logging import get_logger
from kiln.models import CallArgument, CallSite, Location, Module
from kiln.parser import extract_call_sites
from kiln.paths import (
    apply_aliases,
    ensure_trailing_slash,
    is_directory,
    is_file,
    join,
    relative,
)

if TYPE_CHECKING:
    from kiln.config import ResolverConfig

DEFAULT_TEXT_PLUGIN_PATTERN = r"^text!"

# Name used as the requester of entry points
BUILD_FILE = "<build file>"


def normalize_require(module: Module | Location, specifier: str) -> str:
    """Express a raw specifier relative to the requiring module's root.

    Relative specifiers (``./x``, ``../x``) are resolved against the
    requiring module's directory; both halves of a ``plugin!resource``
    specifier are normalized independently.
    """
    if "!" in specifier:
        plugin, resource = specifier.split("!")[:2]
        return normalize_require(module, plugin) + "!" + normalize_require(module, resource)

    if specifier.startswith("."):
        target = os.path.normpath(os.path.join(module.dirname, specifier))
        return relative(module.base, target)
    return specifier


def find_requires(module: Module, call_sites: Iterable[CallSite]) -> list[str]:
    """Collect the normalized dependency specifiers declared by call sites.

    Recognized forms:
        require('name')
        define(['a', 'b'], factory)
        define('name', ['a', 'b'], factory)

    ``define(function(require, exports, module) {...})`` (with or without a
    leading name) is the simplified CommonJS wrapper and declares nothing;
    its dependencies come from the ``require()`` calls in its body.
    """
    logger = get_logger()
    reply: list[str] = []

    for call in call_sites:
        args = call.args
        if call.callee == "define":
            params: list[CallArgument] | None = None
            if _is_kind(args, 0, "array"):
                params = args[0].value
            elif _is_kind(args, 0, "string") and _is_kind(args, 1, "array"):
                params = args[1].value
            elif (_is_kind(args, 0, "function") and args[0].value) or (
                _is_kind(args, 0, "string") and _is_kind(args, 1, "function") and args[1].value
            ):
                continue
            else:
                logger.debug(
                    f"{module.path} has define(...) with unrecognized parameters "
                    f"at line {call.line}. Ignoring requirement."
                )
                continue

            for param in params:
                if param.kind == "string":
                    reply.append(normalize_require(module, param.value))
                else:
                    logger.debug(
                        f"{module.path} has define(...) with non-string parameter "
                        f"{param.text}. Ignoring requirement."
                    )

        elif call.callee == "require":
            if _is_kind(args, 0, "string"):
                reply.append(normalize_require(module, args[0].value))
            else:
                logger.debug(
                    f"{module.path} has require(...) with non-string parameter "
                    f"at line {call.line}. Ignoring requirement."
                )

    return reply


def _is_kind(args: list[CallArgument], index: int, kind: str) -> bool:
    return len(args) > index and args[index].kind == kind


class CommonJsProject:
    """Keep track of the modules of a project spread over search roots.

    Modules resolved by the current traversal live in ``current_modules``;
    modules assumed to be available already (see
    :meth:`assume_all_files_loaded`) live in ``ignored_modules``. A
    specifier is in at most one of the two tables and is scanned for
    dependencies at most once per project instance.
    """

    def __init__(
        self,
        roots: Iterable[str | Path],
        aliases: Mapping[str, str] | None = None,
        text_plugin_pattern: str | re.Pattern[str] | None = None,
    ) -> None:
        self.roots: list[str] = []
        for root in roots:
            self.add_root(root)
        self.aliases = dict(aliases) if aliases else None
        self.text_plugin_pattern = re.compile(text_plugin_pattern or DEFAULT_TEXT_PLUGIN_PATTERN)

        self.current_modules: dict[str, Module] = {}
        self.ignored_modules: dict[str, Module] = {}
        self.report = ResolutionReport()

    @classmethod
    def from_config(cls, config: ResolverConfig) -> CommonJsProject:
        """Build a project from a ``ResolverConfig``."""
        return cls(
            config.roots,
            aliases=config.aliases,
            text_plugin_pattern=config.text_plugin_pattern,
        )

    def add_root(self, root: str | Path) -> None:
        """Append a search root with the lowest priority."""
        root = str(root)
        if not is_directory(root):
            raise ConfigurationError(f"Each commonjs root should be a directory: {root}", root=root)
        self.roots.append(ensure_trailing_slash(os.path.normpath(root)))

    def resolve(self, specifier: str, requested_by: str | None = None) -> Module:
        """Resolve a specifier and, transitively, everything it requires.

        Dependencies that cannot be found are recorded in :attr:`report`
        and skipped; only a failure to find ``specifier`` itself raises.

        Raises:
            ModuleNotFound: No search root contains the module.
        """
        module = self.current_modules.get(specifier) or self.ignored_modules.get(specifier)
        if module is not None:
            if not module.resolved and requested_by is not None:
                get_logger().debug(f"Cyclic dependency: {requested_by} -> {specifier}")
                self.report.add_cycle(specifier, requested_by)
            return module

        lookup = specifier
        if self.aliases:
            lookup = apply_aliases(specifier, self.aliases)

        if self.text_plugin_pattern.search(lookup):
            is_text = True
            candidates = [self.text_plugin_pattern.sub("", lookup, count=1)]
        else:
            is_text = False
            candidates = [lookup + ".js", lookup + "/index.js"]

        location = self._find_location(specifier, candidates)
        if location is None:
            raise ModuleNotFound(specifier, requested_by)

        module = Module(location=location, name=specifier, is_text=is_text)
        self.current_modules[specifier] = module

        if not is_text:
            for dep in self._scan(module):
                module.add_dep(dep)
                try:
                    self.resolve(dep, specifier)
                except ModuleNotFound as e:
                    get_logger().debug(e.message)
                    self.report.add_error(e)

        module.resolved = True
        return module

    def require(self, specifier: str, requested_by: str | None = BUILD_FILE) -> Module | None:
        """Like :meth:`resolve`, but record a missing module instead of raising."""
        try:
            return self.resolve(specifier, requested_by)
        except ModuleNotFound as e:
            get_logger().debug(e.message)
            self.report.add_error(e)
            return None

    def _find_location(self, specifier: str, candidates: list[str]) -> Location | None:
        """First root holding any candidate wins; later roots are duplicates."""
        for candidate in candidates:
            # Absolute requires, and relative ones resolved to absolute paths
            if candidate.startswith("/") and is_file(candidate):
                get_logger().debug(f"Using location with base '/' for {candidate}")
                return Location("/", candidate.lstrip("/"))

        found: Location | None = None
        matched_roots: list[str] = []
        for base in self.roots:
            for candidate in candidates:
                if is_file(join(base, candidate)):
                    if found is None:
                        found = Location(base, candidate)
                    matched_roots.append(base)
                    break

        if len(matched_roots) > 1:
            duplicate = DuplicateModuleMatch(specifier, matched_roots)
            get_logger().debug(duplicate.message)
            self.report.add_error(duplicate)
        return found

    def _scan(self, module: Module) -> list[str]:
        """Dependencies declared by a module; empty if it cannot be parsed."""
        source = Path(module.fullname).read_bytes()
        parsed = extract_call_sites(source, names=("define", "require"))
        if not parsed.success:
            failure = ParseFailure(module.path, parsed.error or "unknown error")
            get_logger().debug(failure.message)
            self.report.add_error(failure)
            return []
        return find_requires(module, parsed.call_sites)

    def get_current_modules(self) -> list[Module]:
        """Modules resolved by the current traversal, in resolution order."""
        return list(self.current_modules.values())

    def assume_all_files_loaded(self) -> None:
        """Mark everything resolved so far as already available.

        A later traversal will neither re-scan nor re-emit these modules.
        """
        self.ignored_modules.update(self.current_modules)
        self.current_modules = {}

    def clone(self) -> CommonJsProject:
        """Independent project with copies of the roots, aliases and module tables."""
        clone = CommonJsProject.__new__(CommonJsProject)
        clone.roots = list(self.roots)
        clone.aliases = dict(self.aliases) if self.aliases else None
        clone.text_plugin_pattern = self.text_plugin_pattern
        clone.current_modules = dict(self.current_modules)
        clone.ignored_modules = dict(self.ignored_modules)
        clone.report = self.report.copy()
        return clone

    def describe(self) -> str:
        """Human-readable summary of the required and ignored modules."""
        lines = [f"CommonJS project at {', '.join(self.roots)}", "- Required modules:"]
        if self.current_modules:
            for name, module in self.current_modules.items():
                count = len(module.deps)
                noun = "dependency" if count == 1 else "dependencies"
                lines.append(f"  - {name} ({count} {noun})")
        else:
            lines.append("  - None")

        lines.append("- Ignored modules:")
        if self.ignored_modules:
            lines.extend(f"  - {name}" for name in self.ignored_modules)
        else:
            lines.append("  - None")

        return "\n".join(lines) + "\n"

    def to_dict(self) -> dict[str, object]:
        return {
            "roots": list(self.roots),
            "aliases": dict(self.aliases or {}),
            "current_modules": {k: m.to_dict() for k, m in self.current_modules.items()},
            "ignored_modules": sorted(self.ignored_modules),
            "report": self.report.to_dict(),
        }
