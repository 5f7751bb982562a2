"""Sources: lazily evaluated producers of content.

``Source.get()`` returns either content (``str``/``bytes``), another
Source, or a list of Sources. Destinations walk that tree. Only File and
Value sources are idempotent; Directory, Function and CommonJS sources
re-enumerate the filesystem or re-run resolution on every call.
"""

from __future__ import annotations

import os
import re
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any, Union

from kiln.errors import ConfigurationError, ResolutionReport
from kiln.filters import Content, Filter
from kiln.logging import get_logger
from kiln.models import DataHolder, Location, Module
from kiln.paths import ensure_trailing_slash, is_directory
from kiln.project import BUILD_FILE, CommonJsProject

SourceData = Union[str, bytes, "Source", list["Source"]]
PathMatcher = Callable[[str], bool]
Patterns = Union[str, re.Pattern[str], Iterable[Union[str, re.Pattern[str]]], None]


class Source(ABC):
    """Abstract Source. Concrete implementations define :meth:`get`."""

    encoding = "utf-8"
    location: Location | Module | None = None

    def __init__(self, filters: Sequence[Filter] = ()) -> None:
        self._filters = list(filters)

    @abstractmethod
    def get(self) -> SourceData:
        """Another source, a list of sources, or content when there is
        nothing else to dig into."""

    def _run_filters(self, value: Content, location: Location | Module | None) -> Content:
        for f in self._filters:
            if f.on_read:
                value = f(value, location)
        return value


class FileSource(Source):
    """Reads a file found at ``location``.

    The location's base tells the module filters and directory destinations
    where the root of the hierarchy is. Use a base of ``""`` when there is
    none.
    """

    def __init__(self, location: Location | Module, filters: Sequence[Filter] = ()) -> None:
        super().__init__(filters)
        self.location = location
        self.name = location.fullname

    def get(self) -> Content:
        return self._run_filters(Path(self.name).read_bytes(), self.location)

    def __repr__(self) -> str:
        return f"FileSource({self.name!r})"


class ValueSource(Source):
    """Literal in-memory content, e.g. a generated preamble."""

    def __init__(
        self,
        value: Content,
        location: Location | Module | None = None,
        filters: Sequence[Filter] = (),
    ) -> None:
        super().__init__(filters)
        self._value = value
        self.location = location

    def get(self) -> Content:
        return self._run_filters(self._value, self.location)


class ArraySource(Source):
    """A list of anything :func:`source_factory` accepts."""

    def __init__(self, array: Iterable[Any], filters: Sequence[Filter] = ()) -> None:
        super().__init__(filters)
        self._array = list(array)

    def get(self) -> list[Source]:
        return [source_factory(member, self._filters) for member in self._array]


class FunctionSource(Source):
    """A zero-argument callable returning a source description.

    Called again on every :meth:`get`, e.g. to recompute a module graph.
    """

    def __init__(self, func: Callable[[], Any], filters: Sequence[Filter] = ()) -> None:
        super().__init__(filters)
        self._func = func

    def get(self) -> Source:
        return source_factory(self._func(), self._filters)


def _compile_patterns(patterns: Patterns) -> list[re.Pattern[str]]:
    if patterns is None:
        return []
    if isinstance(patterns, (str, re.Pattern)):
        patterns = [patterns]
    return [re.compile(p) for p in patterns]


def create_matcher(include: Patterns = None, exclude: Patterns = None) -> PathMatcher:
    """Build a root-relative path predicate from include/exclude regexes.

    A path matches when no include pattern is given or at least one
    include pattern matches it, and no exclude pattern matches it.
    """
    includes = _compile_patterns(include)
    excludes = _compile_patterns(exclude)

    def matcher(pathname: str) -> bool:
        if includes and not any(p.search(pathname) for p in includes):
            return False
        return not any(p.search(pathname) for p in excludes)

    return matcher


class DirectorySource(Source):
    """Files under one or more roots, selected by include/exclude patterns.

    Traversal is depth-first in filesystem enumeration order, which is not
    sorted; callers that need a deterministic order must sort upstream.
    """

    def __init__(
        self,
        root: str | Path | Sequence[str | Path] | CommonJsProject,
        include: Patterns | PathMatcher = None,
        exclude: Patterns = None,
        filters: Sequence[Filter] = (),
    ) -> None:
        super().__init__(filters)
        if isinstance(root, CommonJsProject):
            root = root.roots
        if isinstance(root, (str, Path)):
            self.root: str | list[str] = ensure_trailing_slash(str(root))
        else:
            self.root = [ensure_trailing_slash(str(r)) for r in root]

        if callable(include):
            self._matcher = include
        else:
            self._matcher = create_matcher(include, exclude)

    def get(self) -> list[Source]:
        return self._find_matches(self.root, "")

    def _find_matches(self, root: str | list[str], path: str) -> list[Source]:
        if isinstance(root, list):
            sources: list[Source] = []
            for r in root:
                sources.extend(self._find_matches(r, path))
            return sources

        sources = []
        with os.scandir(os.path.join(root, path) if path else root) as entries:
            for entry in entries:
                relpath = path + entry.name
                if entry.is_file():
                    if self._matcher(relpath):
                        sources.append(FileSource(Location(root, relpath), self._filters))
                elif entry.is_dir():
                    sources.extend(self._find_matches(root, relpath + "/"))
        return sources

    def __repr__(self) -> str:
        return f"DirectorySource({self.root!r})"


class CommonJsSource(Source):
    """The modules required, transitively, by entry points of a project.

    Yields every module in the project's current table, in resolution
    order, as FileSources whose location is the resolved Module (so the
    module filters can see its name, dependencies and text flag).

    Missing entry points are recorded in the project report unless
    ``strict`` is set, in which case ``ModuleNotFound`` propagates.
    """

    def __init__(
        self,
        project: CommonJsProject,
        require: str | Sequence[str],
        filters: Sequence[Filter] = (),
        strict: bool = False,
    ) -> None:
        super().__init__(filters)
        if not isinstance(project, CommonJsProject):
            raise ConfigurationError("commonjs project should be a CommonJsProject")

        if isinstance(require, str):
            self._require = [require]
        elif isinstance(require, Sequence):
            self._require = list(require)
        else:
            raise ConfigurationError("Expected commonjs args to have string/array require.")

        self._project = project
        self.strict = strict

    @property
    def project(self) -> CommonJsProject:
        return self._project

    @property
    def report(self) -> ResolutionReport:
        return self._project.report

    def get(self) -> list[Source]:
        for name in self._require:
            if self.strict:
                self._project.resolve(name, BUILD_FILE)
            else:
                self._project.require(name, BUILD_FILE)

        modules = self._project.get_current_modules()
        get_logger().debug(f"Resolved {len(modules)} modules from {', '.join(self._require)}")
        return [FileSource(module, self._filters) for module in modules]


def source_factory(source: Any, filters: Sequence[Filter] = ()) -> Source:
    """Select the Source implementation for a source description.

    Accepted descriptions:
        Source instance       returned unchanged
        path (str / Path)     DirectorySource if a directory, else FileSource
        DataHolder            ValueSource over its current value
        list / tuple          ArraySource
        callable              FunctionSource
        {"root", "require"}   CommonJsSource over a new single-root project
        {"root", "include"?, "exclude"?}
                              DirectorySource
        {"base", "path"}      FileSource
        {"value"}             ValueSource
        {"project", "require"}
                              CommonJsSource over an existing project
    """
    if source is None:
        raise ConfigurationError("Missing source")

    if isinstance(source, Source):
        return source

    if isinstance(source, (str, os.PathLike)):
        source = os.fspath(source)
        if is_directory(source):
            return DirectorySource(source, filters=filters)
        return FileSource(Location("", source), filters)

    if isinstance(source, DataHolder):
        return ValueSource(source.value, filters=filters)

    if isinstance(source, (list, tuple)):
        return ArraySource(source, filters)

    if callable(source):
        return FunctionSource(source, filters)

    if isinstance(source, Mapping):
        if source.get("root") is not None:
            if source.get("require") is not None:
                project = CommonJsProject([source["root"]])
                return CommonJsSource(project, source["require"], filters)
            return DirectorySource(
                source["root"], source.get("include"), source.get("exclude"), filters
            )

        if source.get("base") is not None and source.get("path") is not None:
            return FileSource(Location(str(source["base"]), str(source["path"])), filters)

        if isinstance(source.get("value"), (str, bytes)):
            return ValueSource(source["value"], filters=filters)

        if source.get("project") is not None and source.get("require") is not None:
            return CommonJsSource(source["project"], source["require"], filters)

    raise ConfigurationError(f"Can't handle type of source: {type(source).__name__}")
