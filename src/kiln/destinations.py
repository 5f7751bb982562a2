"""Destinations: consumers that drain a Source tree."""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Mapping, MutableMapping, Sequence
from importlib import resources
from pathlib import Path
from typing import Any

from kiln.errors import ConfigurationError
from kiln.filters import Content, Filter
from kiln.logging import get_logger
from kiln.models import DataHolder
from kiln.paths import is_directory, mkdirs
from kiln.sources import Source

FilenameFilter = Callable[[str], str]


def write_to_file(filename: str | Path, data: Content, encoding: str = "utf-8") -> None:
    """Replace ``filename`` with ``data``, creating parent directories.

    Raises:
        ConfigurationError: ``filename`` exists and is not a regular file.
    """
    path = Path(filename)
    if path.exists():
        if not path.is_file():
            raise ConfigurationError(f"Refusing to remove non file: {filename}", path=str(path))
        path.unlink()

    mkdirs(path.parent)
    if isinstance(data, bytes):
        path.write_bytes(data)
    else:
        path.write_text(data, encoding=encoding)
    get_logger().debug(f"wrote {len(data)} bytes to {filename}")


class Destination(ABC):
    """Abstract Destination. Concrete implementations define
    :meth:`process_source`."""

    def __init__(self, filters: Sequence[Filter] = ()) -> None:
        self._filters = list(filters)

    @abstractmethod
    def process_source(self, source: Source) -> None:
        """Consume the entire tree produced by ``source``."""

    def _source_to_output(self, source: Source) -> str:
        """Flatten a source tree into one string, depth-first, in order."""
        data = source.get()

        if isinstance(data, Source):
            return self._source_to_output(data)
        if isinstance(data, list):
            return "".join(self._source_to_output(s) for s in data)
        if isinstance(data, str):
            return data
        if isinstance(data, bytes):
            return data.decode(source.encoding, errors="replace")

        raise ConfigurationError(f"Unexpected value from source.get(): {type(data).__name__}")

    def _run_filters(self, value: Content) -> Content:
        for f in self._filters:
            if not f.on_read:
                value = f(value)
        return value


class FileDestination(Destination):
    """Concatenates the sources and writes them to a single file."""

    def __init__(
        self,
        filename: str | Path,
        filters: Sequence[Filter] = (),
        encoding: str = "utf-8",
    ) -> None:
        super().__init__(filters)
        self._filename = filename
        self.encoding = encoding

    def process_source(self, source: Source) -> None:
        data = self._run_filters(self._source_to_output(source))
        write_to_file(self._filename, data, self.encoding)


class DirectoryDestination(Destination):
    """Copies each leaf source to its own file under ``dirname``.

    Output paths mirror each leaf's root-relative location, optionally
    remapped by ``filename_filter``. Write-phase filters run per leaf.
    """

    def __init__(
        self,
        dirname: str | Path,
        filters: Sequence[Filter] = (),
        filename_filter: FilenameFilter | None = None,
    ) -> None:
        super().__init__(filters)
        self.name = os.fspath(dirname)
        self._filename_filter = filename_filter

    def process_source(self, source: Source) -> None:
        data = source.get()
        if isinstance(data, (str, bytes)):
            raise ConfigurationError("Can't write raw data to a directory")
        self._write_tree(data)

    def _write_tree(self, data: Source | list[Source]) -> None:
        members = [data] if isinstance(data, Source) else data
        for member in members:
            if not isinstance(member, Source):
                raise ConfigurationError(
                    f"data is not a source, string, nor can it be converted: {member!r}"
                )
            content = member.get()
            if isinstance(content, (str, bytes)):
                self._write_leaf(member, content)
            else:
                self._write_tree(content)

    def _write_leaf(self, source: Source, content: Content) -> None:
        if source.location is None:
            raise ConfigurationError("Can't write raw data to a directory")

        destfile = os.path.join(self.name, source.location.path.lstrip("/"))
        if self._filename_filter is not None:
            destfile = self._filename_filter(destfile)
        write_to_file(destfile, self._run_filters(content), source.encoding)


class ArrayDestination(Destination):
    """Feeds the same source, in full, to each member destination."""

    def __init__(
        self,
        array: Iterable[Any],
        filters: Sequence[Filter] = (),
        filename_filter: FilenameFilter | None = None,
    ) -> None:
        super().__init__(filters)
        self._array = list(array)
        self._filename_filter = filename_filter

    def process_source(self, source: Source) -> None:
        for member in self._array:
            dest = dest_factory(member, self._filters, self._filename_filter)
            dest.process_source(source)


class ValueDestination(Destination):
    """Concatenates the sources and appends them to an in-memory holder.

    The holder is a :class:`DataHolder` or any mutable mapping with a
    ``"value"`` key; it is mutated in place.
    """

    def __init__(
        self,
        holder: DataHolder | MutableMapping[str, Any],
        filters: Sequence[Filter] = (),
    ) -> None:
        super().__init__(filters)
        self._holder = holder

    def process_source(self, source: Source) -> None:
        data = self._run_filters(self._source_to_output(source))
        if isinstance(data, bytes):
            data = data.decode("utf-8", errors="replace")

        if isinstance(self._holder, DataHolder):
            self._holder.value += data
        else:
            self._holder["value"] += data


def dest_factory(
    dest: Any,
    filters: Sequence[Filter] = (),
    filename_filter: FilenameFilter | None = None,
) -> Destination:
    """Select the Destination implementation for a dest description.

    Accepted descriptions:
        Destination instance      returned unchanged
        DataHolder / {"value": ""}
                                  ValueDestination
        path (str / Path)         DirectoryDestination if an existing
                                  directory, else FileDestination
        list / tuple              ArrayDestination
    """
    if dest is None:
        raise ConfigurationError("Missing dest")

    if isinstance(dest, Destination):
        return dest

    if isinstance(dest, DataHolder):
        return ValueDestination(dest, filters)
    if isinstance(dest, Mapping) and dest.get("value") is not None:
        if not isinstance(dest, MutableMapping):
            raise ConfigurationError("A value dest must be mutable")
        return ValueDestination(dest, filters)

    if isinstance(dest, (str, os.PathLike)):
        if is_directory(dest):
            return DirectoryDestination(dest, filters, filename_filter)
        return FileDestination(dest, filters)

    if isinstance(dest, (list, tuple)):
        return ArrayDestination(dest, filters, filename_filter)

    raise ConfigurationError(f"Can't handle type of dest: {type(dest).__name__}")


def create_data_object() -> DataHolder:
    """An empty in-memory holder usable as a dest and later as a source."""
    return DataHolder()


def get_mini_require() -> DataHolder:
    """A holder containing the bundled minimal AMD loader.

    Prepend it to a module bundle so it can be loaded without a
    filesystem-aware module loader.
    """
    script = resources.files("kiln").joinpath("resources/mini_require.js")
    return DataHolder(value=script.read_text(encoding="utf-8"))
