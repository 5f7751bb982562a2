"""The copy driver: wire a source, filters and a destination together."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from kiln.destinations import FilenameFilter, dest_factory
from kiln.errors import ConfigurationError
from kiln.filters import filter_factory
from kiln.logging import get_logger
from kiln.sources import source_factory


def copy(
    source: Any,
    dest: Any,
    filter: Any = None,
    filename_filter: FilenameFilter | None = None,
) -> None:
    """Copy ``source`` to ``dest`` through ``filter``.

    The whole transfer (resolve, read, filter, write) runs as one blocking
    call. Configuration problems raise ``ConfigurationError`` before or
    during the transfer; I/O errors propagate unchanged.

    Args:
        source: Anything ``source_factory`` accepts
        dest: Anything ``dest_factory`` accepts
        filter: A filter, filter name, callable, or a list of these
        filename_filter: Remaps output paths of directory destinations
    """
    filters = filter_factory(filter)
    src = source_factory(source, filters)
    destination = dest_factory(dest, filters, filename_filter)

    get_logger().debug(
        f"Copying {type(src).__name__} to {type(destination).__name__} "
        f"with filters [{', '.join(f.name for f in filters)}]"
    )
    destination.process_source(src)


def copy_request(request: Mapping[str, Any]) -> None:
    """Run a declarative build request.

    The request has the keys ``source``, ``dest``, an optional ``filter``
    and an optional ``filenameFilter`` (or ``filename_filter``).
    """
    if request.get("source") is None:
        raise ConfigurationError("Missing source")
    if request.get("dest") is None:
        raise ConfigurationError("Missing dest")

    copy(
        request["source"],
        request["dest"],
        filter=request.get("filter"),
        filename_filter=request.get("filenameFilter") or request.get("filename_filter"),
    )
