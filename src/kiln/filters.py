"""Content filters applied while copying sources to destinations.

A filter is tagged with a phase. ``read`` filters run once per leaf source,
before aggregation, and receive the source's location. ``write`` filters
run on the aggregated output of a destination and receive no location.
Filters run in declaration order and order matters: ``inline-base64``
needs the raw bytes, so it must come first.
"""

from __future__ import annotations

import base64
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Any, Union

from calmjs.parse import es5
from calmjs.parse.exceptions import ECMASyntaxError, ProductionError
from calmjs.parse.unparsers.es5 import minify_print, pretty_print

from kiln.config import MinifyConfig
from kiln.errors import ConfigurationError
from kiln.logging import get_logger
from kiln.models import Location, Module

Content = Union[str, bytes]
SourceLocation = Union[Location, Module, str, None]

# The simplified CommonJS wrapper header rewritten by module-wrap
CJS_HEADER = re.compile(r"\bdefine\s*\(\s*function\s*\(require,\s*exports,\s*module\)\s*\{")

IMAGE_TYPES = {".png": "png", ".gif": "gif"}


class FilterPhase(str, Enum):
    """When a filter runs."""

    READ = "read"
    WRITE = "write"


@dataclass(frozen=True)
class Filter:
    """A named, phase-tagged content transformation."""

    name: str
    func: Callable[[Content, SourceLocation], Content]
    phase: FilterPhase = FilterPhase.READ

    @property
    def on_read(self) -> bool:
        return self.phase is FilterPhase.READ

    def __call__(self, content: Content, location: SourceLocation = None) -> Content:
        return self.func(content, location)


def _as_text(content: Content) -> str:
    if isinstance(content, bytes):
        return content.decode("utf-8", errors="replace")
    return content


def _module_name(location: SourceLocation) -> str:
    if isinstance(location, (Location, Module)):
        return location.path
    return str(location)


def _text_module_name(location: SourceLocation) -> str:
    """define() name of a text resource: the specifier it was required under."""
    if isinstance(location, Module) and location.is_text and location.name:
        return location.name
    return f"text!{_module_name(location)}"


def _debug(content: Content, location: SourceLocation) -> Content:
    get_logger().info(f"Read {_module_name(location) if location else 'unknown'}")
    return content


def _minify(content: Content, location: SourceLocation, options: MinifyConfig) -> Content:
    text = _as_text(content)
    try:
        program = es5(text)
    except (ECMASyntaxError, ProductionError) as e:
        get_logger().error(f"Failed to compile code: {e}")
        return text

    if options.beautify:
        return pretty_print(program)
    return minify_print(
        program,
        obfuscate=options.mangle,
        obfuscate_globals=options.mangle_toplevel,
        drop_semi=options.drop_semicolons,
    )


def _inline_text(content: Content, location: SourceLocation) -> Content:
    if not location:
        raise ConfigurationError("Missing filename for inline-text")

    text = _as_text(content)
    text = text.replace("\\", "\\\\").replace("'", "\\'").replace("\r", "\\r")
    text = "'" + text.replace("\n", "\\n' +\n  '") + "'"
    return f"define('{_text_module_name(location)}', [], {text});\n\n"


def _inline_base64(content: Content, location: SourceLocation) -> Content:
    if isinstance(content, str):
        raise ConfigurationError("base64 filter needs to be the first in a filter set")
    if not location:
        raise ConfigurationError("Missing filename for inline-base64")

    name = _module_name(location)
    image_type = IMAGE_TYPES.get(name[-4:].lower())
    if image_type is None:
        raise ConfigurationError(f"Only gif/png supported by base64 filter: {name}", path=name)

    data = base64.b64encode(content).decode("ascii")
    return (
        f'define("{_text_module_name(location)}", [], '
        f'"data:image/{image_type};base64,{data}");\n\n'
    )


def _module_wrap(content: Content, location: SourceLocation) -> Content:
    logger = get_logger()
    if not location:
        logger.debug(
            "Source without filename passed to module-wrap. "
            "Skipping addition of define(...) wrapper."
        )
        return content

    if isinstance(location, Module) and location.is_text:
        if isinstance(content, str) and content.startswith(
            f'define("{_text_module_name(location)}"'
        ):
            # Already inlined by inline-base64
            return content
        return _inline_text(content, location)

    text = _as_text(content)
    deps = location.deps if isinstance(location, Module) else []
    dep_list = "".join(f", '{dep}'" for dep in deps)
    if isinstance(location, Module) and location.name:
        name = location.name
    else:
        name = _module_name(location)
    name = re.sub(r"\.js$", "", name)
    header = (
        f"define('{name}', ['require', 'exports', 'module'{dep_list}], "
        "function(require, exports, module) {"
    )

    wrapped, count = CJS_HEADER.subn(lambda _: header, text, count=1)
    if not count:
        logger.debug(f"No CommonJS define() header found in {name}; passing through")
    return wrapped


def minify_filter(options: MinifyConfig | None = None) -> Filter:
    """Build a minify filter bound to an immutable option set."""
    return Filter("minify", partial(_minify, options=options or MinifyConfig()), FilterPhase.WRITE)


debug = Filter("debug", _debug, FilterPhase.READ)
minify = minify_filter()
module_wrap = Filter("module-wrap", _module_wrap, FilterPhase.READ)
inline_text = Filter("inline-text", _inline_text, FilterPhase.READ)
inline_base64 = Filter("inline-base64", _inline_base64, FilterPhase.READ)

FILTERS: dict[str, Filter] = {
    f.name: f for f in (debug, minify, module_wrap, inline_text, inline_base64)
}


def get_filter(name: str, minify_options: MinifyConfig | None = None) -> Filter:
    """Look up a built-in filter by name."""
    if name == "minify" and minify_options is not None:
        return minify_filter(minify_options)
    try:
        return FILTERS[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown filter: {name} (available: {', '.join(sorted(FILTERS))})", filter=name
        ) from None


def filter_factory(description: Any) -> list[Filter]:
    """Normalize a filter description into an ordered list of filters.

    Accepts None, a Filter, a filter name, a bare callable (treated as a
    write-phase filter taking the aggregated content), or a list of any
    of these.
    """
    if description is None:
        return []
    if isinstance(description, Filter):
        return [description]
    if isinstance(description, str):
        return [get_filter(description)]
    if callable(description):
        name = getattr(description, "__name__", "custom")
        return [Filter(name, lambda content, _location: description(content), FilterPhase.WRITE)]
    if isinstance(description, Iterable):
        filters: list[Filter] = []
        for member in description:
            filters.extend(filter_factory(member))
        return filters
    raise ConfigurationError(f"Can't handle type of filter: {type(description).__name__}")
