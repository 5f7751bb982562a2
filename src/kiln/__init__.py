"""kiln - Build-time bundler for CommonJS/AMD modules and static assets."""

from kiln.destinations import (
    ArrayDestination,
    Destination,
    DirectoryDestination,
    FileDestination,
    ValueDestination,
    create_data_object,
    dest_factory,
    get_mini_require,
)
from kiln.errors import (
    ConfigurationError,
    DuplicateModuleMatch,
    KilnError,
    ModuleNotFound,
    ParseFailure,
    ResolutionReport,
)
from kiln.filters import Filter, FilterPhase, filter_factory
from kiln.models import DataHolder, Location, Module
from kiln.pipeline import copy, copy_request
from kiln.project import CommonJsProject
from kiln.sources import (
    ArraySource,
    CommonJsSource,
    DirectorySource,
    FileSource,
    FunctionSource,
    Source,
    ValueSource,
    source_factory,
)

__version__ = "0.1.0"

__all__ = [
    "copy",
    "copy_request",
    "CommonJsProject",
    "Location",
    "Module",
    "DataHolder",
    "create_data_object",
    "get_mini_require",
    "Filter",
    "FilterPhase",
    "filter_factory",
    "Source",
    "FileSource",
    "DirectorySource",
    "ArraySource",
    "FunctionSource",
    "ValueSource",
    "CommonJsSource",
    "source_factory",
    "Destination",
    "FileDestination",
    "DirectoryDestination",
    "ArrayDestination",
    "ValueDestination",
    "dest_factory",
    "KilnError",
    "ConfigurationError",
    "ModuleNotFound",
    "DuplicateModuleMatch",
    "ParseFailure",
    "ResolutionReport",
]
