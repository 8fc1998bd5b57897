"""Core library: module discovery, header parsing, package resolution and linking."""

from gnolist.core.config import ResolverConfig
from gnolist.core.driver import resolve
from gnolist.core.errors import DescriptorError, GnolistError, ResolveError
from gnolist.core.finder import find_module_dirs, parse_module
from gnolist.core.linker import link
from gnolist.core.packages import (
    DriverRequest,
    DriverResponse,
    ErrorKind,
    LoadMode,
    Module,
    Package,
    PackageError,
)
from gnolist.core.reader import SourceReader
from gnolist.core.resolver import read_package, resolve_name_and_imports
from gnolist.core.stdlib import builtin_package, inject_stdlibs

__all__ = [
    "ResolverConfig",
    "resolve",
    "DescriptorError",
    "GnolistError",
    "ResolveError",
    "find_module_dirs",
    "parse_module",
    "link",
    "DriverRequest",
    "DriverResponse",
    "ErrorKind",
    "LoadMode",
    "Module",
    "Package",
    "PackageError",
    "SourceReader",
    "read_package",
    "resolve_name_and_imports",
    "builtin_package",
    "inject_stdlibs",
]
