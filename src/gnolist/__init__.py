"""gnolist: resolve Gno workspace packages into an import graph (library, CLI, TUI, web)."""

from importlib.metadata import version, PackageNotFoundError

from gnolist.api import (
    get_package,
    import_edges,
    list_modules,
    resolve_packages,
)
from gnolist.core import DriverRequest, DriverResponse, Package, ResolverConfig

__all__ = [
    "get_package",
    "import_edges",
    "list_modules",
    "resolve_packages",
    "DriverRequest",
    "DriverResponse",
    "Package",
    "ResolverConfig",
    "__version__",
]

try:
    __version__ = version("gnolist")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"  # Not installed as package
