"""Public API: use gnolist from Python or from other tools."""

from __future__ import annotations

from pathlib import Path

from gnolist.core.config import ResolverConfig
from gnolist.core.driver import resolve
from gnolist.core.finder import find_module_dirs
from gnolist.core.packages import DriverRequest, DriverResponse, Package


def resolve_packages(
    patterns: list[str],
    *,
    overlay: dict[str, bytes] | None = None,
    tests: bool = False,
    config: ResolverConfig | None = None,
) -> DriverResponse:
    """
    Resolve query patterns into a linked package graph.

    Args:
        patterns: Directories (optionally ``dir/...``), ``file=<path>`` queries,
            or ``builtin``.
        overlay: In-memory file contents that replace what is on disk.
        tests: Whether the client wants test variants (recorded in the request).
        config: Library locations; taken from GNOROOT / GNOBUILTIN when None.

    Returns:
        DriverResponse with every package and the IDs of the root packages.
    """
    request = DriverRequest(tests=tests, overlay=dict(overlay or {}))
    return resolve(request, *patterns, config=config)


def list_modules(root: Path | str) -> list[Path]:
    """List the module directories (holding gnomod.toml or gno.mod) under root."""
    return find_module_dirs(root)


def get_package(
    pattern: str,
    package_id: str | None = None,
    *,
    overlay: dict[str, bytes] | None = None,
    config: ResolverConfig | None = None,
) -> Package | None:
    """
    Resolve a single pattern and return one package of the result.

    Returns the package with package_id when given, else the first root.
    Returns None if nothing matches.
    """
    response = resolve_packages([pattern], overlay=overlay, config=config)
    if package_id is not None:
        return response.get(package_id)
    roots = response.root_packages
    return roots[0] if roots else None


def import_edges(
    response: DriverResponse,
    *,
    roots_only: bool = False,
) -> set[tuple[str, str]]:
    """
    Collect (importer ID, imported ID) edges of a resolved graph.

    With roots_only, only edges between root packages are kept.
    """
    keep = set(response.roots) if roots_only else None
    edges: set[tuple[str, str]] = set()
    for pkg in response.packages:
        if keep is not None and pkg.id not in keep:
            continue
        for imported in pkg.imports.values():
            if imported is None:
                continue
            if keep is not None and imported.id not in keep:
                continue
            edges.add((pkg.id, imported.id))
    return edges
