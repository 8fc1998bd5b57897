"""Package-driver entry point: discover every package, then link the graph."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from gnolist.core.config import ResolverConfig
from gnolist.core.errors import DescriptorError, ResolveError
from gnolist.core.finder import find_module_dirs, parse_module, strip_subtree_suffix
from gnolist.core.linker import link
from gnolist.core.packages import (
    BUILTIN_PATH,
    DriverRequest,
    DriverResponse,
    Package,
    describe_mode,
)
from gnolist.core.reader import SourceReader
from gnolist.core.resolver import read_package
from gnolist.core.stdlib import builtin_package, inject_stdlibs

logger = logging.getLogger(__name__)

FILE_QUERY_PREFIX = "file="


@dataclass
class _Target:
    """A discovered module directory and how it was asked for."""

    directory: Path
    is_root: bool = True
    strict: bool = False


def _file_query_targets(pattern: str) -> list[_Target]:
    """
    Module directories for a ``file=<path>`` query.

    Every module at or below the file's directory is a root, but only the
    directory holding the file fails the query when it cannot be read.
    """
    file_path = Path(pattern[len(FILE_QUERY_PREFIX):]).absolute()
    directory = file_path.parent
    try:
        with os.scandir(directory):
            pass
    except OSError as e:
        raise ResolveError(f"cannot read package directory {directory}: {e}") from e
    dirs = find_module_dirs(directory)
    if len(dirs) != 1:
        logger.warning("unexpected number of packages for %s: %d", pattern, len(dirs))
    return [_Target(d, is_root=True, strict=(d == directory)) for d in dirs]


def _convert(target: _Target, reader: SourceReader) -> tuple[Package, Package] | None:
    """Read one module directory into its package pair; None when it is unusable."""
    try:
        module = parse_module(target.directory)
    except DescriptorError as e:
        if target.strict:
            raise ResolveError(f"failed to read module descriptor: {e}") from e
        logger.error("failed to read module descriptor in %s: %s", target.directory, e.reason)
        return None
    try:
        return read_package(target.directory, module.path, reader, module=module)
    except OSError as e:
        if target.strict:
            raise ResolveError(f"cannot read package directory {target.directory}: {e}") from e
        logger.error("failed to read pkg dir %s: %s", target.directory, e)
        return None


def resolve(
    request: DriverRequest | None,
    *patterns: str,
    config: ResolverConfig | None = None,
) -> DriverResponse:
    """
    Resolve patterns into a linked package graph.

    Patterns are ``file=<path>`` (the package directory of that file),
    ``builtin`` (the builtin pseudo-package), or a directory, optionally
    suffixed with ``/...``, which is searched recursively for modules.
    Library packages are injected first; every package found through a
    pattern is a root. Imports are linked only after discovery is complete.

    Args:
        request: Mode, tests flag, build flags and overlay; None for defaults.
        patterns: Query patterns.
        config: Library locations; read from the environment when None.

    Returns:
        DriverResponse with all packages and the root package IDs.

    Raises:
        ResolveError: A ``file=`` query names an unreadable directory or a
            module whose descriptor cannot be parsed.
    """
    request = request or DriverRequest()
    logger.info(
        "resolving %s: mode=%s tests=%s build-flags=%s overlay=%s",
        list(patterns),
        describe_mode(request.mode),
        request.tests,
        request.build_flags,
        sorted(request.overlay),
    )
    if config is None:
        config = ResolverConfig.from_environment()

    reader = SourceReader(request.overlay)
    response = DriverResponse()
    index: dict[str, Package] = {}
    seen: set[str] = set()

    libs_root = config.libs_root
    if libs_root is not None and libs_root.is_dir():
        for pkg in inject_stdlibs(libs_root, reader, config.tests_libs_root):
            seen.add(pkg.pkg_path)
            index[pkg.pkg_path] = pkg
            response.packages.append(pkg)
        logger.info("injected %d stdlib package(s) from %s", len(response.packages), libs_root)
    else:
        logger.warning("can't find gno root, std packages are ignored (root: %s)", config.gno_root)

    builtin: Package | None = None
    targets: list[_Target] = []
    for pattern in patterns:
        if pattern.startswith(FILE_QUERY_PREFIX):
            targets.extend(_file_query_targets(pattern))
        elif pattern == BUILTIN_PATH:
            if builtin is not None:
                continue
            if config.builtin_dir is None:
                logger.warning("unable to guess builtin dir, builtin package is ignored")
                continue
            builtin = builtin_package(config.builtin_dir)
            index[builtin.pkg_path] = builtin
            response.packages.append(builtin)
            response.roots.append(builtin.id)
        else:
            targets.extend(_Target(d) for d in find_module_dirs(strip_subtree_suffix(pattern)))

    examples_root = config.examples_root
    if config.include_examples and examples_root is not None and examples_root.is_dir():
        targets.extend(_Target(d, is_root=False) for d in find_module_dirs(examples_root))
    logger.info("discovered %d module(s)", len(targets))

    for target in targets:
        pair = _convert(target, reader)
        if pair is None:
            continue
        base, xtest = pair
        if base.pkg_path in seen:
            logger.debug("ignored duplicate %s from %s", base.pkg_path, target.directory)
            continue
        seen.add(base.pkg_path)
        for pkg in (base, xtest):
            if not pkg.go_files:
                continue
            if pkg is base:
                index[pkg.pkg_path] = pkg
            response.packages.append(pkg)
            if target.is_root:
                response.roots.append(pkg.id)

    found, missed = link(response.packages, index, skip=[builtin] if builtin else ())
    logger.info(
        "resolved %d package(s), %d root(s); imports found=%d missed=%d",
        len(response.packages),
        len(response.roots),
        found,
        missed,
    )
    return response
