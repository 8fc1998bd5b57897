"""Synthesize the standard library packages and the builtin pseudo-package."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from gnolist.core.packages import BUILTIN_PATH, Package
from gnolist.core.reader import SourceReader
from gnolist.core.resolver import resolve_name_and_imports

logger = logging.getLogger(__name__)

BUILTIN_FILE = "builtin.gno"


def _library_dirs(libs_root: Path) -> list[tuple[Path, str]]:
    """Every directory below libs_root with its import path (relative, slash-separated)."""
    dirs: list[tuple[Path, str]] = []

    def _on_error(err: OSError) -> None:
        logger.debug("skipped unreadable library directory %s: %s", err.filename, err.strerror)

    for dirpath, dirnames, _files in os.walk(libs_root, onerror=_on_error):
        dirnames.sort()
        rel = Path(dirpath).relative_to(libs_root)
        if rel == Path("."):
            continue
        dirs.append((Path(dirpath), rel.as_posix()))
    return dirs


def patch_from_tests_root(pkg: Package, tests_dir: Path, reader: SourceReader) -> int:
    """
    Patch library files with their counterparts from the test-library tree.

    A file whose name is already in the package replaces that entry in
    place; any other file is appended. The package keeps its path and ID.

    Returns:
        Number of files replaced or added.
    """
    if not tests_dir.is_dir():
        return 0
    try:
        patches = reader.list_sources(tests_dir)
    except OSError as e:
        logger.debug("cannot list test library directory %s: %s", tests_dir, e)
        return 0

    for patch in patches:
        fname = os.path.basename(patch)
        for file_list in (pkg.go_files, pkg.compiled_go_files):
            for i, existing in enumerate(file_list):
                if os.path.basename(existing) == fname:
                    file_list[i] = patch
                    break
            else:
                file_list.append(patch)
    return len(patches)


def inject_stdlibs(
    libs_root: Path,
    reader: SourceReader,
    tests_root: Path | None = None,
) -> list[Package]:
    """
    Build one package per library directory that holds source files.

    The directory path relative to libs_root is the import path. Directories
    without source files are skipped. When tests_root has a directory with
    the same relative path, its files patch the package (see
    patch_from_tests_root) before names and imports are resolved.

    Returns:
        Library packages in sorted path order.
    """
    packages: list[Package] = []
    for directory, pkg_path in _library_dirs(libs_root):
        try:
            files = reader.list_sources(directory)
        except OSError as e:
            logger.error("failed to read library dir %s: %s", directory, e)
            continue
        if not files:
            continue

        pkg = Package(id=pkg_path, pkg_path=pkg_path)
        for path in files:
            pkg.add_file(path)
        if tests_root is not None:
            patched = patch_from_tests_root(pkg, tests_root / pkg_path, reader)
            if patched:
                logger.debug("patched %d file(s) of %s from %s", patched, pkg_path, tests_root)
        resolve_name_and_imports(pkg, reader)
        packages.append(pkg)
        logger.debug("injected stdlib %s (name %s)", pkg.pkg_path, pkg.name)
    return packages


def builtin_package(builtin_dir: Path) -> Package:
    """The builtin pseudo-package: one file, no imports, identity only."""
    path = str(Path(builtin_dir).absolute() / BUILTIN_FILE)
    return Package(
        id=BUILTIN_PATH,
        pkg_path=BUILTIN_PATH,
        name=BUILTIN_PATH,
        go_files=[path],
        compiled_go_files=[path],
    )
