"""Build packages from a directory: name, imports, and the external test split."""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path

from gnolist.core.packages import (
    TEST_FILE_SUFFIX,
    TEST_PKG_SUFFIX,
    ErrorKind,
    Module,
    Package,
    PackageError,
)
from gnolist.core.reader import SourceReader
from gnolist.core.scanner import IMPORTS_ONLY, PACKAGE_CLAUSE_ONLY, ParsedFile, parse_file

logger = logging.getLogger(__name__)


def _parse(pkg: Package, path: str, reader: SourceReader, mode: str) -> ParsedFile | None:
    """Parse one file, recording read and syntax errors on pkg."""
    try:
        src = reader.read(path)
    except OSError as e:
        pkg.errors.append(PackageError(pos=f"{path}:1", msg=str(e), kind=ErrorKind.PARSE_ERROR))
        return None
    parsed = parse_file(path, src, mode)
    for err in parsed.errors:
        pkg.errors.append(PackageError(pos=err.pos, msg=err.msg, kind=ErrorKind.PARSE_ERROR))
    return parsed


def resolve_name_and_imports(pkg: Package, reader: SourceReader) -> None:
    """
    Fill pkg.name and pkg.imports from the headers of its compiled files.

    The name is the package clause seen most often. A name replaces the
    current best only when its count strictly exceeds the best count, so
    ties go to whichever name reached the count first. Clauses ending in
    ``_test`` do not vote, and a name set beforehand is kept. Every import
    path is recorded with no target; linking fills the targets later.
    """
    counts: Counter[str] = Counter()
    best_name = ""
    best_count = 0
    imports: dict[str, Package | None] = {}

    for path in pkg.compiled_go_files:
        parsed = _parse(pkg, path, reader, IMPORTS_ONLY)
        if parsed is None or parsed.name is None:
            continue
        if not pkg.name and not parsed.name.endswith(TEST_PKG_SUFFIX):
            counts[parsed.name] += 1
            if counts[parsed.name] > best_count:
                best_name = parsed.name
                best_count = counts[parsed.name]
        for import_path in parsed.imports:
            imports[import_path] = None

    if not pkg.name:
        pkg.name = best_name
    pkg.imports = imports
    logger.debug(
        "analyzed sources of %s: name=%s imports=%s errors=%d",
        pkg.pkg_path,
        pkg.name,
        sorted(imports),
        len(pkg.errors),
    )


def split_test_files(base: Package, xtest: Package, reader: SourceReader) -> None:
    """
    Move external test files from base to xtest.

    A ``_test.gno`` file whose package clause ends in ``_test`` belongs to the
    external test package; any other test file stays in base as an internal
    test. Files whose clause cannot be parsed stay in base, where name and
    import resolution reports their errors.
    """
    for path in list(base.go_files):
        if not path.endswith(TEST_FILE_SUFFIX):
            continue
        try:
            src = reader.read(path)
        except OSError:
            continue
        parsed = parse_file(path, src, PACKAGE_CLAUSE_ONLY)
        if parsed.name is not None and parsed.name.endswith(TEST_PKG_SUFFIX):
            base.remove_file(path)
            xtest.add_file(path)


def read_package(
    directory: Path | str,
    pkg_path: str,
    reader: SourceReader,
    module: Module | None = None,
) -> tuple[Package, Package]:
    """
    Read a package directory into its package and its external test package.

    Both packages are resolved, the external one even when it has no files,
    so callers always get the same pair back. The external test package is
    named after the base package with the ``_test`` suffix.

    Raises:
        OSError: The directory cannot be listed.
    """
    base = Package(id=pkg_path, pkg_path=pkg_path, module=module)
    for path in reader.list_sources(directory):
        base.add_file(path)
    if module is not None:
        base.other_files = reader.list_other_files(directory)

    xtest_path = pkg_path + TEST_PKG_SUFFIX
    xtest = Package(id=xtest_path, pkg_path=xtest_path, module=module)
    split_test_files(base, xtest, reader)

    resolve_name_and_imports(base, reader)
    xtest.name = base.name + TEST_PKG_SUFFIX
    resolve_name_and_imports(xtest, reader)
    return base, xtest
