"""Second pass: turn import path strings into references to sibling packages."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from gnolist.core.packages import Package

logger = logging.getLogger(__name__)


def link(
    packages: Iterable[Package],
    index: dict[str, Package],
    skip: Iterable[Package] = (),
) -> tuple[int, int]:
    """
    Resolve every import of every package against index.

    index maps package paths to packages (non-test packages and the builtin
    package). A found import points at the shared package object; a missed
    one is deleted, so every key left in ``imports`` has a target. Packages
    in skip are not linked as importers but stay valid targets.

    Returns:
        (found, missed) import counts.
    """
    skipped = {id(pkg) for pkg in skip}
    found = missed = 0
    for pkg in packages:
        if id(pkg) in skipped:
            continue
        for import_path in list(pkg.imports):
            target = index.get(import_path)
            if target is not None:
                pkg.imports[import_path] = target
                found += 1
                logger.debug("found import %s in %s", import_path, pkg.id)
            else:
                del pkg.imports[import_path]
                missed += 1
                logger.debug("missed import %s in %s", import_path, pkg.id)
    return found, missed
