"""Discover Gno module directories and read their module descriptors."""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path

from gnolist.core.errors import DescriptorError
from gnolist.core.packages import Module

logger = logging.getLogger(__name__)

# Checked in this order; the first one present in a directory wins.
DESCRIPTOR_FILES = ("gnomod.toml", "gno.mod")

SUBTREE_SUFFIX = "/..."


def descriptor_file(directory: Path) -> Path | None:
    """Return the highest-priority descriptor file present in a directory."""
    for fname in DESCRIPTOR_FILES:
        candidate = directory / fname
        if candidate.is_file():
            return candidate
    return None


def strip_subtree_suffix(pattern: str) -> str:
    """Turn ``dir/...`` into ``dir``; anything else is returned unchanged."""
    if pattern == "...":
        return "."
    if pattern.endswith(SUBTREE_SUFFIX):
        return pattern[: -len(SUBTREE_SUFFIX)] or "/"
    return pattern


def find_module_dirs(root: Path | str) -> list[Path]:
    """
    Recursively find every directory at or below root holding a module descriptor.

    Subdirectories are visited in sorted order so the result is stable.
    Unreadable subtrees are skipped. Symbolic links to directories are not
    followed.

    Returns:
        Absolute directory paths, parents before their children.
    """
    root_path = Path(root).absolute()
    found: list[Path] = []

    def _on_error(err: OSError) -> None:
        logger.debug("skipped unreadable directory %s: %s", err.filename, err.strerror)

    for dirpath, dirnames, _files in os.walk(root_path, onerror=_on_error):
        dirnames.sort()
        directory = Path(dirpath)
        if descriptor_file(directory) is not None:
            found.append(directory)
    return found


def _parse_gnomod_toml(path: Path) -> tuple[str, str]:
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        raise DescriptorError(path.parent, f"cannot read {path.name}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise DescriptorError(path.parent, f"invalid {path.name}: {e}") from e
    module = data.get("module", "")
    if not isinstance(module, str):
        raise DescriptorError(path.parent, f"invalid module value in {path.name}")
    gno_version = data.get("gno", "")
    return module.strip(), str(gno_version)


def _parse_gno_mod(path: Path) -> tuple[str, str]:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise DescriptorError(path.parent, f"cannot read {path.name}: {e}") from e
    module = ""
    gno_version = ""
    for raw in text.splitlines():
        line = raw.split("//", 1)[0].strip()
        fields = line.split()
        if len(fields) < 2:
            continue
        if fields[0] == "module" and not module:
            module = fields[1].strip('"')
        elif fields[0] == "gno" and not gno_version:
            gno_version = fields[1]
    return module, gno_version


def parse_module(directory: Path | str) -> Module:
    """
    Read the module descriptor of a directory.

    gnomod.toml is TOML (``module = "gno.land/p/demo/avl"``); gno.mod uses the
    line format ``module gno.land/p/demo/avl``.

    Raises:
        DescriptorError: No descriptor, unreadable descriptor, or no module path.
    """
    dir_path = Path(directory).absolute()
    path = descriptor_file(dir_path)
    if path is None:
        raise DescriptorError(dir_path, "no module descriptor found")
    if path.name == "gnomod.toml":
        module, gno_version = _parse_gnomod_toml(path)
    else:
        module, gno_version = _parse_gno_mod(path)
    if not module:
        raise DescriptorError(dir_path, f"{path.name} declares no module path")
    return Module(path=module, dir=dir_path, gno_version=gno_version)
