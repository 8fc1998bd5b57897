"""Enumerate package source files and read them, overlay first."""

from __future__ import annotations

import os
from pathlib import Path

from gnolist.core.packages import FILETEST_SUFFIX, SOURCE_EXT


def is_source_file(name: str) -> bool:
    """True for .gno files that belong to a package (filetests never do)."""
    return name.endswith(SOURCE_EXT) and not name.endswith(FILETEST_SUFFIX)


class SourceReader:
    """
    File access for one resolution.

    Overlay entries (exact path match) win over disk content, and files that
    exist only in the overlay are listed as members of their directory.
    Every read is memoized, so all parses of a file within one resolution
    see the same bytes.
    """

    def __init__(self, overlay: dict[str, bytes] | None = None) -> None:
        self.overlay = {os.path.abspath(p): body for p, body in (overlay or {}).items()}
        self._cache: dict[str, bytes] = {}

    def _overlay_names(self, directory: str) -> list[str]:
        return [os.path.basename(p) for p in self.overlay if os.path.dirname(p) == directory]

    def list_sources(self, directory: Path | str) -> list[str]:
        """
        List member source files of a directory as sorted absolute paths.

        Test files are kept; telling internal from external tests is left to
        the test-package splitter.

        Raises:
            OSError: The directory cannot be listed and has no overlay files.
        """
        dir_str = os.path.abspath(directory)
        names = set(self._overlay_names(dir_str))
        try:
            with os.scandir(dir_str) as entries:
                for entry in entries:
                    if entry.is_file():
                        names.add(entry.name)
        except OSError:
            if not names:
                raise
        return [os.path.join(dir_str, n) for n in sorted(names) if is_source_file(n)]

    def list_other_files(self, directory: Path | str) -> list[str]:
        """Regular files of a directory that are not package sources."""
        dir_str = os.path.abspath(directory)
        try:
            with os.scandir(dir_str) as entries:
                names = sorted(
                    e.name
                    for e in entries
                    if e.is_file() and not e.name.endswith(SOURCE_EXT)
                )
        except OSError:
            return []
        return [os.path.join(dir_str, n) for n in names]

    def read(self, path: str) -> bytes:
        """
        Return the content of a file, from the overlay when present.

        Raises:
            OSError: Not in the overlay and unreadable on disk.
        """
        path = os.path.abspath(path)
        if path in self.overlay:
            return self.overlay[path]
        if path not in self._cache:
            with open(path, "rb") as f:
                self._cache[path] = f.read()
        return self._cache[path]

    def has_overlay(self, path: str) -> bool:
        return os.path.abspath(path) in self.overlay
