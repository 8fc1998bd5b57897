"""Exceptions raised by package resolution."""

from __future__ import annotations

from pathlib import Path


class GnolistError(Exception):
    """Base class for gnolist failures."""


class DescriptorError(GnolistError):
    """A module descriptor is missing, unreadable or declares no module path."""

    def __init__(self, directory: Path, reason: str) -> None:
        super().__init__(f"{directory}: {reason}")
        self.directory = directory
        self.reason = reason


class ResolveError(GnolistError):
    """An explicitly requested package could not be loaded."""
