"""Package metadata exchanged with package-driver clients."""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass, field
from enum import IntEnum, IntFlag
from pathlib import Path
from typing import Any

SOURCE_EXT = ".gno"
FILETEST_SUFFIX = "_filetest.gno"
TEST_FILE_SUFFIX = "_test.gno"
TEST_PKG_SUFFIX = "_test"
BUILTIN_PATH = "builtin"


class ErrorKind(IntEnum):
    """Where a package error came from (same numbering as go/packages)."""

    UNKNOWN_ERROR = 0
    LIST_ERROR = 1
    PARSE_ERROR = 2
    TYPE_ERROR = 3


class LoadMode(IntFlag):
    """Information a client asks for. Resolution output does not depend on it."""

    NEED_NAME = 1 << 0
    NEED_FILES = 1 << 1
    NEED_COMPILED_GO_FILES = 1 << 2
    NEED_IMPORTS = 1 << 3
    NEED_DEPS = 1 << 4
    NEED_EXPORT_FILE = 1 << 5
    NEED_TYPES = 1 << 6
    NEED_SYNTAX = 1 << 7
    NEED_TYPES_INFO = 1 << 8
    NEED_TYPES_SIZES = 1 << 9
    NEED_MODULE = 1 << 20
    NEED_EMBED_FILES = 1 << 22
    NEED_EMBED_PATTERNS = 1 << 23


def describe_mode(mode: int) -> str:
    """Render a mode as ``NEED_NAME|NEED_FILES`` for log records."""
    names = [flag.name for flag in LoadMode if flag.name and mode & flag]
    return "|".join(names) if names else str(int(mode))


@dataclass
class PackageError:
    """One error attached to a package."""

    pos: str
    msg: str
    kind: ErrorKind = ErrorKind.UNKNOWN_ERROR

    def __str__(self) -> str:
        return f"{self.pos}: {self.msg}" if self.pos else self.msg

    def to_dict(self) -> dict:
        return {"Pos": self.pos, "Msg": self.msg, "Kind": int(self.kind)}


@dataclass
class Module:
    """A module descriptor: declared import path root and its directory."""

    path: str
    dir: Path
    gno_version: str = ""

    def to_dict(self) -> dict:
        d: dict[str, Any] = {"Path": self.path, "Dir": str(self.dir)}
        if self.gno_version:
            d["GoVersion"] = self.gno_version
        return d


@dataclass(eq=False)
class Package:
    """A unit of compilation identity.

    ``imports`` maps every import path seen in the package's files to the
    imported package. Values stay ``None`` until the graph is linked; after
    linking, every surviving key points at a package of the same response.
    Packages compare by identity so the import graph can hold cycles.
    """

    id: str = ""
    pkg_path: str = ""
    name: str = ""
    go_files: list[str] = field(default_factory=list)
    compiled_go_files: list[str] = field(default_factory=list)
    other_files: list[str] = field(default_factory=list)
    imports: dict[str, Package | None] = field(default_factory=dict)
    errors: list[PackageError] = field(default_factory=list)
    module: Module | None = None

    @property
    def is_external_test(self) -> bool:
        """True for the ``_test`` variant split off a directory's package."""
        return self.pkg_path.endswith(TEST_PKG_SUFFIX)

    def add_file(self, path: str) -> None:
        self.go_files.append(path)
        self.compiled_go_files.append(path)

    def remove_file(self, path: str) -> None:
        self.go_files.remove(path)
        if path in self.compiled_go_files:
            self.compiled_go_files.remove(path)

    def to_dict(self) -> dict:
        """Serialize in the package-driver wire format (imports by ID)."""
        d: dict[str, Any] = {
            "ID": self.id,
            "Name": self.name,
            "PkgPath": self.pkg_path,
        }
        if self.errors:
            d["Errors"] = [e.to_dict() for e in self.errors]
        if self.go_files:
            d["GoFiles"] = list(self.go_files)
        if self.compiled_go_files:
            d["CompiledGoFiles"] = list(self.compiled_go_files)
        if self.other_files:
            d["OtherFiles"] = list(self.other_files)
        if self.imports:
            d["Imports"] = {
                path: imp.id for path, imp in sorted(self.imports.items()) if imp is not None
            }
        if self.module is not None:
            d["Module"] = self.module.to_dict()
        return d


@dataclass
class DriverRequest:
    """What a client asks the driver for, apart from the patterns."""

    mode: LoadMode = LoadMode(0)
    tests: bool = False
    build_flags: list[str] = field(default_factory=list)
    overlay: dict[str, bytes] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> DriverRequest:
        """Build a request from its JSON form; overlay contents are base64."""
        overlay = {
            path: base64.b64decode(body) if isinstance(body, str) else bytes(body)
            for path, body in (data.get("Overlay") or {}).items()
        }
        return cls(
            mode=LoadMode(int(data.get("Mode") or 0)),
            tests=bool(data.get("Tests", False)),
            build_flags=list(data.get("BuildFlags") or []),
            overlay=overlay,
        )

    def to_dict(self) -> dict:
        return {
            "Mode": int(self.mode),
            "Tests": self.tests,
            "BuildFlags": list(self.build_flags),
            "Overlay": {
                path: base64.b64encode(body).decode("ascii") for path, body in self.overlay.items()
            },
        }


@dataclass
class DriverResponse:
    """All resolved packages plus the IDs matched directly by the query."""

    packages: list[Package] = field(default_factory=list)
    roots: list[str] = field(default_factory=list)

    def get(self, package_id: str) -> Package | None:
        for pkg in self.packages:
            if pkg.id == package_id:
                return pkg
        return None

    @property
    def root_packages(self) -> list[Package]:
        by_id = {pkg.id: pkg for pkg in self.packages}
        return [by_id[r] for r in self.roots if r in by_id]

    def to_dict(self) -> dict:
        return {
            "Roots": list(self.roots),
            "Packages": [pkg.to_dict() for pkg in self.packages],
        }

    def to_json(self, indent: int | None = None) -> str:
        return json.dumps(self.to_dict(), indent=indent)
