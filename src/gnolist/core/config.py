"""Locate the Gno installation (GNOROOT) and the builtin declarations."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

# Shipped with gnolist: declarations of the Gno-only builtins.
PACKAGED_BUILTIN_DIR = Path(__file__).resolve().parent.parent / "builtin"


def _env_path(env_var: str) -> Path | None:
    """Return the path named by an environment variable, if it is set."""
    value = os.environ.get(env_var, "").strip()
    if not value:
        return None
    return Path(value).expanduser()


def _gno_env_root() -> Path | None:
    """Ask the gno binary for its root (``gno env GNOROOT``)."""
    gno = shutil.which("gno")
    if gno is None:
        return None
    try:
        result = subprocess.run(
            [gno, "env", "GNOROOT"],
            capture_output=True,
            text=True,
            timeout=30,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("gno env failed: %s", e)
        return None
    value = result.stdout.strip()
    if result.returncode != 0 or not value:
        return None
    return Path(value)


class EnvironmentProbe:
    """Finds GNOROOT and the builtin directory; successful lookups are memoized.

    One lock guards the lookups so concurrent resolutions share the result
    instead of each running ``gno env``.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._gno_root: Path | None = None

    def gno_root(self) -> Path | None:
        with self._lock:
            root = _env_path("GNOROOT")
            if root is not None:
                return root
            if self._gno_root is None:
                self._gno_root = _gno_env_root()
            return self._gno_root

    def builtin_dir(self) -> Path:
        with self._lock:
            return _env_path("GNOBUILTIN") or PACKAGED_BUILTIN_DIR

    def reset(self) -> None:
        with self._lock:
            self._gno_root = None


default_probe = EnvironmentProbe()


@dataclass
class ResolverConfig:
    """Where library packages come from. Passed explicitly to each resolution."""

    gno_root: Path | None = None
    builtin_dir: Path | None = None
    include_examples: bool = False

    @property
    def libs_root(self) -> Path | None:
        return self.gno_root / "gnovm" / "stdlibs" if self.gno_root else None

    @property
    def tests_libs_root(self) -> Path | None:
        return self.gno_root / "gnovm" / "tests" / "stdlibs" if self.gno_root else None

    @property
    def examples_root(self) -> Path | None:
        return self.gno_root / "examples" if self.gno_root else None

    @classmethod
    def from_environment(
        cls,
        *,
        gno_root: Path | None = None,
        builtin_dir: Path | None = None,
        include_examples: bool = False,
        probe: EnvironmentProbe | None = None,
    ) -> ResolverConfig:
        """Fill whatever was not given from GNOROOT / GNOBUILTIN and the gno binary."""
        probe = probe or default_probe
        if gno_root is None:
            gno_root = probe.gno_root()
        if builtin_dir is None:
            builtin_dir = probe.builtin_dir()
        return cls(gno_root=gno_root, builtin_dir=builtin_dir, include_examples=include_examples)
