"""Utilities for locating the legacy Python 2 interpreter.

Older Screeps server releases build native modules through ``node-gyp``,
which still insists on Python 2.  The interpreter is looked up in two
places: a fixed canonical path and a versioned install tree (pyenv layout).
The result is handed to the server's build step through ``PYTHON`` and
``npm_config_python`` instead of being placed on ``PATH``.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Dict, List, Optional

from .errors import ToolchainNotFoundError

__all__ = ["TOOLCHAIN_EXPORTS", "find_legacy_python", "toolchain_exports"]

logger = logging.getLogger(__name__)

TOOLCHAIN_EXPORTS = ("PYTHON", "npm_config_python")

_VERSION_DIR = re.compile(r"^2(\.\d+)*$")
_TREE_BINARIES = ("python2", "python")


def _is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


def _version_key(path: Path) -> tuple[int, ...]:
    return tuple(int(part) for part in path.name.split("."))


def _tree_candidates(root: Path) -> List[Path]:
    """Interpreters under ``<root>/2.x.y/bin``, newest version first."""

    try:
        versions = [p for p in root.iterdir() if p.is_dir() and _VERSION_DIR.match(p.name)]
    except OSError:
        return []
    candidates: List[Path] = []
    for version_dir in sorted(versions, key=_version_key, reverse=True):
        for name in _TREE_BINARIES:
            candidates.append(version_dir / "bin" / name)
    return candidates


def find_legacy_python(canonical: Path, tree_root: Path) -> Path:
    """Return the first usable Python 2 interpreter.

    Raises :class:`ToolchainNotFoundError` naming both locations when
    neither the canonical path nor the install tree provides one.
    """

    if _is_executable(canonical):
        return canonical
    for candidate in _tree_candidates(tree_root):
        if _is_executable(candidate):
            logger.info("Using Python 2 from %s", candidate)
            return candidate
    raise ToolchainNotFoundError([canonical, tree_root / "2.*" / "bin" / "python2"])


def toolchain_exports(interpreter: Optional[Path]) -> Dict[str, str]:
    if interpreter is None:
        return {}
    return {name: str(interpreter) for name in TOOLCHAIN_EXPORTS}
