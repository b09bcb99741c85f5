#!/usr/bin/env python3
"""Docker entrypoint shim.

The image runs ``tini -- python3 /opt/screeps-init/scripts/entrypoint.py`` so
the checkout works without ``pip install``.  This module re-exports
:func:`screeps_init.main.main`.
"""
from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from screeps_init.main import main  # noqa: E402

__all__ = ["main"]


if __name__ == "__main__":  # pragma: no cover - container entrypoint
    raise SystemExit(main(sys.argv[1:]))
