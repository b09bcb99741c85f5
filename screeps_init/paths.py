from __future__ import annotations

"""Project-wide path helpers."""

from pathlib import Path

# Pterodactyl mounts the server volume here
DEFAULT_CONTAINER_HOME = Path("/home/container")


def data_root(home: Path) -> Path:
    """Return the directory holding dependency data below *home*."""

    return home / "data"


__all__ = ["DEFAULT_CONTAINER_HOME", "data_root"]
