"""Boolean flag parsing for environment settings."""

from __future__ import annotations

from typing import Mapping

__all__ = ["TRUE_VALUES", "parse_bool", "get_bool"]


# Anything outside this set is false.  Unattended panel installs pass all
# sorts of spellings and must never abort on a typo.
TRUE_VALUES = frozenset({"1", "true", "yes", "y", "on"})


def parse_bool(raw: str | None) -> bool:
    """Return ``True`` when *raw* is one of :data:`TRUE_VALUES` (any case)."""

    if raw is None:
        return False
    return raw.strip().lower() in TRUE_VALUES


def get_bool(env: Mapping[str, str], name: str, default: str = "0") -> bool:
    return parse_bool(env.get(name, default))
