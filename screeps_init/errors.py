"""Error taxonomy for the container bring-up sequence.

Every fatal condition derives from :class:`InitError`; ``main`` turns it
into a single diagnostic and a non-zero exit status.  A missing optional
binary is not fatal and therefore lives outside that hierarchy.
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Sequence

__all__ = [
    "InitError",
    "ConfigErrorReason",
    "ConfigError",
    "ReadinessTimeoutError",
    "ToolchainNotFoundError",
    "SpawnError",
    "MissingOptionalBinary",
]


class InitError(RuntimeError):
    """Base class for errors that abort the bring-up."""

    exit_code = 1
    stage = "init"


class ConfigErrorReason(str, enum.Enum):
    CONFLICTING_FLAGS = "conflicting_flags"
    MISSING_STARTUP_COMMAND = "missing_startup_command"
    INVALID_VALUE = "invalid_value"


class ConfigError(InitError):
    """Raised when settings are contradictory, missing or malformed."""

    stage = "config"

    def __init__(self, reason: ConfigErrorReason, message: str) -> None:
        super().__init__(message)
        self.reason = reason


class ReadinessTimeoutError(InitError):
    """Raised when a process never starts accepting TCP connections."""

    def __init__(
        self,
        name: str,
        host: str,
        port: int,
        attempts: int,
        *,
        stage: str = "deps",
    ) -> None:
        super().__init__(
            f"{name} did not become ready on {host}:{port} "
            f"after {attempts} attempts"
        )
        self.name = name
        self.host = host
        self.port = port
        self.attempts = attempts
        self.stage = stage


class ToolchainNotFoundError(InitError):
    """Raised when no legacy Python interpreter can be located."""

    stage = "prestart"

    def __init__(self, candidates: Sequence[Path | str]) -> None:
        locations = " or ".join(str(c) for c in candidates)
        super().__init__(f"Python 2 interpreter not found (looked in {locations})")
        self.candidates = tuple(str(c) for c in candidates)


class SpawnError(InitError):
    """Raised when a required process cannot be launched at all."""

    def __init__(self, message: str, *, stage: str = "deps") -> None:
        super().__init__(message)
        self.stage = stage


class MissingOptionalBinary(Exception):
    """An optional service binary is absent; the service is skipped."""

    def __init__(self, name: str, binary: str) -> None:
        super().__init__(f"{binary} not found for optional service {name}")
        self.name = name
        self.binary = binary
