"""Immutable description of one container bring-up."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from .paths import DEFAULT_CONTAINER_HOME

__all__ = [
    "PROBE_INTERVAL",
    "PrestartMode",
    "ServiceSpec",
    "PrimarySpec",
    "OrchestrationPlan",
]

# Seconds between readiness attempts
PROBE_INTERVAL = 0.5


class PrestartMode(str, enum.Enum):
    NONE = "none"
    BACKGROUND = "background"
    LEGACY_BACKGROUND = "legacy_background"


@dataclass(frozen=True)
class ServiceSpec:
    """One dependency service started before the Screeps server."""

    name: str
    host: str
    port: int
    argv: Tuple[str, ...]
    workdir: Path
    directories: Tuple[Path, ...] = ()
    log_file: Optional[Path] = None
    clean_log: bool = False
    pidfile: Optional[Path] = None
    optional: bool = False
    attempts: int = 60
    interval: float = PROBE_INTERVAL

    @property
    def binary(self) -> str:
        return self.argv[0]

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class PrimarySpec:
    """How the primary workload is pre-started and finally exec'd."""

    startup: Optional[str]
    prestart_mode: PrestartMode = PrestartMode.NONE
    server_command: str = "npx screeps start"
    legacy_server_command: str = "npx screeps start"
    cli_host: str = "127.0.0.1"
    cli_port: int = 21026
    cli_timeout: float = 300.0
    interval: float = PROBE_INTERVAL

    @property
    def attempts(self) -> int:
        return max(1, int(self.cli_timeout / self.interval))

    @property
    def background_command(self) -> Optional[str]:
        if self.prestart_mode is PrestartMode.BACKGROUND:
            return self.server_command
        if self.prestart_mode is PrestartMode.LEGACY_BACKGROUND:
            return self.legacy_server_command
        return None


@dataclass(frozen=True)
class OrchestrationPlan:
    """Services in start order plus the primary workload descriptor."""

    primary: PrimarySpec
    services: Tuple[ServiceSpec, ...] = ()
    home: Path = DEFAULT_CONTAINER_HOME
    legacy_python_path: Path = Path("/usr/bin/python2")
    legacy_python_root: Path = DEFAULT_CONTAINER_HOME / ".pyenv" / "versions"

    @property
    def prestart_enabled(self) -> bool:
        return self.primary.prestart_mode is not PrestartMode.NONE
