"""Dependency service definitions for the Screeps container.

Redis and MongoDB are the only local backing stores the server mods expect
(``screepsmod-mongo`` needs both).  Each builder turns resolved settings into
an immutable :class:`~screeps_init.plan.ServiceSpec`; nothing is started here.
"""

from __future__ import annotations

import shlex
from pathlib import Path
from typing import List

from .paths import data_root
from .plan import PROBE_INTERVAL, ServiceSpec

__all__ = [
    "REDIS_ATTEMPTS",
    "MONGO_ATTEMPTS",
    "split_extra_args",
    "redis_spec",
    "mongo_spec",
]

# 30s and 60s ceilings at PROBE_INTERVAL
REDIS_ATTEMPTS = 60
MONGO_ATTEMPTS = 120


def split_extra_args(raw: str | None, *, setting: str) -> List[str]:
    """Split free-form ``*_EXTRA_ARGS`` text into shell words.

    The text is taken literally, the way an unquoted ``${VAR}`` would be
    word-split by the shell.  Raises ``ValueError`` on unbalanced quoting.
    """

    if not raw or not raw.strip():
        return []
    try:
        return shlex.split(raw)
    except ValueError as exc:
        raise ValueError(f"{setting}={raw!r}: {exc}") from exc


def redis_spec(
    home: Path,
    *,
    host: str,
    port: int,
    extra_args: str = "",
    clean_log: bool = False,
) -> ServiceSpec:
    redis_dir = data_root(home) / "redis"
    pidfile = redis_dir / "redis-server.pid"
    log_file = redis_dir / "redis-server.log"
    argv = [
        "redis-server",
        "--bind", host,
        "--port", str(port),
        "--protected-mode", "yes",
        "--dir", str(redis_dir),
        "--appendonly", "yes",
        "--pidfile", str(pidfile),
        "--logfile", str(log_file),
    ]
    argv += split_extra_args(extra_args, setting="REDIS_EXTRA_ARGS")
    return ServiceSpec(
        name="redis",
        host=host,
        port=port,
        argv=tuple(argv),
        workdir=home,
        directories=(redis_dir,),
        log_file=log_file,
        clean_log=clean_log,
        pidfile=pidfile,
        optional=False,
        attempts=REDIS_ATTEMPTS,
        interval=PROBE_INTERVAL,
    )


def mongo_spec(
    home: Path,
    *,
    host: str,
    port: int,
    cache_gb: float = 0.25,
    extra_args: str = "",
    clean_log: bool = False,
) -> ServiceSpec:
    """Build the ``mongod`` spec.

    MongoDB only ships amd64 builds for the images we use, so the binary is
    optional: on other architectures the service is skipped and the server is
    expected to point at an external database instead.
    """

    mongo_root = data_root(home) / "mongo"
    dbpath = mongo_root / "db"
    logdir = mongo_root / "log"
    log_file = logdir / "mongod.log"
    pidfile = mongo_root / "mongod.pid"
    argv = [
        "mongod",
        "--bind_ip", host,
        "--port", str(port),
        "--dbpath", str(dbpath),
        "--logpath", str(log_file),
        "--logappend",
        "--pidfilepath", str(pidfile),
        "--wiredTigerCacheSizeGB", f"{cache_gb:g}",
    ]
    argv += split_extra_args(extra_args, setting="MONGO_EXTRA_ARGS")
    return ServiceSpec(
        name="mongodb",
        host=host,
        port=port,
        argv=tuple(argv),
        workdir=home,
        directories=(dbpath, logdir),
        log_file=log_file,
        clean_log=clean_log,
        pidfile=pidfile,
        optional=True,
        attempts=MONGO_ATTEMPTS,
        interval=PROBE_INTERVAL,
    )
