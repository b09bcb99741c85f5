import logging
import shutil
from typing import Mapping

from .errors import MissingOptionalBinary, ReadinessTimeoutError, SpawnError
from .plan import OrchestrationPlan, ServiceSpec
from .port_utils import ReadinessCheck
from .process import RuntimeState, Spawner, spawn_process

logger = logging.getLogger(__name__)


def _require_binary(spec: ServiceSpec, env: Mapping[str, str]) -> None:
    if shutil.which(spec.binary, path=env.get("PATH")) is None:
        raise MissingOptionalBinary(spec.name, spec.binary)


def _prepare_filesystem(spec: ServiceSpec) -> None:
    """Create data directories and optionally drop the previous log file."""

    directories = list(spec.directories)
    if spec.pidfile is not None:
        directories.append(spec.pidfile.parent)
    for directory in directories:
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise SpawnError(f"cannot create {directory} for {spec.name}: {exc}") from exc
    if spec.clean_log and spec.log_file is not None:
        try:
            spec.log_file.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Could not remove old log %s: %s", spec.log_file, exc)
        else:
            logger.info("Removed old log %s", spec.log_file)


def start_service(
    spec: ServiceSpec,
    state: RuntimeState,
    *,
    spawn: Spawner = spawn_process,
    env: Mapping[str, str] | None = None,
) -> RuntimeState:
    """Start one dependency and block until its port accepts connections.

    Raises :class:`ReadinessTimeoutError` when the port never opens.  The
    process is left running in that case; the container teardown reaps it.
    """

    child_env = state.child_env(env)
    if spec.optional:
        _require_binary(spec, child_env)

    _prepare_filesystem(spec)
    logger.info("Starting %s on %s ...", spec.binary, spec.address)
    try:
        handle = spawn(spec.name, spec.argv, cwd=spec.workdir, env=child_env)
    except FileNotFoundError as exc:
        raise SpawnError(f"{spec.binary} executable not found on PATH") from exc
    except OSError as exc:
        raise SpawnError(f"failed to launch {spec.binary}: {exc}") from exc
    state = state.with_service(spec.name, handle)

    check = ReadinessCheck(spec.host, spec.port, spec.attempts, spec.interval)
    if not check.run():
        raise ReadinessTimeoutError(spec.name, spec.host, spec.port, spec.attempts)
    logger.info("%s ready on %s (pid %s)", spec.name, spec.address, handle.pid)
    return state


def launch_dependencies(
    plan: OrchestrationPlan,
    state: RuntimeState,
    *,
    spawn: Spawner = spawn_process,
    env: Mapping[str, str] | None = None,
) -> RuntimeState:
    """Start every service in ``plan.services`` strictly in order.

    Later services may rely on earlier ones being reachable, so each one is
    fully ready before the next is spawned.  The first readiness failure
    stops the sequence.
    """

    for spec in plan.services:
        try:
            state = start_service(spec, state, spawn=spawn, env=env)
        except MissingOptionalBinary as exc:
            logger.warning("%s; skipping %s. Use an external instance.", exc, spec.name)
    return state


__all__ = ["start_service", "launch_dependencies"]
