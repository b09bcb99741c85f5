"""Pre-start the Screeps server so a CLI can attach before handoff.

When the container's foreground command is a CLI client, the server it talks
to has to be running first.  The server is launched in the background, the
CLI port is polled, and on timeout the server is killed before the run
aborts.  Dependency services are never touched by this rollback.
"""

from __future__ import annotations

import logging
import signal
from typing import Mapping

from .errors import ReadinessTimeoutError, SpawnError
from .plan import OrchestrationPlan, PrestartMode
from .port_utils import ReadinessCheck
from .process import ProcessHandle, RuntimeState, Spawner, spawn_process
from .toolchain import find_legacy_python, toolchain_exports

__all__ = ["ROLLBACK_GRACE", "rollback_primary", "prestart_primary"]

logger = logging.getLogger(__name__)

# Seconds to wait for the killed server tree before escalating to SIGKILL
ROLLBACK_GRACE = 5.0


def rollback_primary(handle: ProcessHandle, *, grace: float = ROLLBACK_GRACE) -> None:
    """Kill the pre-started server, waiting at most *grace* seconds for it."""

    logger.error("Killing server process %s.", handle.pid)
    if not handle.signal(signal.SIGTERM):
        return
    if handle.wait(grace) is None:
        logger.warning("Server process %s ignored SIGTERM; sending SIGKILL", handle.pid)
        handle.signal(signal.SIGKILL)
        handle.wait(grace)


def prestart_primary(
    plan: OrchestrationPlan,
    state: RuntimeState,
    *,
    spawn: Spawner = spawn_process,
    env: Mapping[str, str] | None = None,
    grace: float = ROLLBACK_GRACE,
) -> RuntimeState:
    """Launch the server in the background and wait for its CLI port.

    Returns the state unchanged when no background mode is selected.
    """

    if not plan.prestart_enabled:
        return state
    primary = plan.primary
    command = primary.background_command

    if primary.prestart_mode is PrestartMode.LEGACY_BACKGROUND:
        interpreter = find_legacy_python(plan.legacy_python_path, plan.legacy_python_root)
        state = state.with_exports(toolchain_exports(interpreter))

    logger.info("Pre-starting Screeps server in background: %s", command)
    try:
        handle = spawn(
            "screeps-server",
            ("bash", "-lc", command),
            cwd=plan.home,
            env=state.child_env(env),
        )
    except OSError as exc:
        raise SpawnError(f"failed to launch server: {exc}", stage="prestart") from exc
    state = state.with_primary(handle)

    check = ReadinessCheck(primary.cli_host, primary.cli_port, primary.attempts, primary.interval)
    logger.info("Waiting for CLI on %s ...", check.address)
    if not check.run():
        logger.error("CLI port not reachable on %s.", check.address)
        rollback_primary(handle, grace=grace)
        raise ReadinessTimeoutError(
            "screeps CLI", primary.cli_host, primary.cli_port, primary.attempts, stage="prestart"
        )
    logger.info("CLI reachable on %s (server pid %s)", check.address, handle.pid)
    return state
