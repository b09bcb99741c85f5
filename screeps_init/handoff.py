"""Replace the orchestrator with the container's foreground command."""

from __future__ import annotations

import logging
import os
import sys
from typing import Mapping, NoReturn

from rich.console import Console

from .errors import ConfigError, ConfigErrorReason, SpawnError
from .plan import OrchestrationPlan
from .process import RuntimeState

__all__ = ["require_startup", "handoff"]

logger = logging.getLogger(__name__)

console = Console(soft_wrap=True)


def require_startup(plan: OrchestrationPlan) -> str:
    command = plan.primary.startup
    if not command:
        raise ConfigError(
            ConfigErrorReason.MISSING_STARTUP_COMMAND,
            "STARTUP is empty; nothing to hand off to",
        )
    return command


def handoff(
    plan: OrchestrationPlan,
    state: RuntimeState,
    *,
    env: Mapping[str, str] | None = None,
) -> NoReturn:
    """Exec ``bash -lc <startup>`` in place of this process.

    The command inherits PID 1 (under tini, which forwards signals and reaps
    the background children started earlier).  Nothing after the exec runs.
    """

    command = require_startup(plan)
    console.print(f":{plan.home}$ {command}", markup=False, highlight=False)

    if plan.home.is_dir():
        os.chdir(plan.home)
    else:
        logger.warning("Container home %s does not exist; staying in %s", plan.home, os.getcwd())
    child_env = state.child_env(env)

    for handler in logging.getLogger().handlers:
        handler.flush()
    sys.stdout.flush()
    sys.stderr.flush()
    try:
        os.execvpe("bash", ["bash", "-lc", command], child_env)
    except OSError as exc:
        raise SpawnError(f"failed to exec startup command: {exc}", stage="handoff") from exc
