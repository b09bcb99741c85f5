#!/usr/bin/env python3
"""Container entrypoint for the Screeps server image.

The bring-up is strictly sequential:

1. Resolve settings from the environment into an immutable plan.
2. Start local dependency services (Redis, MongoDB), each gated on its port.
3. Optionally pre-start the server in the background and wait for its CLI.
4. Exec the panel's ``STARTUP`` command in place of this process.

Any failure ends the run with exit status 1 and a single ``[init]``
diagnostic on stderr.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import List, Mapping, NoReturn

from rich.console import Console
from rich.table import Table

from .config import resolve_plan
from .environment import detect_internal_ip
from .errors import InitError
from .handoff import handoff, require_startup
from .logging_utils import setup_stderr_logging
from .plan import OrchestrationPlan
from .prestart import prestart_primary
from .process import RuntimeState, Spawner, spawn_process
from .service_launcher import launch_dependencies

__all__ = ["parse_args", "render_plan", "run", "main"]

log = logging.getLogger(__name__)

console = Console()


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="screeps-init",
        description="Start local dependencies, optionally pre-start the server, then exec STARTUP",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Resolve and print the plan without starting anything",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        metavar="LEVEL",
        help="Logging level (overrides INIT_LOG_LEVEL)",
    )
    return parser.parse_args(argv)


def render_plan(plan: OrchestrationPlan) -> Table:
    """Return a table summarising what a real run would do."""

    table = Table(title="screeps-init plan")
    table.add_column("Step")
    table.add_column("Name")
    table.add_column("Address")
    table.add_column("Command", overflow="fold")
    for spec in plan.services:
        name = f"{spec.name} (optional)" if spec.optional else spec.name
        table.add_row("dependency", name, spec.address, " ".join(spec.argv))
    primary = plan.primary
    if primary.background_command is not None:
        table.add_row(
            f"prestart ({primary.prestart_mode.value})",
            "screeps-server",
            f"{primary.cli_host}:{primary.cli_port}",
            primary.background_command,
        )
    table.add_row("handoff", "startup", "-", primary.startup or "<missing STARTUP>")
    return table


def run(
    plan: OrchestrationPlan,
    *,
    spawn: Spawner = spawn_process,
    env: Mapping[str, str] | None = None,
) -> NoReturn:
    """Execute *plan*; returns only by raising :class:`InitError`."""

    # Fail before any side effect if there is nothing to hand off to
    require_startup(plan)

    state = RuntimeState()
    internal_ip = detect_internal_ip()
    if internal_ip:
        state = state.with_exports({"INTERNAL_IP": internal_ip})

    state = launch_dependencies(plan, state, spawn=spawn, env=env)
    state = prestart_primary(plan, state, spawn=spawn, env=env)
    handoff(plan, state, env=env)


def main(argv: List[str] | None = None) -> int:
    args = parse_args(argv)
    setup_stderr_logging(level=args.log_level or os.getenv("INIT_LOG_LEVEL"))

    try:
        plan = resolve_plan(os.environ)
        if args.dry_run:
            console.print(render_plan(plan))
            return 0
        run(plan)
    except InitError as exc:
        log.error("%s", exc, extra={"stage": exc.stage})
        return exc.exit_code
    return 0  # pragma: no cover - run() replaces the process


if __name__ == "__main__":  # pragma: no cover - manual CLI
    raise SystemExit(main(sys.argv[1:]))
