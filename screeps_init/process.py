"""Process handles and the per-run state that owns them."""

from __future__ import annotations

import contextlib
import logging
import os
import signal as _signal
import subprocess
import time
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Callable, List, Mapping, Optional, Sequence

import psutil

__all__ = ["ProcessHandle", "Spawner", "RuntimeState", "spawn_process"]

logger = logging.getLogger(__name__)


class ProcessHandle:
    """A background child owned by the orchestrator until handoff.

    Signals are delivered to the whole process tree: the server is launched
    through ``bash -lc`` and ``npx``, so the process that actually listens on
    a port is usually a grandchild of the recorded PID.
    """

    def __init__(self, name: str, proc: subprocess.Popen) -> None:
        self.name = name
        self._proc = proc
        self._signalled: List[psutil.Process] = []

    @classmethod
    def spawn(
        cls,
        name: str,
        argv: Sequence[str],
        *,
        cwd: Path | str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> "ProcessHandle":
        """Start *argv* in the background without waiting for it."""

        proc = subprocess.Popen(
            list(argv),
            cwd=str(cwd) if cwd is not None else None,
            env=dict(env) if env is not None else None,
            stdin=subprocess.DEVNULL,
        )
        logger.debug("spawned %s (pid %s): %s", name, proc.pid, list(argv))
        return cls(name, proc)

    @property
    def pid(self) -> int:
        return self._proc.pid

    @property
    def returncode(self) -> Optional[int]:
        return self._proc.poll()

    def is_alive(self) -> bool:
        return self._proc.poll() is None

    def _descendants(self) -> List[psutil.Process]:
        try:
            return psutil.Process(self.pid).children(recursive=True)
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            return []

    def signal(self, sig: int = _signal.SIGTERM, *, tree: bool = True) -> bool:
        """Send *sig* to the process (and its descendants when *tree*).

        Descendants signalled earlier are signalled again while they are
        still running, even once the parent has exited and they have been
        reparented.  Returns ``False`` when nothing was left to signal.
        Errors for descendants that vanish in the meantime are ignored.
        """

        targets = self._descendants() if tree else []
        known = {child.pid for child in targets}
        orphans = [p for p in self._signalled if p.pid not in known and p.is_running()]
        delivered = False
        for child in targets + orphans:
            with contextlib.suppress(psutil.NoSuchProcess, psutil.AccessDenied):
                child.send_signal(sig)
                delivered = True
        self._signalled = targets + orphans
        if not self.is_alive():
            return delivered
        try:
            self._proc.send_signal(sig)
        except ProcessLookupError:
            return delivered
        return True

    def wait(self, timeout: float) -> Optional[int]:
        """Wait up to *timeout* seconds for the process and signalled children.

        Returns the exit code, or ``None`` if something is still running.
        """

        deadline = time.monotonic() + max(0.0, timeout)
        try:
            code = self._proc.wait(timeout=max(0.0, timeout))
        except subprocess.TimeoutExpired:
            return None
        if self._signalled:
            remaining = max(0.0, deadline - time.monotonic())
            _, alive = psutil.wait_procs(self._signalled, timeout=remaining)
            if alive:
                return None
        return code

    def __repr__(self) -> str:
        return f"ProcessHandle(name={self.name!r}, pid={self.pid})"


Spawner = Callable[..., ProcessHandle]


def spawn_process(
    name: str,
    argv: Sequence[str],
    *,
    cwd: Path | str | None = None,
    env: Mapping[str, str] | None = None,
) -> ProcessHandle:
    """Default :data:`Spawner` used by the launcher and prestart stages."""

    return ProcessHandle.spawn(name, argv, cwd=cwd, env=env)


@dataclass(frozen=True)
class RuntimeState:
    """Processes started so far plus variables exported to later children.

    Stages never mutate a state in place; each returns an updated copy.
    """

    services: Mapping[str, ProcessHandle] = field(default_factory=dict)
    primary: Optional[ProcessHandle] = None
    exports: Mapping[str, str] = field(default_factory=dict)

    def with_service(self, name: str, handle: ProcessHandle) -> "RuntimeState":
        return replace(self, services={**self.services, name: handle})

    def with_primary(self, handle: Optional[ProcessHandle]) -> "RuntimeState":
        return replace(self, primary=handle)

    def with_exports(self, values: Mapping[str, str]) -> "RuntimeState":
        return replace(self, exports={**self.exports, **values})

    def child_env(self, base: Mapping[str, str] | None = None) -> dict[str, str]:
        """Return the environment for a child: *base* (or ``os.environ``) plus exports."""

        env = dict(os.environ if base is None else base)
        env.update(self.exports)
        return env
