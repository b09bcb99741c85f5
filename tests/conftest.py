import logging
import subprocess
from collections import defaultdict

import pytest

from screeps_init import port_utils
from screeps_init import process as process_mod
from screeps_init.env_defaults import DEFAULTS

# Above the kernel's pid_max ceiling, so psutil never finds a real process
FAKE_PID_BASE = 2**22 + 100


class FakeHandle:
    """Stand-in for :class:`ProcessHandle` that records signals."""

    def __init__(self, name, argv, pid, cwd=None, env=None):
        self.name = name
        self.argv = tuple(argv)
        self.pid = pid
        self.cwd = cwd
        self.env = dict(env or {})
        self.signals: list[int] = []
        self.alive = True

    def is_alive(self):
        return self.alive

    def signal(self, sig, *, tree=True):
        if not self.alive:
            return False
        self.signals.append(sig)
        self.alive = False
        return True

    def wait(self, timeout):
        return None if self.alive else -self.signals[-1]


class FakeSpawner:
    def __init__(self):
        self.handles: list[FakeHandle] = []

    def __call__(self, name, argv, *, cwd=None, env=None):
        handle = FakeHandle(name, argv, FAKE_PID_BASE + len(self.handles), cwd, env)
        self.handles.append(handle)
        return handle

    def names(self):
        return [h.name for h in self.handles]

    def count(self, name):
        return sum(1 for h in self.handles if h.name == name)


class FakePopen:
    """Replaces ``subprocess.Popen`` inside :mod:`screeps_init.process`."""

    instances: list["FakePopen"] = []

    def __init__(self, argv, cwd=None, env=None, stdin=None):
        self.args = list(argv)
        self.cwd = cwd
        self.env = env
        self.pid = FAKE_PID_BASE + len(FakePopen.instances)
        self.returncode = None
        self.signals: list[int] = []
        FakePopen.instances.append(self)

    def poll(self):
        return self.returncode

    def send_signal(self, sig):
        self.signals.append(sig)
        self.returncode = -sig

    def wait(self, timeout=None):
        if self.returncode is None:
            raise subprocess.TimeoutExpired(self.args, timeout)
        return self.returncode


class PortScript:
    """Scripted answers for :func:`port_utils.is_port_open`.

    ``ready_after[port] = k`` makes the first ``k`` attempts fail and every
    later one succeed; ports not listed never open.
    """

    def __init__(self):
        self.ready_after: dict[int, int] = {}
        self.attempts: dict[int, int] = defaultdict(int)
        self.sleeps: list[float] = []

    def is_open(self, host, port, *, timeout=port_utils.CONNECT_TIMEOUT):
        self.attempts[port] += 1
        after = self.ready_after.get(port)
        return after is not None and self.attempts[port] > after

    def sleep(self, seconds):
        self.sleeps.append(seconds)


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    for key in DEFAULTS:
        monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture(autouse=True)
def reset_init_logging():
    root = logging.getLogger()
    level = root.level
    yield
    root.setLevel(level)
    handler = getattr(root, "_screeps_init_stderr_handler", None)
    if handler is not None:
        root.removeHandler(handler)
        delattr(root, "_screeps_init_stderr_handler")


@pytest.fixture
def spawner():
    return FakeSpawner()


@pytest.fixture
def ports(monkeypatch):
    script = PortScript()
    monkeypatch.setattr(port_utils, "is_port_open", script.is_open)
    monkeypatch.setattr(port_utils.time, "sleep", script.sleep)
    return script


@pytest.fixture
def fake_popen(monkeypatch):
    FakePopen.instances = []
    monkeypatch.setattr(process_mod.subprocess, "Popen", FakePopen)
    return FakePopen
