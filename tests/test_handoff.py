import logging

import pytest

from screeps_init import handoff as handoff_mod
from screeps_init.errors import ConfigError, ConfigErrorReason, SpawnError
from screeps_init.plan import OrchestrationPlan, PrimarySpec
from screeps_init.process import RuntimeState


class Replaced(Exception):
    """Raised by the fake exec to mark that the process image was replaced."""


def _record_exec(monkeypatch):
    calls = []

    def fake_execvpe(file, args, env):
        calls.append((file, list(args), dict(env)))
        raise Replaced()

    monkeypatch.setattr(handoff_mod.os, "execvpe", fake_execvpe)
    return calls


def test_handoff_execs_startup_in_container_home(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path.parent)
    calls = _record_exec(monkeypatch)
    plan = OrchestrationPlan(primary=PrimarySpec(startup="npx screeps start --port ${SERVER_PORT}"), home=tmp_path)
    state = RuntimeState().with_exports({"INTERNAL_IP": "172.18.0.2"})

    with pytest.raises(Replaced):
        handoff_mod.handoff(plan, state, env={"SERVER_PORT": "21025"})

    assert calls == [
        (
            "bash",
            ["bash", "-lc", "npx screeps start --port ${SERVER_PORT}"],
            {"SERVER_PORT": "21025", "INTERNAL_IP": "172.18.0.2"},
        )
    ]
    assert handoff_mod.os.getcwd() == str(tmp_path)
    assert f":{tmp_path}$ npx screeps start --port ${{SERVER_PORT}}" in capsys.readouterr().out


def test_missing_startup_command(tmp_path, monkeypatch):
    calls = _record_exec(monkeypatch)
    plan = OrchestrationPlan(primary=PrimarySpec(startup=None), home=tmp_path)

    with pytest.raises(ConfigError) as excinfo:
        handoff_mod.handoff(plan, RuntimeState(), env={})

    assert excinfo.value.reason is ConfigErrorReason.MISSING_STARTUP_COMMAND
    assert calls == []


def test_exec_failure_becomes_spawn_error(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    def broken_exec(file, args, env):
        raise FileNotFoundError("bash")

    monkeypatch.setattr(handoff_mod.os, "execvpe", broken_exec)
    plan = OrchestrationPlan(primary=PrimarySpec(startup="run-app"), home=tmp_path / "missing")

    with pytest.raises(SpawnError) as excinfo:
        handoff_mod.handoff(plan, RuntimeState(), env={})
    assert excinfo.value.stage == "handoff"


def test_missing_container_home_is_reported(tmp_path, monkeypatch, caplog):
    monkeypatch.chdir(tmp_path)
    calls = _record_exec(monkeypatch)
    plan = OrchestrationPlan(primary=PrimarySpec(startup="run-app"), home=tmp_path / "missing")

    with caplog.at_level(logging.WARNING), pytest.raises(Replaced):
        handoff_mod.handoff(plan, RuntimeState(), env={})

    assert "Container home" in caplog.text and "does not exist" in caplog.text
    assert handoff_mod.os.getcwd() == str(tmp_path)
    assert calls[0][1] == ["bash", "-lc", "run-app"]
