import json
import os
import subprocess
from pathlib import Path
from types import SimpleNamespace

import pytest

from state_reconciler.adapters import StateLoader, StateLoaderError

FIXTURES = Path(__file__).resolve().parent.parent / "fixtures"


def test_load_state_from_file(tmp_path):
    loader = StateLoader(working_dir=tmp_path, state_path=FIXTURES / "buckets.tfstate")

    data = loader.load_state()

    assert data["version"] == 4
    assert data["serial"] == 7
    assert len(data["resources"]) == 4


def test_pull_state_runs_terraform(monkeypatch, tmp_path):
    recorded = {}

    def fake_run(self, args, cwd=None, env=None, capture_output=False):
        recorded["args"] = args
        recorded["cwd"] = cwd
        recorded["env"] = env
        recorded["capture_output"] = capture_output
        return SimpleNamespace(stdout=json.dumps({"version": 4, "resources": []}))

    monkeypatch.setattr(StateLoader, "_run_command", fake_run, raising=False)

    loader = StateLoader(working_dir=tmp_path, env={"TF_WORKSPACE": "staging"})
    data = loader.load_state()

    assert data == {"version": 4, "resources": []}
    assert recorded["args"] == ["terraform", "state", "pull"]
    assert Path(recorded["cwd"]).resolve() == tmp_path.resolve()
    assert recorded["capture_output"] is True
    assert recorded["env"]["TF_WORKSPACE"] == "staging"
    assert recorded["env"]["PATH"] == os.environ.get("PATH", "")


def test_pull_state_with_empty_output_returns_empty_state(monkeypatch, tmp_path):
    monkeypatch.setattr(
        StateLoader,
        "_run_command",
        lambda self, args, **kwargs: SimpleNamespace(stdout="\n"),
        raising=False,
    )

    data = StateLoader(working_dir=tmp_path).load_state()

    assert data == {"version": 4, "resources": []}


def test_pull_state_rejects_invalid_output(monkeypatch, tmp_path):
    monkeypatch.setattr(
        StateLoader,
        "_run_command",
        lambda self, args, **kwargs: SimpleNamespace(stdout="not json"),
        raising=False,
    )

    with pytest.raises(StateLoaderError):
        StateLoader(working_dir=tmp_path).load_state()


def test_missing_state_file_raises(tmp_path):
    loader = StateLoader(working_dir=tmp_path, state_path=tmp_path / "missing.tfstate")

    with pytest.raises(StateLoaderError):
        loader.load_state()


def test_invalid_state_file_raises(tmp_path):
    bad = tmp_path / "bad.tfstate"
    bad.write_text("{not json", encoding="utf-8")

    with pytest.raises(StateLoaderError):
        StateLoader(working_dir=tmp_path, state_path=bad).load_state()

    array = tmp_path / "array.tfstate"
    array.write_text("[]", encoding="utf-8")

    with pytest.raises(StateLoaderError):
        StateLoader(working_dir=tmp_path, state_path=array).load_state()


def test_command_failures_are_wrapped(monkeypatch, tmp_path):
    def failing_run(*args, **kwargs):
        raise subprocess.CalledProcessError(returncode=1, cmd=args[0])

    monkeypatch.setattr(subprocess, "run", failing_run)

    with pytest.raises(StateLoaderError, match="exit code 1"):
        StateLoader(working_dir=tmp_path).load_state()


def test_missing_executable_is_wrapped(tmp_path):
    loader = StateLoader(working_dir=tmp_path, terraform_bin="definitely-not-terraform-bin")

    with pytest.raises(StateLoaderError, match="Executable not found"):
        loader.load_state()
