import os
import sys
from pathlib import Path

import pytest

from flowexec.process import (
    ProcessSpawner,
    ProcessSpec,
    Redirect,
    RedirectKind,
    host_environment,
)

PY = sys.executable


def test_command_must_not_be_empty():
    with pytest.raises(ValueError, match="must not be empty"):
        ProcessSpec(command=[])


def test_file_redirect_needs_path():
    with pytest.raises(ValueError):
        Redirect(RedirectKind.FILE)
    assert Redirect.to_file("out.log").path == Path("out.log")


def test_run_and_wait_captures_merged_output(tmp_path: Path):
    outcome = ProcessSpawner().run_and_wait(
        [PY, "-c", "import sys; print('out'); print('err', file=sys.stderr); sys.exit(3)"],
        cwd=tmp_path,
        capture=True,
    )
    assert outcome.returncode == 3
    assert not outcome.succeeded
    assert "out" in outcome.output
    assert "err" in outcome.output


def test_run_and_wait_missing_executable():
    with pytest.raises(OSError):
        ProcessSpawner().run_and_wait(["flowexec-no-such-binary"], capture=True)


def test_spawn_returns_running_handle(tmp_path: Path):
    process = ProcessSpawner().spawn(
        [PY, "-c", "import sys; sys.stdout.write(sys.stdin.read().upper())"],
        cwd=tmp_path,
        env=None,
        stdin=Redirect.pipe(),
        stdout=Redirect.pipe(),
        stderr=Redirect.inherit(),
    )
    out, _ = process.communicate(b"hello")
    assert out == b"HELLO"
    assert process.returncode == 0


def test_spawn_writes_file_targets(tmp_path: Path):
    log_file = tmp_path / "logs" / "task.log"
    log_file.parent.mkdir()
    log_file.write_bytes(b"previous\n")

    process = ProcessSpawner().spawn(
        [PY, "-c", "import sys; print('one'); print('two', file=sys.stderr)"],
        cwd=tmp_path,
        env=None,
        stdin=Redirect.discard(),
        stdout=Redirect.to_file(log_file, append=True),
        stderr=Redirect.pipe(),
        merge_stderr=True,
    )
    assert process.wait() == 0

    content = log_file.read_text()
    assert content.startswith("previous\n")
    assert "one" in content
    assert "two" in content
    assert process.stderr is None


def test_spawn_reads_stdin_file(tmp_path: Path):
    source = tmp_path / "in.txt"
    source.write_text("payload")
    process = ProcessSpawner().spawn(
        [PY, "-c", "import sys; print(sys.stdin.read())"],
        cwd=tmp_path,
        env=None,
        stdin=Redirect.to_file(source),
        stdout=Redirect.pipe(),
        stderr=Redirect.discard(),
    )
    out, _ = process.communicate()
    assert out.strip() == b"payload"


def test_spawn_passes_environment(tmp_path: Path):
    env = host_environment(ProcessSpec(command=["env"], environment={"FLOWEXEC_PROBE": "42"}))
    process = ProcessSpawner().spawn(
        [PY, "-c", "import os; print(os.environ['FLOWEXEC_PROBE'])"],
        cwd=tmp_path,
        env=env,
        stdin=Redirect.discard(),
        stdout=Redirect.pipe(),
        stderr=Redirect.inherit(),
    )
    out, _ = process.communicate()
    assert out.strip() == b"42"


def test_host_environment_layers(monkeypatch):
    monkeypatch.setenv("FLOWEXEC_HOST_ONLY", "host")
    monkeypatch.setenv("FLOWEXEC_SHARED", "host")
    spec = ProcessSpec(command=["x"], environment={"FLOWEXEC_SHARED": "task"})

    layered = host_environment(spec)
    assert layered["FLOWEXEC_HOST_ONLY"] == "host"
    assert layered["FLOWEXEC_SHARED"] == "task"

    spec.inherit_environment = False
    assert host_environment(spec) == {"FLOWEXEC_SHARED": "task"}
    assert os.environ["FLOWEXEC_SHARED"] == "host"
