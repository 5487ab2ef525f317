from pathlib import Path

from flowexec.containers.runtime import DockerRuntime
from flowexec.errors import FailureKind, StepFailed, StepOk
from flowexec.process import CommandOutcome


def test_argv_prefixes_executable():
    assert DockerRuntime("/opt/podman").argv("images") == ["/opt/podman", "images"]


def test_invoke_passes_through_outcome(runtime, spawner, tmp_path: Path):
    spawner.outcomes["images"] = CommandOutcome(1, "boom")

    result = runtime.invoke(["images"], cwd=tmp_path, capture=True)

    # non-zero exit is a normal outcome at this level
    assert result == StepOk(CommandOutcome(1, "boom"))
    assert spawner.last("wait") == (
        ["docker", "images"],
        {"cwd": tmp_path, "capture": True},
    )


def test_invoke_reports_unstartable_executable(runtime, spawner, caplog):
    spawner.outcomes["pull"] = FileNotFoundError(2, "No such file", "docker")

    with caplog.at_level("ERROR", logger="flowexec.tests"):
        result = runtime.invoke(["pull", "alpine"])

    assert isinstance(result, StepFailed)
    assert result.kind is FailureKind.RUNTIME_UNAVAILABLE
    assert "'docker'" in result.message
    assert "Cannot invoke docker" in caplog.text
