from flowexec.containers.puller import pull_image
from flowexec.errors import FailureKind, StepFailed, StepOk
from flowexec.process import CommandOutcome


def test_pull_invokes_runtime(runtime, spawner, caplog):
    with caplog.at_level("INFO", logger="flowexec.tests"):
        result = pull_image("ubuntu:20.04", runtime)

    assert result == StepOk("ubuntu:20.04")
    argv, kwargs = spawner.last("wait")
    assert argv == ["docker", "pull", "ubuntu:20.04"]
    assert kwargs["capture"] is False
    assert "Pulling docker image ubuntu:20.04" in caplog.text


def test_pull_failure_is_fatal(runtime, spawner):
    spawner.outcomes["pull"] = CommandOutcome(1)
    result = pull_image("nope:missing", runtime)
    assert isinstance(result, StepFailed)
    assert result.kind is FailureKind.PULL


def test_pull_missing_executable(runtime, spawner):
    spawner.outcomes["pull"] = PermissionError("denied")
    result = pull_image("alpine", runtime)
    assert isinstance(result, StepFailed)
    assert result.kind is FailureKind.RUNTIME_UNAVAILABLE
    assert "denied" in result.message
