import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
from unittest.mock import MagicMock

import pytest

from flowexec.config import TaskConfig
from flowexec.containers.runtime import DockerRuntime
from flowexec.models import TaskRequest
from flowexec.process import CommandOutcome, ProcessSpawner
from flowexec.settings import FlowexecSettings

Scripted = Union[CommandOutcome, BaseException]


class FakeSpawner(ProcessSpawner):
    """
    Records every invocation instead of starting processes.

    ``outcomes`` maps a runtime subcommand (``"images"``, ``"build"``,
    ``"pull"``, ``"image"``) to the ``CommandOutcome`` it should return or an
    exception to raise. Unlisted subcommands exit 0 with no output.
    ``spawn_error`` makes ``spawn`` raise instead of returning a handle.
    """

    def __init__(
        self,
        outcomes: Optional[Dict[str, Scripted]] = None,
        spawn_error: Optional[BaseException] = None,
    ) -> None:
        self.outcomes: Dict[str, Scripted] = dict(outcomes or {})
        self.spawn_error = spawn_error
        self.calls: List[Tuple[str, List[str], Dict[str, Any]]] = []
        self.handles: List[MagicMock] = []

    def run_and_wait(
        self,
        argv: Sequence[str],
        *,
        cwd: Optional[Path] = None,
        capture: bool = False,
    ) -> CommandOutcome:
        self.calls.append(("wait", list(argv), {"cwd": cwd, "capture": capture}))
        scripted = self.outcomes.get(argv[1], CommandOutcome(0))
        if isinstance(scripted, BaseException):
            raise scripted
        return scripted

    def spawn(self, argv: Sequence[str], **kwargs: Any) -> MagicMock:
        self.calls.append(("spawn", list(argv), kwargs))
        if self.spawn_error is not None:
            raise self.spawn_error
        handle = MagicMock(name="process")
        self.handles.append(handle)
        return handle

    @property
    def subcommands(self) -> List[str]:
        return [argv[1] for _, argv, _ in self.calls if len(argv) > 1]

    def last(self, kind: str) -> Tuple[List[str], Dict[str, Any]]:
        for call_kind, argv, kwargs in reversed(self.calls):
            if call_kind == kind:
                return argv, kwargs
        raise AssertionError(f"no {kind} call recorded")


@pytest.fixture
def make_spawner():
    """Factory for ``FakeSpawner`` instances."""

    def _make(**kwargs: Any) -> FakeSpawner:
        return FakeSpawner(**kwargs)

    return _make


@pytest.fixture
def spawner() -> FakeSpawner:
    return FakeSpawner()


@pytest.fixture
def test_logger() -> logging.Logger:
    """Logger injected as the diagnostic sink, captured by ``caplog``."""
    return logging.getLogger("flowexec.tests")


@pytest.fixture
def runtime(spawner: FakeSpawner, test_logger: logging.Logger) -> DockerRuntime:
    return DockerRuntime("docker", spawner=spawner, logger=test_logger)


@pytest.fixture
def settings() -> FlowexecSettings:
    return FlowexecSettings()


@pytest.fixture
def make_request():
    """Factory for task requests with a given config mapping."""

    def _make(
        config: Optional[Dict[str, Any]] = None,
        project_id: int = 7,
        revision: Optional[str] = "rev-1",
    ) -> TaskRequest:
        return TaskRequest(
            project_id=project_id, config=TaskConfig(config or {}), revision=revision
        )

    return _make


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    path = tmp_path / "proj"
    path.mkdir(parents=True, exist_ok=True)
    return path
