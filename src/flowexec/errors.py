"""
flowexec/errors.py

Failure taxonomy and tagged step results.

Every synchronous step of the container path (probe, build, pull, launch)
returns either a ``StepOk`` carrying its value or a ``StepFailed`` naming the
failure kind and the diagnostic message. Executors propagate the first
failure explicitly; ``CommandExecutionError`` is the single signal handed to
callers that prefer an exception.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Generic, TypeVar, Union

T = TypeVar("T")


class FailureKind(str, Enum):
    CONFIG = "config"
    RUNTIME_UNAVAILABLE = "runtime_unavailable"
    BUILD = "build"
    PULL = "pull"
    PROBE = "probe"
    LAUNCH = "launch"


class ConfigError(ValueError):
    """Raised when a task configuration is missing a key or has the wrong type."""


class CommandExecutionError(RuntimeError):
    """
    The attempt could not produce a running process.

    Attributes
    ----------
    kind : FailureKind
        Which step failed.
    message : str
        The underlying diagnostic.
    """

    def __init__(self, kind: FailureKind, message: str) -> None:
        super().__init__(f"{kind.value}: {message}")
        self.kind = kind
        self.message = message


@dataclass(frozen=True)
class StepOk(Generic[T]):
    value: T
    ok: ClassVar[bool] = True


@dataclass(frozen=True)
class StepFailed:
    kind: FailureKind
    message: str
    ok: ClassVar[bool] = False

    def to_error(self) -> CommandExecutionError:
        return CommandExecutionError(self.kind, self.message)


StepResult = Union[StepOk[T], StepFailed]
