"""
flowexec: command execution for workflow tasks.

Runs a task's command on the host, or inside a container image that is
built from the task's ``docker`` configuration (and cached under a
content-derived tag) when the task asks for one.
"""

from flowexec.config import TaskConfig
from flowexec.containers.runtime import DockerRuntime
from flowexec.errors import (
    CommandExecutionError,
    ConfigError,
    FailureKind,
    StepFailed,
    StepOk,
)
from flowexec.executors import (
    CommandExecutor,
    DockerCommandExecutor,
    SimpleCommandExecutor,
)
from flowexec.models import DockerSpec, ImageTag, TaskRequest
from flowexec.process import ProcessSpawner, ProcessSpec, Redirect
from flowexec.settings import FlowexecSettings

__all__ = [
    # Executors
    "CommandExecutor",
    "DockerCommandExecutor",
    "SimpleCommandExecutor",
    "DockerRuntime",
    # Data model
    "TaskConfig",
    "TaskRequest",
    "DockerSpec",
    "ImageTag",
    "ProcessSpec",
    "Redirect",
    "ProcessSpawner",
    "FlowexecSettings",
    # Errors
    "CommandExecutionError",
    "ConfigError",
    "FailureKind",
    "StepFailed",
    "StepOk",
]
