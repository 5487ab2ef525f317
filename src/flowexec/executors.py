"""
flowexec Command Executors

This module turns a task request plus a resolved ``ProcessSpec`` into a
running OS process.

-   **Abstract Interface (`CommandExecutor`)**: ``try_start`` returns a tagged
    result; ``start`` returns the process handle or raises
    ``CommandExecutionError``.
-   **Host execution (`SimpleCommandExecutor`)**: spawns the command directly.
-   **Container execution (`DockerCommandExecutor`)**: when the task config
    has a ``docker`` section, resolves (and if needed builds or pulls) the
    image, then launches the command through ``docker run``. Otherwise it
    delegates to the host executor.
"""

import abc
import logging
import subprocess
from pathlib import Path
from typing import Optional, Union

from flowexec.containers.launcher import launch_container
from flowexec.containers.resolve import resolve_image
from flowexec.containers.runtime import DockerRuntime
from flowexec.errors import ConfigError, FailureKind, StepFailed, StepOk, StepResult
from flowexec.models import DockerSpec, TaskRequest
from flowexec.process import ProcessSpawner, ProcessSpec, host_environment
from flowexec.settings import FlowexecSettings


def _missing_command(spec: ProcessSpec) -> Optional[StepFailed]:
    if not spec.command:
        return StepFailed(FailureKind.LAUNCH, "No command to run")
    return None


class CommandExecutor(abc.ABC):
    @abc.abstractmethod
    def try_start(
        self,
        project_path: Union[str, Path],
        request: TaskRequest,
        spec: ProcessSpec,
    ) -> StepResult[subprocess.Popen]:
        """
        Start the task's command.

        Parameters
        ----------
        project_path : Union[str, Path]
            Root directory of the project the task belongs to.
        request : TaskRequest
            The task invocation, including its configuration.
        spec : ProcessSpec
            Command, environment, working directory and stream redirects.

        Returns
        -------
        StepResult[subprocess.Popen]
            ``StepOk`` with the running process, or the ``StepFailed`` of the
            first step that failed. No process exists in the failure case.
        """

    def start(
        self,
        project_path: Union[str, Path],
        request: TaskRequest,
        spec: ProcessSpec,
    ) -> subprocess.Popen:
        """
        Start the task's command and return its handle.

        Raises
        ------
        CommandExecutionError
            If any step failed before the process could be started.
        """
        result = self.try_start(project_path, request, spec)
        if isinstance(result, StepFailed):
            raise result.to_error()
        return result.value


class SimpleCommandExecutor(CommandExecutor):
    """Runs the command directly on the host."""

    def __init__(
        self,
        spawner: Optional[ProcessSpawner] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.spawner = spawner or ProcessSpawner()
        self.logger = logger or logging.getLogger(__name__)

    def try_start(
        self,
        project_path: Union[str, Path],
        request: TaskRequest,
        spec: ProcessSpec,
    ) -> StepResult[subprocess.Popen]:
        missing = _missing_command(spec)
        if missing is not None:
            return missing
        project = Path(project_path).absolute()
        cwd = spec.working_dir if spec.working_dir is not None else project
        self.logger.debug("Running on host in %s: %s", cwd, spec.command)
        try:
            process = self.spawner.spawn(
                spec.command,
                cwd=cwd,
                env=host_environment(spec),
                stdin=spec.stdin,
                stdout=spec.stdout,
                stderr=spec.stderr,
                merge_stderr=spec.merge_stderr,
            )
        except OSError as exc:
            self.logger.error("Cannot start %s: %s", spec.command, exc)
            return StepFailed(FailureKind.LAUNCH, f"Cannot start command: {exc}")
        return StepOk(process)


class DockerCommandExecutor(CommandExecutor):
    """
    Runs the command in a container when the task config asks for one.

    Attributes
    ----------
    simple : CommandExecutor
        Fallback for tasks without a ``docker`` section.
    runtime : DockerRuntime
        Container runtime used for probing, building, pulling and running.
    settings : FlowexecSettings
        Image name prefix, Dockerfile directory and probe strategy.
    """

    def __init__(
        self,
        simple: Optional[CommandExecutor] = None,
        runtime: Optional[DockerRuntime] = None,
        settings: Optional[FlowexecSettings] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.settings = settings or FlowexecSettings.from_env()
        self.logger = logger or logging.getLogger(__name__)
        self.runtime = runtime or DockerRuntime(
            self.settings.docker_executable, logger=self.logger
        )
        self.simple = simple or SimpleCommandExecutor(
            self.runtime.spawner, logger=self.logger
        )

    def try_start(
        self,
        project_path: Union[str, Path],
        request: TaskRequest,
        spec: ProcessSpec,
    ) -> StepResult[subprocess.Popen]:
        if not request.config.has("docker"):
            return self.simple.try_start(project_path, request, spec)

        try:
            docker_spec = DockerSpec.from_config(
                request.config.get_nested_or_empty("docker")
            )
        except ConfigError as exc:
            self.logger.error("Invalid docker configuration: %s", exc)
            return StepFailed(FailureKind.CONFIG, str(exc))

        missing = _missing_command(spec)
        if missing is not None:
            return missing

        self.logger.debug(
            "Starting task %s of project %s in docker (attempt %s)",
            request.task_name or "<unnamed>",
            request.project_id,
            request.attempt_id,
        )
        project = Path(project_path).absolute()
        image = resolve_image(
            docker_spec,
            request,
            project,
            self.runtime,
            prefix=self.settings.image_prefix,
            recipe_dir=self.settings.recipe_dir,
            probe_strategy=self.settings.probe_strategy,
        )
        if isinstance(image, StepFailed):
            return image
        return launch_container(project, image.value, spec, self.runtime)
