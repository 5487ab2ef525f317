"""
Run a task's command inside a container.

The project directory is bind-mounted at its own absolute path, so the
working directory recorded in the ``ProcessSpec`` is valid verbatim inside
the container. Only the ``ProcessSpec`` environment entries are injected; the
host environment is not forwarded.
"""

import os
import subprocess
from pathlib import Path
from typing import List, Union

from flowexec.containers.runtime import DockerRuntime
from flowexec.errors import FailureKind, StepFailed, StepOk, StepResult
from flowexec.process import ProcessSpec


def container_workdir(spec: ProcessSpec) -> str:
    """Normalized absolute working directory for ``spec`` (cwd when unset)."""
    workdir = spec.working_dir if spec.working_dir is not None else Path(".")
    return os.path.abspath(os.path.normpath(str(workdir)))


def build_run_argv(
    executable: str,
    project_path: Union[str, Path],
    image: str,
    spec: ProcessSpec,
) -> List[str]:
    """
    Assemble the ``docker run`` argument vector.

    Parameters
    ----------
    executable : str
        Runtime binary, e.g. ``"docker"``.
    project_path : Union[str, Path]
        Host directory mounted read-write at the same path in the container.
    image : str
        Image reference to run.
    spec : ProcessSpec
        The task's command, environment and working directory.

    Returns
    -------
    List[str]
        ``[docker, run, -i, --rm, -v, P:P:rw, -w, W, -e K=V..., image, *command]``
    """
    project = os.path.abspath(str(project_path))
    argv: List[str] = [executable, "run"]
    argv += ["-i", "--rm"]
    argv += ["-v", f"{project}:{project}:rw"]
    argv += ["-w", container_workdir(spec)]
    for key, value in spec.environment.items():
        argv += ["-e", f"{key}={value}"]
    argv.append(image)
    argv.extend(spec.command)
    return argv


def launch_container(
    project_path: Union[str, Path],
    image: str,
    spec: ProcessSpec,
    runtime: DockerRuntime,
) -> StepResult[subprocess.Popen]:
    """
    Start ``spec.command`` inside ``image`` without waiting for it.

    The ``ProcessSpec`` redirects are applied to the runtime process. Returns the
    runtime process handle, or ``StepFailed`` with kind ``LAUNCH`` when it
    cannot be started.
    """
    argv = build_run_argv(runtime.executable, project_path, image, spec)
    # environment values can hold secrets; log the vector without them
    runtime.logger.debug(
        "Running in docker: image=%s workdir=%s env_keys=%s command=%s",
        image,
        container_workdir(spec),
        sorted(spec.environment),
        spec.command,
    )
    try:
        process = runtime.spawner.spawn(
            argv,
            cwd=Path(os.path.abspath(str(project_path))),
            env=None,
            stdin=spec.stdin,
            stdout=spec.stdout,
            stderr=spec.stderr,
            merge_stderr=spec.merge_stderr,
        )
    except OSError as exc:
        runtime.logger.error("Cannot start docker run for %s: %s", image, exc)
        return StepFailed(
            FailureKind.LAUNCH, f"Cannot start container for image {image}: {exc}"
        )
    return StepOk(process)
