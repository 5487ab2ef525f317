"""
flowexec.containers.runtime

Command-line protocol of the container runtime.

``DockerRuntime`` bundles what every container step needs: the runtime
executable, the process spawner, and the diagnostic logger injected by the
caller. Steps build their sub-invocation through it so that a missing or
unstartable executable is reported the same way everywhere.
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from flowexec.errors import FailureKind, StepFailed, StepOk, StepResult
from flowexec.process import CommandOutcome, ProcessSpawner


class DockerRuntime:
    """
    Invokes the ``docker`` command line (or a compatible executable).

    Attributes
    ----------
    executable : str
        Name or path of the runtime binary.
    spawner : ProcessSpawner
        Spawn primitive used for both blocking and non-blocking invocations.
    logger : logging.Logger
        Diagnostic sink for every step that uses this runtime.
    """

    def __init__(
        self,
        executable: str = "docker",
        spawner: Optional[ProcessSpawner] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.executable = executable
        self.spawner = spawner or ProcessSpawner()
        self.logger = logger or logging.getLogger(__name__)

    def argv(self, *args: str) -> List[str]:
        return [self.executable, *args]

    def invoke(
        self,
        args: Sequence[str],
        *,
        cwd: Optional[Path] = None,
        capture: bool = False,
    ) -> StepResult[CommandOutcome]:
        """
        Run one runtime sub-invocation to completion.

        A non-zero exit is returned as a normal ``CommandOutcome``; only a
        failure to start the executable becomes a ``StepFailed``.
        """
        argv = self.argv(*args)
        try:
            outcome = self.spawner.run_and_wait(argv, cwd=cwd, capture=capture)
        except OSError as exc:
            self.logger.error("Cannot invoke %s: %s", self.executable, exc)
            return StepFailed(
                FailureKind.RUNTIME_UNAVAILABLE,
                f"Cannot invoke container runtime '{self.executable}': {exc}",
            )
        return StepOk(outcome)
