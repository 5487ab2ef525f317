"""
flowexec/process.py

Process launch description and the spawn primitive.

``ProcessSpawner`` exposes two separate capabilities so each call site states
its synchronization contract:

-   ``run_and_wait``: start a command and block until it exits. Used for the
    container runtime's ``images``/``build``/``pull`` sub-invocations.
-   ``spawn``: start a command and return the live ``subprocess.Popen``
    handle immediately. Used for the task's own process.
"""

from __future__ import annotations

import logging
import os
import subprocess
from contextlib import ExitStack
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import IO, Any, Dict, List, Optional, Sequence, Union

logger = logging.getLogger(__name__)


class RedirectKind(str, Enum):
    INHERIT = "inherit"
    PIPE = "pipe"
    FILE = "file"
    DISCARD = "discard"


@dataclass(frozen=True)
class Redirect:
    """Where one standard stream of a spawned process goes."""

    kind: RedirectKind = RedirectKind.INHERIT
    path: Optional[Path] = None
    append: bool = False

    def __post_init__(self) -> None:
        if self.kind is RedirectKind.FILE and self.path is None:
            raise ValueError("A file redirect requires a path")

    @classmethod
    def inherit(cls) -> "Redirect":
        return cls(RedirectKind.INHERIT)

    @classmethod
    def pipe(cls) -> "Redirect":
        return cls(RedirectKind.PIPE)

    @classmethod
    def discard(cls) -> "Redirect":
        return cls(RedirectKind.DISCARD)

    @classmethod
    def to_file(cls, path: Union[str, Path], append: bool = False) -> "Redirect":
        return cls(RedirectKind.FILE, Path(path), append)


@dataclass
class ProcessSpec:
    """
    Fully resolved description of one process launch.

    Attributes
    ----------
    command : List[str]
        Non-empty argument vector; never re-interpreted by a shell.
    environment : Dict[str, str]
        Variables set for the task. Inside a container these are the only
        injected variables; on the host they are layered over the current
        environment when ``inherit_environment`` is true.
    working_dir : Optional[Path]
        Directory the command runs in. ``None`` means the caller's default.
    stdin, stdout, stderr : Redirect
        Stream targets.
    merge_stderr : bool
        Fold stderr into stdout (``stderr`` is then ignored).
    """

    command: List[str]
    environment: Dict[str, str] = field(default_factory=dict)
    working_dir: Optional[Path] = None
    stdin: Redirect = field(default_factory=Redirect.inherit)
    stdout: Redirect = field(default_factory=Redirect.inherit)
    stderr: Redirect = field(default_factory=Redirect.inherit)
    merge_stderr: bool = False
    inherit_environment: bool = True

    def __post_init__(self) -> None:
        if not self.command:
            raise ValueError("ProcessSpec.command must not be empty")


@dataclass(frozen=True)
class CommandOutcome:
    """Exit status of a command run to completion."""

    returncode: int
    output: str = ""

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0


def _open_target(
    redirect: Redirect, stack: ExitStack, *, for_input: bool
) -> Union[None, int, IO[Any]]:
    if redirect.kind is RedirectKind.INHERIT:
        return None
    if redirect.kind is RedirectKind.PIPE:
        return subprocess.PIPE
    if redirect.kind is RedirectKind.DISCARD:
        return subprocess.DEVNULL
    assert redirect.path is not None
    if for_input:
        return stack.enter_context(open(redirect.path, "rb"))
    redirect.path.parent.mkdir(parents=True, exist_ok=True)
    mode = "ab" if redirect.append else "wb"
    return stack.enter_context(open(redirect.path, mode))


class ProcessSpawner:
    """Thin wrapper over ``subprocess`` with explicit wait/no-wait entry points."""

    def run_and_wait(
        self,
        argv: Sequence[str],
        *,
        cwd: Optional[Path] = None,
        capture: bool = False,
    ) -> CommandOutcome:
        """
        Run ``argv`` and block until it exits.

        Parameters
        ----------
        argv : Sequence[str]
            Command to run.
        cwd : Optional[Path]
            Working directory.
        capture : bool, default False
            When true, stdout and stderr are merged and returned in
            ``CommandOutcome.output``. Otherwise both streams are inherited so
            the operator sees the output live.

        Raises
        ------
        OSError
            If the executable cannot be started.
        """
        logger.debug("run_and_wait: %s", " ".join(argv))
        if capture:
            completed = subprocess.run(
                list(argv),
                cwd=cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                check=False,
            )
            return CommandOutcome(completed.returncode, completed.stdout or "")
        completed = subprocess.run(list(argv), cwd=cwd, check=False)
        return CommandOutcome(completed.returncode)

    def spawn(
        self,
        argv: Sequence[str],
        *,
        cwd: Optional[Path],
        env: Optional[Dict[str, str]],
        stdin: Redirect,
        stdout: Redirect,
        stderr: Redirect,
        merge_stderr: bool = False,
    ) -> subprocess.Popen:
        """
        Start ``argv`` and return as soon as the process exists.

        File targets are opened here and closed in this process once the child
        holds its own descriptors.

        Raises
        ------
        OSError
            If the executable cannot be started or a redirect file cannot be
            opened.
        """
        # argv may carry environment values; keep them out of the log
        logger.debug("spawn: %s (%d args)", argv[0], len(argv))
        with ExitStack() as stack:
            stdin_target = _open_target(stdin, stack, for_input=True)
            stdout_target = _open_target(stdout, stack, for_input=False)
            if merge_stderr:
                stderr_target: Union[None, int, IO[Any]] = subprocess.STDOUT
            else:
                stderr_target = _open_target(stderr, stack, for_input=False)
            return subprocess.Popen(
                list(argv),
                cwd=cwd,
                env=env,
                stdin=stdin_target,
                stdout=stdout_target,
                stderr=stderr_target,
            )


def host_environment(spec: ProcessSpec) -> Dict[str, str]:
    """Environment for a host process launched from ``spec``."""
    if spec.inherit_environment:
        env = dict(os.environ)
        env.update(spec.environment)
        return env
    return dict(spec.environment)
