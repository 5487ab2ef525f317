"""
flowexec Command Line Interface (CLI)

Runs a single task command the way the workflow engine would (on the host or
in a container, depending on the task's ``docker`` section), shows the image
tag and Dockerfile a task would use, and asks a workflow server to kill a
running session attempt.

A task file is JSON::

    {"project_id": 7, "revision": "r1", "config": {"docker": {"image": "ubuntu:20.04"}}}
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax

from flowexec.client import ControlClient, ControlClientError
from flowexec.config import TaskConfig
from flowexec.containers.builder import render_recipe
from flowexec.containers.tags import compute_image_tag
from flowexec.errors import CommandExecutionError, ConfigError
from flowexec.executors import DockerCommandExecutor
from flowexec.models import DockerSpec, TaskRequest
from flowexec.process import ProcessSpec
from flowexec.settings import FlowexecSettings

app = typer.Typer(rich_markup_mode="markdown")
console = Console()
err_console = Console(stderr=True)


@app.callback()
def main(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show debug logging."
    ),
) -> None:
    """Execute workflow task commands on the host or in containers."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )


def load_task_request(task_file: Path) -> TaskRequest:
    """Read a task JSON file into a ``TaskRequest``."""
    try:
        payload: Any = json.loads(task_file.read_text(encoding="utf-8"))
    except FileNotFoundError:
        err_console.print(f"[red]Task file not found: {task_file}[/red]")
        raise typer.Exit(1)
    except OSError as exc:
        err_console.print(f"[red]Cannot read task file {task_file}: {exc}[/red]")
        raise typer.Exit(1)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        err_console.print(f"[red]Task file is not valid JSON: {exc}[/red]")
        raise typer.Exit(1)

    if not isinstance(payload, dict):
        err_console.print("[red]Task file must contain a JSON object[/red]")
        raise typer.Exit(1)

    project_id = payload.get("project_id")
    if not isinstance(project_id, int) or isinstance(project_id, bool):
        err_console.print("[red]Task file needs an integer 'project_id'[/red]")
        raise typer.Exit(1)
    config = payload.get("config") or {}
    if not isinstance(config, dict):
        err_console.print("[red]'config' must be an object[/red]")
        raise typer.Exit(1)
    return TaskRequest(
        project_id=project_id,
        config=TaskConfig(config),
        revision=payload.get("revision"),
        attempt_id=payload.get("attempt_id"),
        task_name=payload.get("task_name"),
    )


def _docker_spec(request: TaskRequest) -> DockerSpec:
    if not request.config.has("docker"):
        err_console.print("[yellow]Task has no docker section.[/yellow]")
        raise typer.Exit(1)
    try:
        return DockerSpec.from_config(request.config.get_nested_or_empty("docker"))
    except ConfigError as exc:
        err_console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)


def exit_status(returncode: int) -> int:
    """Shell-style exit status: a child killed by signal N exits 128 + N."""
    if returncode < 0:
        return 128 - returncode
    return returncode


def _parse_env(pairs: Optional[List[str]]) -> Dict[str, str]:
    env: Dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            err_console.print(f"[red]Expected KEY=VALUE, got '{pair}'[/red]")
            raise typer.Exit(2)
        env[key] = value
    return env


@app.command("exec")
def exec_command(
    task_file: Path = typer.Argument(..., help="Task definition (JSON)."),
    command: List[str] = typer.Argument(..., help="Command and arguments to run."),
    project_dir: Path = typer.Option(
        Path("."), "--project-dir", help="Project root, mounted into containers."
    ),
    cwd: Optional[Path] = typer.Option(
        None, "--cwd", help="Working directory of the command (default: project root)."
    ),
    env: Optional[List[str]] = typer.Option(
        None, "--env", "-e", help="Environment variable KEY=VALUE. Repeatable."
    ),
) -> None:
    """
    Run COMMAND for the task and exit with its status.

    Use `--` before the command when it has options of its own.
    """
    request = load_task_request(task_file)
    project = project_dir.resolve()
    spec = ProcessSpec(
        command=list(command),
        environment=_parse_env(env),
        working_dir=(cwd.resolve() if cwd else project),
    )
    executor = DockerCommandExecutor(settings=FlowexecSettings.from_env())
    try:
        process = executor.start(project, request, spec)
    except CommandExecutionError as exc:
        err_console.print(f"[red]Execution failed ({exc.kind.value}): {exc.message}[/red]")
        raise typer.Exit(1)
    raise typer.Exit(exit_status(process.wait()))


@app.command("image-tag")
def image_tag(
    task_file: Path = typer.Argument(..., help="Task definition (JSON)."),
) -> None:
    """Print the image tag a task with build steps runs in."""
    request = load_task_request(task_file)
    spec = _docker_spec(request)
    if not spec.has_build:
        err_console.print(
            f"[yellow]No build steps; the task runs {spec.image} directly.[/yellow]"
        )
        raise typer.Exit(1)
    if request.revision is None:
        err_console.print(
            "[yellow]No revision in task file; the tag uses a random revision.[/yellow]"
        )
    settings = FlowexecSettings.from_env()
    typer.echo(str(compute_image_tag(spec, request, settings.image_prefix)))


@app.command()
def recipe(
    task_file: Path = typer.Argument(..., help="Task definition (JSON)."),
) -> None:
    """Show the Dockerfile generated for a task's build steps."""
    request = load_task_request(task_file)
    spec = _docker_spec(request)
    console.print(Syntax(render_recipe(spec.image, spec.build), "docker"))


@app.command()
def kill(
    attempt_id: int = typer.Argument(..., help="Session attempt to kill."),
    endpoint: Optional[str] = typer.Option(
        None, "--endpoint", "-e", help="Server URL (default: $FLOWEXEC_ENDPOINT)."
    ),
) -> None:
    """Request that a running session attempt be killed."""
    settings = FlowexecSettings.from_env()
    url = endpoint or settings.endpoint
    try:
        with ControlClient(url, timeout_seconds=settings.http_timeout_seconds) as client:
            client.kill_attempt(attempt_id)
    except ControlClientError as exc:
        err_console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)
    typer.echo(f"Kill requested for session attempt {attempt_id}")


if __name__ == "__main__":
    app()
