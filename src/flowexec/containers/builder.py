"""Synthesize a Dockerfile from build steps and build it."""

from pathlib import Path
from typing import List, Sequence, Union

from flowexec.containers.runtime import DockerRuntime
from flowexec.errors import FailureKind, StepFailed, StepOk, StepResult
from flowexec.models import ImageTag

DEFAULT_RECIPE_DIR = ".digdag/tmp/docker"


def render_recipe(base_image: str, build_steps: Sequence[str]) -> str:
    """
    Render the Dockerfile text for ``base_image`` plus ``build_steps``.

    Every non-blank line of every step becomes its own ``RUN`` instruction,
    in order, so the runtime's per-instruction layer cache is shared by
    images whose steps start the same way. Project files are never copied in;
    they are mounted when the task runs.
    """
    base = base_image.replace("\n", "").replace("\r", "")
    lines: List[str] = [f"FROM {base}"]
    for step in build_steps:
        for line in step.splitlines():
            if line.strip():
                lines.append(f"RUN {line}")
    return "\n".join(lines) + "\n"


def recipe_path(
    workdir: Union[str, Path],
    tag: ImageTag,
    recipe_dir: str = DEFAULT_RECIPE_DIR,
) -> Path:
    return Path(workdir) / recipe_dir / f"Dockerfile.{tag.file_safe}"


def write_recipe(
    workdir: Union[str, Path],
    tag: ImageTag,
    base_image: str,
    build_steps: Sequence[str],
    recipe_dir: str = DEFAULT_RECIPE_DIR,
) -> Path:
    path = recipe_path(workdir, tag, recipe_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_recipe(base_image, build_steps), encoding="utf-8")
    return path


def build_image(
    tag: ImageTag,
    workdir: Union[str, Path],
    base_image: str,
    build_steps: Sequence[str],
    runtime: DockerRuntime,
    recipe_dir: str = DEFAULT_RECIPE_DIR,
) -> StepResult[ImageTag]:
    """
    Build ``tag`` from ``base_image`` and ``build_steps``.

    The recipe is written under ``workdir/recipe_dir`` and ``workdir`` is the
    build context. Build output goes straight to this process's stdout and
    stderr.

    Returns
    -------
    StepResult[ImageTag]
        ``StepOk(tag)`` on success; ``StepFailed`` with kind ``BUILD`` on a
        non-zero exit or when the recipe cannot be written.
    """
    workdir = Path(workdir)
    runtime.logger.info("Building docker image %s", tag)
    try:
        dockerfile = write_recipe(workdir, tag, base_image, build_steps, recipe_dir)
    except OSError as exc:
        runtime.logger.error("Cannot write Dockerfile for %s: %s", tag, exc)
        return StepFailed(FailureKind.BUILD, f"Cannot write Dockerfile: {exc}")

    result = runtime.invoke(
        ["build", "-f", str(dockerfile), "--force-rm", "-t", str(tag), str(workdir)],
        cwd=workdir,
    )
    if isinstance(result, StepFailed):
        return result
    if not result.value.succeeded:
        runtime.logger.error(
            "Docker build of %s failed with exit code %d", tag, result.value.returncode
        )
        return StepFailed(
            FailureKind.BUILD,
            f"Docker build failed with exit code {result.value.returncode}",
        )
    return StepOk(tag)
