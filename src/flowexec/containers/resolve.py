"""
Decide which image a containerized task runs in.

-   Build steps configured: compute the content tag, reuse the image when the
    runtime already has it, build it otherwise.
-   No build steps: run the base image as-is, pulling it first when
    ``pull_always`` is set.

Every step completes before this returns; nothing here is retried.
"""

from pathlib import Path
from typing import Union

from flowexec.containers.builder import DEFAULT_RECIPE_DIR, build_image
from flowexec.containers.probe import image_available
from flowexec.containers.puller import pull_image
from flowexec.containers.runtime import DockerRuntime
from flowexec.containers.tags import DEFAULT_PREFIX, compute_image_tag
from flowexec.errors import StepFailed, StepOk, StepResult
from flowexec.models import DockerSpec, TaskRequest


def resolve_image(
    spec: DockerSpec,
    request: TaskRequest,
    project_path: Union[str, Path],
    runtime: DockerRuntime,
    *,
    prefix: str = DEFAULT_PREFIX,
    recipe_dir: str = DEFAULT_RECIPE_DIR,
    probe_strategy: str = "list",
) -> StepResult[str]:
    """Return the image reference to run, building or pulling as needed."""
    if not spec.has_build:
        if spec.pull_always:
            pulled = pull_image(spec.image, runtime)
            if isinstance(pulled, StepFailed):
                return pulled
        return StepOk(spec.image)

    tag = compute_image_tag(spec, request, prefix)
    found = image_available(tag, runtime, probe_strategy)
    if isinstance(found, StepFailed):
        return found
    if found.value:
        runtime.logger.debug("Reusing docker image %s", tag)
        return StepOk(str(tag))

    built = build_image(tag, project_path, spec.image, spec.build, runtime, recipe_dir)
    if isinstance(built, StepFailed):
        return built
    return StepOk(str(built.value))
