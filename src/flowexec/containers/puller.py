from flowexec.containers.runtime import DockerRuntime
from flowexec.errors import FailureKind, StepFailed, StepOk, StepResult


def pull_image(image: str, runtime: DockerRuntime) -> StepResult[str]:
    """Pull ``image`` with output streamed to the console."""
    runtime.logger.info("Pulling docker image %s", image)
    result = runtime.invoke(["pull", image])
    if isinstance(result, StepFailed):
        return result
    if not result.value.succeeded:
        runtime.logger.error(
            "Docker pull of %s failed with exit code %d", image, result.value.returncode
        )
        return StepFailed(
            FailureKind.PULL,
            f"Docker pull failed with exit code {result.value.returncode}",
        )
    return StepOk(image)
