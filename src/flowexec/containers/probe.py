"""
Check whether the runtime already holds an image locally.

The default strategy reads ``docker images`` and looks for a row whose
REPOSITORY and TAG columns equal the tag's name and digest. Matching the two
columns as separate tokens avoids treating ``abc`` as present when only
``abcdef`` is listed. The ``inspect`` strategy asks the runtime directly with
``docker image inspect`` and has the same observable contract.
"""

from typing import Optional

from flowexec.containers.runtime import DockerRuntime
from flowexec.errors import FailureKind, StepFailed, StepOk, StepResult
from flowexec.models import ImageTag


def listing_has_image(listing: str, tag: ImageTag) -> bool:
    """Return True if a row of ``docker images`` output names ``tag``."""
    wanted_tag = tag.digest or "latest"
    for line in listing.splitlines():
        columns = line.split()
        if len(columns) < 2:
            continue
        if columns[0] == tag.name and columns[1] == wanted_tag:
            return True
    return False


def _probe_listing(tag: ImageTag, runtime: DockerRuntime) -> StepResult[bool]:
    result = runtime.invoke(["images"], capture=True)
    if isinstance(result, StepFailed):
        return result
    outcome = result.value
    if not outcome.succeeded:
        detail = outcome.output.strip() or f"exit code {outcome.returncode}"
        runtime.logger.error("Listing docker images failed: %s", detail)
        return StepFailed(
            FailureKind.PROBE, f"Listing docker images failed: {detail}"
        )
    return StepOk(listing_has_image(outcome.output, tag))


def _probe_inspect(tag: ImageTag, runtime: DockerRuntime) -> StepResult[bool]:
    result = runtime.invoke(["image", "inspect", str(tag)], capture=True)
    if isinstance(result, StepFailed):
        return result
    return StepOk(result.value.succeeded)


def image_available(
    tag: ImageTag, runtime: DockerRuntime, strategy: Optional[str] = "list"
) -> StepResult[bool]:
    """
    Report whether ``tag`` exists in the runtime's local image store.

    Parameters
    ----------
    tag : ImageTag
        Image to look for.
    runtime : DockerRuntime
        Runtime to query.
    strategy : str, default "list"
        ``"list"`` parses ``docker images``; ``"inspect"`` uses
        ``docker image inspect``.

    Returns
    -------
    StepResult[bool]
        ``StepOk(True/False)``, or ``StepFailed`` with kind ``PROBE`` when the
        listing exits abnormally, ``RUNTIME_UNAVAILABLE`` when the runtime
        cannot be started, ``CONFIG`` for an unknown strategy.
    """
    if strategy == "inspect":
        found = _probe_inspect(tag, runtime)
    elif strategy in (None, "list"):
        found = _probe_listing(tag, runtime)
    else:
        runtime.logger.error("Unknown probe strategy: %s", strategy)
        return StepFailed(
            FailureKind.CONFIG,
            f"Unknown probe strategy '{strategy}'; expected 'list' or 'inspect'",
        )
    if isinstance(found, StepOk):
        runtime.logger.debug(
            "Image %s is %s", tag, "present" if found.value else "absent"
        )
    return found
