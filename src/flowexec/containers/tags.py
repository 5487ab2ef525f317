"""
Content-addressed image tags.

The tag of a built image is ``<prefix>-project-<project_id>:<digest>``. The
digest hashes the base image, the build steps (in order) and the revision, so
identical inputs reuse one image and any change yields a new one. The project
id lives in the name rather than the digest: a project can only ever pick up
images tagged under its own name, even if it reproduces another project's
build content.
"""

import hashlib
import json
from typing import Any, Dict, List

from flowexec.errors import ConfigError
from flowexec.models import DockerSpec, ImageTag, TaskRequest

DEFAULT_PREFIX = "digdag"


def canonical_build_payload(image: str, build: List[str], revision: str) -> str:
    payload: Dict[str, Any] = {
        "image": image,
        "build": list(build),
        "revision": revision,
    }
    return json.dumps(payload, sort_keys=True, separators=(",", ":"))


def image_name_for_project(project_id: int, prefix: str = DEFAULT_PREFIX) -> str:
    return f"{prefix}-project-{project_id}"


def compute_image_tag(
    spec: DockerSpec, request: TaskRequest, prefix: str = DEFAULT_PREFIX
) -> ImageTag:
    """
    Compute the tag for the image built from ``spec`` for ``request``.

    Parameters
    ----------
    spec : DockerSpec
        Base image and build steps.
    request : TaskRequest
        Supplies the project id and the effective revision.
    prefix : str, default "digdag"
        Leading component of the image name.

    Returns
    -------
    ImageTag
        ``name`` from the project, ``digest`` as lowercase SHA-256 hex.
    """
    if not spec.image.strip():
        raise ConfigError("docker.image must not be empty")
    canonical = canonical_build_payload(
        spec.image, spec.build, request.effective_revision
    )
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
    return ImageTag(name=image_name_for_project(request.project_id, prefix), digest=digest)
