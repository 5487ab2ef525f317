"""
Container execution for tasks with a ``docker`` section: image tagging,
availability probing, Dockerfile synthesis and build, pull, and the
``docker run`` launch.
"""

from flowexec.containers.builder import build_image, recipe_path, render_recipe
from flowexec.containers.launcher import build_run_argv, launch_container
from flowexec.containers.probe import image_available, listing_has_image
from flowexec.containers.puller import pull_image
from flowexec.containers.resolve import resolve_image
from flowexec.containers.runtime import DockerRuntime
from flowexec.containers.tags import compute_image_tag

__all__ = [
    "DockerRuntime",
    "build_image",
    "build_run_argv",
    "compute_image_tag",
    "image_available",
    "launch_container",
    "listing_has_image",
    "pull_image",
    "recipe_path",
    "render_recipe",
    "resolve_image",
]
