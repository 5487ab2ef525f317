from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from flowexec.config import TaskConfig
from flowexec.errors import ConfigError


@dataclass(frozen=True)
class TaskRequest:
    """
    One task invocation as seen by the command executor.

    ``effective_revision`` is fixed when the request is created: the given
    revision, or a random identifier when the task runs without one. Image
    tags computed from the same request therefore agree with each other.
    """

    project_id: int
    config: TaskConfig = field(default_factory=TaskConfig, hash=False)
    revision: Optional[str] = None
    attempt_id: Optional[int] = None
    task_name: Optional[str] = None
    effective_revision: str = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        revision = self.revision if self.revision is not None else str(uuid.uuid4())
        object.__setattr__(self, "effective_revision", revision)


class DockerSpec(BaseModel):
    """Parsed ``docker`` section of a task configuration."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    image: str
    build: List[str] = []
    pull_always: bool = False

    @field_validator("image")
    @classmethod
    def _single_line_image(cls, value: str) -> str:
        value = value.replace("\n", "").replace("\r", "")
        if not value.strip():
            raise ValueError("image must not be empty")
        return value

    @property
    def has_build(self) -> bool:
        return bool(self.build)

    @classmethod
    def from_config(cls, docker_config: TaskConfig) -> "DockerSpec":
        """
        Build a spec from the ``docker`` config section.

        Raises
        ------
        ConfigError
            If ``image`` is missing or any key has the wrong type.
        """
        image = docker_config.get("image", str)
        build: List[str] = []
        if docker_config.has("build"):
            build = docker_config.get_list("build", str)
        pull_always = docker_config.get("pull_always", bool, False)
        try:
            return cls(image=image, build=build, pull_always=pull_always)
        except ValidationError as exc:
            raise ConfigError(f"Invalid docker configuration: {exc}") from exc


@dataclass(frozen=True)
class ImageTag:
    """A ``name:digest`` image reference."""

    name: str
    digest: str = ""

    def __str__(self) -> str:
        if not self.digest:
            return self.name
        return f"{self.name}:{self.digest}"

    @property
    def file_safe(self) -> str:
        return str(self).replace(":", ".")
