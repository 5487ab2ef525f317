from __future__ import annotations

import os
from dataclasses import dataclass

PROBE_STRATEGIES = ("list", "inspect")


def _env_str(name: str, default: str) -> str:
    raw = os.getenv(name, "")
    if raw.strip() == "":
        return default
    return raw.strip()


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "")
    if raw == "":
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


def _env_choice(name: str, default: str, choices: tuple[str, ...]) -> str:
    value = _env_str(name, default).lower()
    if value not in choices:
        return default
    return value


@dataclass(frozen=True)
class FlowexecSettings:
    docker_executable: str = "docker"
    image_prefix: str = "digdag"
    recipe_dir: str = ".digdag/tmp/docker"
    probe_strategy: str = "list"
    endpoint: str = "http://127.0.0.1:65432"
    http_timeout_seconds: float = 30.0

    @classmethod
    def from_env(cls) -> "FlowexecSettings":
        return cls(
            docker_executable=_env_str("FLOWEXEC_DOCKER_BIN", "docker"),
            image_prefix=_env_str("FLOWEXEC_IMAGE_PREFIX", "digdag"),
            recipe_dir=_env_str("FLOWEXEC_RECIPE_DIR", ".digdag/tmp/docker"),
            probe_strategy=_env_choice(
                "FLOWEXEC_PROBE_STRATEGY", "list", PROBE_STRATEGIES
            ),
            endpoint=_env_str("FLOWEXEC_ENDPOINT", "http://127.0.0.1:65432"),
            http_timeout_seconds=_env_float("FLOWEXEC_HTTP_TIMEOUT", 30.0),
        )
