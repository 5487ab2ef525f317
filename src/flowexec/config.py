"""
Read-only typed view over a task's declarative settings.

``TaskConfig`` wraps a nested mapping (as loaded from a task definition) and
hands out scalars, lists and nested sections with explicit types. It never
mutates the underlying data; nested sections are new views over copies.
"""

from __future__ import annotations

import copy
import json
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar

from flowexec.errors import ConfigError

T = TypeVar("T")

_MISSING = object()


def _check_type(key: str, value: Any, expected: Type[Any]) -> Any:
    # bool is a subclass of int; refuse True/False where a number is expected
    if expected in (int, float) and isinstance(value, bool):
        raise ConfigError(
            f"Parameter '{key}' must be {expected.__name__}, got boolean {value!r}"
        )
    if expected is float and isinstance(value, int):
        return float(value)
    if not isinstance(value, expected):
        raise ConfigError(
            f"Parameter '{key}' must be {expected.__name__}, "
            f"got {type(value).__name__} {value!r}"
        )
    return value


class TaskConfig:
    """Typed accessor for a task configuration mapping."""

    def __init__(self, data: Optional[Mapping[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = copy.deepcopy(dict(data or {}))

    def has(self, key: str) -> bool:
        return key in self._data and self._data[key] is not None

    def keys(self) -> List[str]:
        return list(self._data.keys())

    def get(self, key: str, type_: Type[T], default: Any = _MISSING) -> T:
        """
        Return ``key`` as ``type_``.

        Raises
        ------
        ConfigError
            If the key is absent and no default is given, or if the stored
            value has a different type.
        """
        if not self.has(key):
            if default is _MISSING:
                raise ConfigError(f"Parameter '{key}' is required but not set")
            return default
        return _check_type(key, self._data[key], type_)

    def get_optional(self, key: str, type_: Type[T]) -> Optional[T]:
        return self.get(key, type_, None)

    def get_list(self, key: str, item_type: Type[T]) -> List[T]:
        if not self.has(key):
            raise ConfigError(f"Parameter '{key}' is required but not set")
        value = self._data[key]
        if not isinstance(value, (list, tuple)):
            raise ConfigError(
                f"Parameter '{key}' must be a list, got {type(value).__name__}"
            )
        return [
            _check_type(f"{key}[{i}]", item, item_type) for i, item in enumerate(value)
        ]

    def get_nested_or_empty(self, key: str) -> "TaskConfig":
        if not self.has(key):
            return TaskConfig()
        value = self._data[key]
        if not isinstance(value, Mapping):
            raise ConfigError(
                f"Parameter '{key}' must be an object, got {type(value).__name__}"
            )
        return TaskConfig(value)

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TaskConfig):
            return NotImplemented
        return self._data == other._data

    def __repr__(self) -> str:
        return f"TaskConfig({json.dumps(self._data, sort_keys=True, default=str)})"
