# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Store settings read from a YAML or TOML file, overridable by ``SQLSESSION_*`` env vars."""

from __future__ import annotations

import dataclasses
import os
import tomllib
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar, get_type_hints

import yaml  # type: ignore[import-untyped]

from sqlsession.exceptions import ConfigurationException

T = TypeVar("T")

_SETTINGS_PREFIX_ATTR = "__sqlsession_settings_prefix__"

_ENV_PREFIX = "SQLSESSION_"

_TRUE_WORDS = frozenset({"true", "1", "yes", "on"})


def config_properties(prefix: str) -> Callable[[type[T]], type[T]]:
    """Attach a settings prefix to a dataclass so :meth:`Config.bind` can fill it.

    Usage:
        @config_properties(prefix="sqlsession.expired")
        @dataclass
        class ExpiredOptions:
            clear: bool = False
    """

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, _SETTINGS_PREFIX_ATTR, prefix)
        return cls

    return decorator


def env_key(key: str) -> str:
    """Map a settings key to its environment variable.

    ``sqlsession.expired.interval-ms`` becomes ``SQLSESSION_EXPIRED_INTERVAL_MS``.
    """
    return _ENV_PREFIX + key.removeprefix("sqlsession.").upper().replace(".", "_").replace("-", "_")


class Config:
    """Nested store settings with dot-notation lookup.

    An environment variable named by :func:`env_key` beats the file value,
    which beats the dataclass default.
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = data or {}

    @classmethod
    def from_file(cls, path: str | Path) -> Config:
        """Read settings from *path* (``.toml``, else YAML). A missing file gives empty settings."""
        path = Path(path)
        if not path.exists():
            return cls()
        if path.suffix == ".toml":
            with open(path, "rb") as f:
                return cls(tomllib.load(f))
        with open(path) as f:
            return cls(yaml.safe_load(f) or {})

    def get(self, key: str, default: Any = None) -> Any:
        env_val = os.environ.get(env_key(key))
        if env_val is not None:
            return env_val
        current: Any = self._data
        for part in key.split("."):
            if not isinstance(current, dict) or current.get(part) is None:
                return default
            current = current[part]
        return current

    def get_section(self, prefix: str) -> dict[str, Any]:
        """Return the nested mapping under *prefix*, or ``{}``."""
        section = self.get(prefix)
        return section if isinstance(section, dict) else {}

    def bind(self, settings_cls: type[T]) -> T:
        """Build a ``@config_properties`` dataclass from the settings under its prefix.

        Keys may use ``_`` or ``-``. String values, such as env overrides, are
        coerced to the field's ``int``/``float``/``bool`` type.

        Raises:
            ConfigurationException: If the class has no prefix or a value cannot be coerced.
        """
        prefix = getattr(settings_cls, _SETTINGS_PREFIX_ATTR, None)
        if prefix is None:
            raise ConfigurationException(
                f"{settings_cls.__name__} is not decorated with @config_properties",
                code="UNBOUND_SETTINGS",
            )

        hints = get_type_hints(settings_cls)
        kwargs: dict[str, Any] = {}
        for field in dataclasses.fields(settings_cls):  # type: ignore[arg-type]
            key = next(
                (
                    f"{prefix}.{name}"
                    for name in (field.name, field.name.replace("_", "-"))
                    if self.get(f"{prefix}.{name}") is not None
                ),
                None,
            )
            if key is None:
                continue
            kwargs[field.name] = _coerce(key, self.get(key), hints.get(field.name))
        return settings_cls(**kwargs)


def _coerce(key: str, value: Any, expected: Any) -> Any:
    if not isinstance(value, str) or expected not in (int, float, bool):
        return value
    if expected is bool:
        return value.strip().lower() in _TRUE_WORDS
    try:
        return expected(value)
    except ValueError as exc:
        raise ConfigurationException(
            f"Setting '{key}' must be {expected.__name__}, got {value!r}",
            code="INVALID_SETTING",
            context={"key": key, "value": value},
        ) from exc
