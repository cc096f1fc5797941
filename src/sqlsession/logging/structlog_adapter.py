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
"""Log setup for the store: the LoggingPort contract and its structlog implementation."""

from __future__ import annotations

import logging
import sys
from typing import Any, Protocol, runtime_checkable

import structlog

from sqlsession.config import Config

_HANDLER_NAME = "sqlsession-structlog"


@runtime_checkable
class LoggingPort(Protocol):
    """Anything that can render the store's log records and tune per-logger levels."""

    def configure(self, config: Config) -> None: ...
    def get_logger(self, name: str) -> Any: ...
    def set_level(self, name: str, level: str) -> None: ...


class StructlogAdapter:
    """Renders both structlog and stdlib log records through structlog.

    The store modules log with :func:`logging.getLogger`; this adapter installs
    a :class:`structlog.stdlib.ProcessorFormatter` on the root logger so those
    records share the console or JSON rendering chosen in config.

    Config keys:
        ``sqlsession.logging.level.root`` and ``sqlsession.logging.level.<logger>``
        ``sqlsession.logging.format`` (``console`` or ``json``)
    """

    def __init__(self) -> None:
        self._root_level: str = "INFO"
        self._format: str = "console"
        self._module_levels: dict[str, str] = {}

    def configure(self, config: Config) -> None:
        """Configure structlog and the root logger from the logging section of config."""
        level_section = dict(config.get_section("sqlsession.logging.level"))
        self._root_level = str(level_section.pop("root", "INFO")).upper()
        self._module_levels = {k: str(v).upper() for k, v in level_section.items()}
        self._format = str(config.get("sqlsession.logging.format", "console")).lower()

        self._setup_structlog()
        self._apply_levels()

    def get_logger(self, name: str) -> Any:
        """Get a structlog BoundLogger by name."""
        return structlog.get_logger(name)

    def set_level(self, name: str, level: str) -> None:
        """Set the log level for a specific stdlib logger."""
        log_level = getattr(logging, level.upper(), logging.INFO)
        logging.getLogger(name).setLevel(log_level)

    def _renderer(self) -> structlog.types.Processor:
        if self._format == "json":
            return structlog.processors.JSONRenderer()
        return structlog.dev.ConsoleRenderer()

    def _setup_structlog(self) -> None:
        """Configure structlog processors and route stdlib records through them."""
        shared: list[structlog.types.Processor] = [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
        ]
        if self._format == "json":
            shared.append(structlog.processors.format_exc_info)

        structlog.configure(
            processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

        formatter = structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                self._renderer(),
            ],
        )
        handler = logging.StreamHandler(sys.stdout)
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(formatter)

        root = logging.getLogger()
        for existing in list(root.handlers):
            if existing.get_name() == _HANDLER_NAME:
                root.removeHandler(existing)
        root.addHandler(handler)
        root.setLevel(getattr(logging, self._root_level, logging.INFO))

    def _apply_levels(self) -> None:
        """Apply per-logger levels."""
        for module, level in self._module_levels.items():
            self.set_level(module, level)
