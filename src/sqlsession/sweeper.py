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
"""Expiry sweeper — background thread that bulk-deletes expired sessions."""

from __future__ import annotations

import logging
import math
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from sqlalchemy import Table, delete
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from sqlsession.codec import format_instant
from sqlsession.config import config_properties
from sqlsession.exceptions import ConfigurationException

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

DEFAULT_INTERVAL_MS = 900_000  # 15 minutes


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@config_properties(prefix="sqlsession.expired")
@dataclass(frozen=True)
class ExpiredOptions:
    """Sweeper settings.

    Attributes:
        clear: Run the sweeper at all.
        interval_ms: Milliseconds between sweeps.
        unref_interval: Let the interpreter exit while the sweeper is idle.
    """

    clear: bool = False
    interval_ms: float = DEFAULT_INTERVAL_MS
    unref_interval: bool = False

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> ExpiredOptions:
        """Build options from ``clear``/``intervalMs``/``unrefInterval`` keys (or snake_case)."""

        def pick(camel: str, snake: str, default: Any) -> Any:
            if camel in options:
                return options[camel]
            return options.get(snake, default)

        return cls(
            clear=bool(pick("clear", "clear", False)),
            interval_ms=pick("intervalMs", "interval_ms", DEFAULT_INTERVAL_MS),
            unref_interval=bool(pick("unrefInterval", "unref_interval", False)),
        )


class SweeperState(StrEnum):
    """Lifecycle state of an :class:`ExpirySweeper`."""

    DISABLED = "DISABLED"
    ARMED = "ARMED"
    SWEEPING = "SWEEPING"
    STOPPED = "STOPPED"


class ExpirySweeper:
    """Deletes every session whose ``expire`` is at or before now, on a fixed interval.

    The sweep runs on its own thread. ``keep_alive=False`` makes it a daemon
    thread, so a pending sweep never holds up interpreter shutdown. Failed
    sweeps are logged and skipped; the next tick tries again.

    Usage::

        sweeper = ExpirySweeper(engine, table, interval_ms=60_000)
        sweeper.start()
        # ... application runs ...
        sweeper.stop()
    """

    def __init__(
        self,
        client: Engine,
        table: Table,
        interval_ms: float,
        keep_alive: bool = True,
        clock: Clock | None = None,
    ) -> None:
        if (
            isinstance(interval_ms, bool)
            or not isinstance(interval_ms, (int, float))
            or not math.isfinite(interval_ms)
            or interval_ms <= 0
        ):
            raise ConfigurationException(
                f"Sweeper interval must be a positive number of milliseconds, got {interval_ms!r}",
                code="INVALID_INTERVAL",
                context={"interval_ms": interval_ms},
            )
        self._client = client
        self._table = table
        self._interval = interval_ms / 1000.0
        self._keep_alive = keep_alive
        self._clock: Clock = clock or utc_now
        self._stopped = threading.Event()
        self._thread: threading.Thread | None = None
        self._state = SweeperState.DISABLED

    @property
    def state(self) -> SweeperState:
        return self._state

    @property
    def interval_ms(self) -> float:
        return self._interval * 1000.0

    @property
    def daemon(self) -> bool:
        """``True`` when the sweeper does not keep the interpreter alive."""
        return not self._keep_alive

    def start(self) -> None:
        """Arm the sweeper. Calling it again while armed has no effect."""
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._run,
            name=f"sqlsession-sweeper-{self._table.name}",
            daemon=not self._keep_alive,
        )
        self._state = SweeperState.ARMED
        self._thread.start()
        logger.debug(
            "Expiry sweeper armed for '%s' every %.0f ms (daemon=%s)",
            self._table.name,
            self.interval_ms,
            self.daemon,
        )

    def stop(self, timeout: float | None = None) -> None:
        """Stop the sweeper and wait for an in-flight sweep to finish."""
        self._stopped.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._state = SweeperState.STOPPED

    def sweep_once(self) -> int:
        """Delete expired sessions now. Returns the number of rows removed, ``0`` on failure."""
        previous = self._state
        self._state = SweeperState.SWEEPING
        try:
            stmt = delete(self._table).where(self._table.c.expire <= format_instant(self._clock()))
            with self._client.begin() as conn:
                removed = conn.execute(stmt).rowcount
        except SQLAlchemyError as exc:
            logger.warning("Expiry sweep on '%s' failed: %s", self._table.name, exc)
            return 0
        finally:
            if self._state is SweeperState.SWEEPING:
                self._state = previous
        logger.debug("Expiry sweep removed %d session(s) from '%s'", removed, self._table.name)
        return max(removed, 0)

    def _run(self) -> None:
        """Loop: wait one interval, sweep, repeat until stopped."""
        while not self._stopped.wait(self._interval):
            try:
                self.sweep_once()
            except Exception as exc:  # noqa: BLE001
                logger.warning("Expiry sweep on '%s' raised: %s", self._table.name, exc, exc_info=exc)
