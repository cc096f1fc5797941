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
"""SQL-backed session store with TTL expiry and an optional background sweeper."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, NamedTuple

from sqlalchemy import Table, delete, func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from sqlsession import codec
from sqlsession.exceptions import ConfigurationException, SessionStoreException, StorageException
from sqlsession.ports.outbound import Callback
from sqlsession.schema import DEFAULT_TABLE_NAME, ensure_schema, session_table
from sqlsession.sweeper import Clock, ExpiredOptions, ExpirySweeper, utc_now
from sqlsession.ttl import session_expiry

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


@dataclass(frozen=True)
class SessionRecord:
    """A stored session row with its payload decoded."""

    sid: str
    sess: Any
    expire: datetime


class _Outcome(NamedTuple):
    error: SessionStoreException | None
    result: Any


class SqliteStore:
    """Session store persisting records in a ``sid``/``sess``/``expire`` table.

    Every operation accepts an optional ``callback(error, result)``. The
    operation always runs to completion; storage and input failures are
    delivered through the callback's error slot and never raised, so calling
    any operation without a callback is safe.

    Reads treat a record whose ``expire`` has passed as absent even before the
    sweeper physically removes it.

    Args:
        client: SQLAlchemy engine the table lives in. Required.
        expired: Sweeper options, as :class:`ExpiredOptions` or a mapping with
            ``clear``/``intervalMs``/``unrefInterval``. ``None`` disables it.
        table_name: Name of the session table.
        clock: Returns the current aware datetime; defaults to UTC wall time.

    Raises:
        ConfigurationException: If *client* is missing or sweeper options are invalid.
        StorageException: If the session table cannot be provisioned.
    """

    def __init__(
        self,
        client: Engine | None = None,
        expired: ExpiredOptions | Mapping[str, Any] | None = None,
        table_name: str = DEFAULT_TABLE_NAME,
        clock: Clock | None = None,
    ) -> None:
        if client is None:
            raise ConfigurationException(
                "A storage client (SQLAlchemy Engine) is required",
                code="MISSING_CLIENT",
            )
        self._client = client
        self._clock: Clock = clock or utc_now
        self._table: Table = session_table(table_name)
        ensure_schema(client, self._table)

        self._sweeper: ExpirySweeper | None = None
        options = self._expired_options(expired)
        if options is not None and options.clear:
            self._sweeper = ExpirySweeper(
                client,
                self._table,
                interval_ms=options.interval_ms,
                keep_alive=not options.unref_interval,
                clock=self._clock,
            )
            self._sweeper.start()

    @staticmethod
    def _expired_options(expired: ExpiredOptions | Mapping[str, Any] | None) -> ExpiredOptions | None:
        if expired is None or isinstance(expired, ExpiredOptions):
            return expired
        if isinstance(expired, Mapping):
            return ExpiredOptions.from_mapping(expired)
        raise ConfigurationException(
            f"'expired' must be ExpiredOptions or a mapping, got {type(expired).__name__}",
            code="INVALID_EXPIRED_OPTIONS",
        )

    @property
    def table(self) -> Table:
        return self._table

    @property
    def sweeper(self) -> ExpirySweeper | None:
        return self._sweeper

    # ------------------------------------------------------------------
    # Session store operations
    # ------------------------------------------------------------------

    def get(self, sid: str, callback: Callback | None = None) -> None:
        """Report the live session for *sid*, or ``None`` if absent or expired."""

        def work() -> Any:
            now = codec.format_instant(self._clock())
            stmt = select(self._table.c.sess).where(
                self._table.c.sid == sid,
                self._table.c.expire > now,
            )
            with self._client.connect() as conn:
                raw = conn.execute(stmt).scalar_one_or_none()
            return None if raw is None else codec.decode(raw)

        self._dispatch("get", work, callback)

    def set(self, sid: str, sess: dict[str, Any], callback: Callback | None = None) -> None:
        """Insert or replace the session for *sid*, recomputing its expiry."""

        def work() -> bool:
            expire = codec.format_instant(session_expiry(sess, self._clock()))
            payload = codec.encode(sess)
            with self._client.begin() as conn:
                conn.execute(self._upsert(sid, payload, expire))
            return True

        self._dispatch("set", work, callback)

    def touch(self, sid: str, sess: dict[str, Any] | None, callback: Callback | None = None) -> None:
        """Refresh the expiry of a live session from *sess*'s cookie.

        Absent or already-expired sessions are left alone and the call still
        succeeds. The stored payload is never rewritten.
        """

        def work() -> bool:
            now = self._clock()
            expire = codec.format_instant(session_expiry(sess, now))
            stmt = (
                update(self._table)
                .where(
                    self._table.c.sid == sid,
                    self._table.c.expire > codec.format_instant(now),
                )
                .values(expire=expire)
            )
            with self._client.begin() as conn:
                conn.execute(stmt)
            return True

        self._dispatch("touch", work, callback)

    def destroy(self, sid: str, callback: Callback | None = None) -> None:
        """Delete the session for *sid*; a missing session is not an error."""

        def work() -> bool:
            with self._client.begin() as conn:
                conn.execute(delete(self._table).where(self._table.c.sid == sid))
            return True

        self._dispatch("destroy", work, callback)

    def clear(self, callback: Callback | None = None) -> None:
        """Delete every session."""

        def work() -> bool:
            with self._client.begin() as conn:
                conn.execute(delete(self._table))
            return True

        self._dispatch("clear", work, callback)

    def length(self, callback: Callback | None = None) -> None:
        """Report the number of stored sessions, expired ones included."""

        def work() -> int:
            with self._client.connect() as conn:
                return int(conn.execute(select(func.count()).select_from(self._table)).scalar_one())

        self._dispatch("length", work, callback)

    def all(self, callback: Callback | None = None) -> None:
        """Report every stored session as :class:`SessionRecord`, expired ones included."""

        def work() -> list[SessionRecord]:
            t = self._table
            with self._client.connect() as conn:
                rows = conn.execute(select(t.c.sid, t.c.sess, t.c.expire)).all()
            return [
                SessionRecord(sid=row.sid, sess=codec.decode(row.sess), expire=codec.parse_instant(row.expire))
                for row in rows
            ]

        self._dispatch("all", work, callback)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Tear the store down, stopping its sweeper. The engine is left open."""
        if self._sweeper is not None:
            self._sweeper.stop()

    def __enter__(self) -> SqliteStore:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _upsert(self, sid: str, payload: str, expire: str) -> Any:
        dialect = self._client.dialect.name
        insert = _UPSERT_DIALECTS.get(dialect)
        if insert is None:
            raise StorageException(
                f"Upsert is not supported for dialect '{dialect}'",
                code="UNSUPPORTED_DIALECT",
                context={"dialect": dialect},
            )
        stmt = insert(self._table).values(sid=sid, sess=payload, expire=expire)
        return stmt.on_conflict_do_update(
            index_elements=[self._table.c.sid],
            set_={"sess": stmt.excluded.sess, "expire": stmt.excluded.expire},
        )

    def _dispatch(self, operation: str, work: Callable[[], Any], callback: Callback | None) -> None:
        """Run *work*, capture its outcome, then hand it to *callback* if present."""
        outcome = self._run(operation, work)
        if callback is not None:
            callback(outcome.error, outcome.result)

    def _run(self, operation: str, work: Callable[[], Any]) -> _Outcome:
        try:
            return _Outcome(None, work())
        except SessionStoreException as exc:
            error: SessionStoreException = exc
        except SQLAlchemyError as exc:
            error = StorageException(
                f"Session store '{operation}' failed: {exc}",
                code="STORAGE_ERROR",
                context={"operation": operation, "table": self._table.name},
            )
            error.__cause__ = exc
        logger.debug("Session store '%s' failed: %s", operation, error)
        return _Outcome(error, None)
