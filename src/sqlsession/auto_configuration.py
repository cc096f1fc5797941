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
"""Builds a session store from configuration."""

from __future__ import annotations

from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from sqlsession.config import Config
from sqlsession.schema import DEFAULT_TABLE_NAME
from sqlsession.store import SqliteStore
from sqlsession.sweeper import ExpiredOptions

DEFAULT_URL = "sqlite:///sessions.db"


def connect_args(url: str) -> dict[str, Any]:
    """DBAPI connect arguments for *url*.

    SQLite connections are shared with the sweeper thread, so the driver's
    same-thread check is turned off.
    """
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


def engine_from_config(config: Config) -> Engine:
    """Create an engine for ``sqlsession.url``."""
    url = str(config.get("sqlsession.url", DEFAULT_URL))
    return create_engine(url, connect_args=connect_args(url))


def store_from_config(config: Config, client: Engine | None = None) -> SqliteStore:
    """Build a :class:`SqliteStore` from the ``sqlsession`` config section.

    When *client* is omitted an engine is created from ``sqlsession.url``.
    The sweeper is configured from ``sqlsession.expired``.
    """
    engine = client if client is not None else engine_from_config(config)
    table_name = str(config.get("sqlsession.table-name", DEFAULT_TABLE_NAME))
    expired = config.bind(ExpiredOptions)
    return SqliteStore(client=engine, expired=expired, table_name=table_name)
