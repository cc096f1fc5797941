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
"""Session table definition and idempotent provisioning."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import Column, MetaData, Table, Text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.types import UserDefinedType

from sqlsession.exceptions import StorageException

logger = logging.getLogger(__name__)

DEFAULT_TABLE_NAME = "sessions"


class JSONText(UserDefinedType):
    """Column declared as ``JSON`` whose values are already-encoded JSON text."""

    cache_ok = True

    def get_col_spec(self, **kw: Any) -> str:
        return "JSON"


def session_table(name: str = DEFAULT_TABLE_NAME, metadata: MetaData | None = None) -> Table:
    """Build the three-column session table: ``sid``, ``sess``, ``expire``."""
    return Table(
        name,
        metadata if metadata is not None else MetaData(),
        Column("sid", Text, primary_key=True),
        Column("sess", JSONText(), nullable=False),
        Column("expire", Text, nullable=False),
    )


def ensure_schema(engine: Engine, table: Table) -> None:
    """Create *table* unless it already exists.

    Raises:
        StorageException: If the engine fails to inspect or create the table.
    """
    try:
        table.create(bind=engine, checkfirst=True)
    except SQLAlchemyError as exc:
        raise StorageException(
            f"Failed to provision session table '{table.name}': {exc}",
            code="SCHEMA_ERROR",
            context={"table": table.name},
        ) from exc
    logger.debug("Session table '%s' is ready", table.name)
