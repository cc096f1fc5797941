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
"""sqlsession — SQL-backed session store with TTL expiry.

Quick start::

    from sqlalchemy import create_engine
    from sqlsession import SqliteStore

    engine = create_engine("sqlite:///sessions.db")
    store = SqliteStore(client=engine, expired={"clear": True, "intervalMs": 60_000})
    store.set("sid-1", {"cookie": {"maxAge": 3_600_000}, "user": "ada"})
    store.get("sid-1", lambda err, sess: print(err, sess))
"""

from sqlsession.auto_configuration import store_from_config
from sqlsession.exceptions import (
    ConfigurationException,
    InvalidExpiryException,
    SessionDecodeException,
    SessionEncodeException,
    SessionStoreException,
    StorageException,
)
from sqlsession.ports.outbound import SessionStorePort
from sqlsession.store import SessionRecord, SqliteStore
from sqlsession.sweeper import ExpiredOptions, ExpirySweeper, SweeperState
from sqlsession.ttl import DEFAULT_TTL, resolve_expiry

__all__ = [
    "DEFAULT_TTL",
    "ConfigurationException",
    "ExpiredOptions",
    "ExpirySweeper",
    "InvalidExpiryException",
    "SessionDecodeException",
    "SessionEncodeException",
    "SessionRecord",
    "SessionStoreException",
    "SessionStorePort",
    "SqliteStore",
    "StorageException",
    "SweeperState",
    "resolve_expiry",
    "store_from_config",
]
