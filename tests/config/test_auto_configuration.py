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
"""Tests for building a store from configuration."""

from __future__ import annotations

from sqlalchemy import create_engine, text

from sqlsession.auto_configuration import connect_args, engine_from_config, store_from_config
from sqlsession.config import Config
from sqlsession.store import SqliteStore
from sqlsession.sweeper import SweeperState


class TestConnectArgs:
    def test_sqlite_disables_same_thread_check(self):
        assert connect_args("sqlite:///sessions.db") == {"check_same_thread": False}

    def test_other_databases_need_nothing(self):
        assert connect_args("postgresql://localhost/app") == {}


class TestStoreFromConfig:
    def test_builds_store_from_url(self, db_url):
        config = Config({"sqlsession": {"url": db_url}})
        store = store_from_config(config)
        try:
            assert isinstance(store, SqliteStore)
            assert store.sweeper is None
            assert store.table.name == "sessions"
        finally:
            store.close()

    def test_uses_given_client_and_table_name(self, engine):
        config = Config({"sqlsession": {"table-name": "app_sessions"}})
        store = store_from_config(config, client=engine)
        store.set("abc", {"cookie": {"maxAge": 60_000}})
        with engine.connect() as conn:
            assert conn.execute(text("SELECT COUNT(*) FROM app_sessions")).scalar_one() == 1

    def test_configures_sweeper(self, engine):
        config = Config(
            {"sqlsession": {"expired": {"clear": True, "interval_ms": 4000, "unref_interval": True}}}
        )
        store = store_from_config(config, client=engine)
        try:
            assert store.sweeper is not None
            assert store.sweeper.state is SweeperState.ARMED
            assert store.sweeper.interval_ms == 4000
            assert store.sweeper.daemon is True
        finally:
            store.close()

    def test_engine_from_config(self, db_url):
        eng = engine_from_config(Config({"sqlsession": {"url": db_url}}))
        try:
            assert eng.dialect.name == "sqlite"
        finally:
            eng.dispose()

    def test_stores_share_engine(self, db_url):
        eng = create_engine(db_url, connect_args=connect_args(db_url))
        try:
            first = store_from_config(Config({}), client=eng)
            second = store_from_config(Config({}), client=eng)
            first.set("sid", {"cookie": {}, "v": 1})
            seen = []
            second.get("sid", lambda err, res: seen.append(res))
            assert seen == [{"cookie": {}, "v": 1}]
        finally:
            eng.dispose()
