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
"""Tests for store settings: file loading, env overrides, and dataclass binding."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pytest

from sqlsession.config import Config, config_properties, env_key
from sqlsession.exceptions import ConfigurationException
from sqlsession.sweeper import ExpiredOptions


class TestConfig:
    def test_load_from_dict(self):
        config = Config({"sqlsession": {"url": "sqlite:///x.db", "expired": {"clear": True}}})
        assert config.get("sqlsession.url") == "sqlite:///x.db"
        assert config.get("sqlsession.expired.clear") is True

    def test_get_with_default(self):
        assert Config({}).get("sqlsession.missing", "default") == "default"

    def test_falsy_values_are_returned(self):
        config = Config({"sqlsession": {"expired": {"clear": False, "interval_ms": 0}}})
        assert config.get("sqlsession.expired.clear", True) is False
        assert config.get("sqlsession.expired.interval_ms", 5) == 0

    def test_lookup_through_scalar_gives_default(self):
        config = Config({"sqlsession": {"url": "sqlite:///x.db"}})
        assert config.get("sqlsession.url.host", "none") == "none"

    def test_load_from_yaml_file(self, tmp_path: Path):
        config_file = tmp_path / "sqlsession.yaml"
        config_file.write_text("sqlsession:\n  table-name: web_sessions\n")
        assert Config.from_file(config_file).get("sqlsession.table-name") == "web_sessions"

    def test_load_from_toml_file(self, tmp_path: Path):
        config_file = tmp_path / "sqlsession.toml"
        config_file.write_text("[sqlsession.expired]\nclear = true\ninterval_ms = 2500\n")
        assert Config.from_file(config_file).get("sqlsession.expired.interval_ms") == 2500

    def test_empty_yaml_file_yields_empty_config(self, tmp_path: Path):
        config_file = tmp_path / "sqlsession.yaml"
        config_file.write_text("")
        assert Config.from_file(config_file).get_section("sqlsession") == {}

    def test_missing_file_yields_empty_config(self, tmp_path: Path):
        config = Config.from_file(tmp_path / "absent.yaml")
        assert config.get("sqlsession.url") is None

    def test_env_key_naming(self):
        assert env_key("sqlsession.expired.interval-ms") == "SQLSESSION_EXPIRED_INTERVAL_MS"
        assert env_key("sqlsession.url") == "SQLSESSION_URL"

    def test_env_var_override(self, monkeypatch):
        monkeypatch.setenv("SQLSESSION_TABLE_NAME", "env_sessions")
        config = Config({"sqlsession": {"table-name": "file_sessions"}})
        assert config.get("sqlsession.table-name") == "env_sessions"

    def test_get_section(self):
        config = Config({"sqlsession": {"expired": {"clear": True}}})
        assert config.get_section("sqlsession.expired") == {"clear": True}
        assert config.get_section("sqlsession.nothing") == {}


class TestConfigProperties:
    def test_bind_expired_options(self):
        config = Config({"sqlsession": {"expired": {"clear": True, "interval_ms": 3000, "unref_interval": True}}})
        assert config.bind(ExpiredOptions) == ExpiredOptions(clear=True, interval_ms=3000, unref_interval=True)

    def test_bind_accepts_dashed_keys(self):
        config = Config({"sqlsession": {"expired": {"clear": True, "interval-ms": 1200}}})
        assert config.bind(ExpiredOptions).interval_ms == 1200

    def test_bind_uses_defaults(self):
        assert Config({}).bind(ExpiredOptions) == ExpiredOptions()

    def test_bind_coerces_env_strings(self, monkeypatch):
        monkeypatch.setenv("SQLSESSION_EXPIRED_CLEAR", "true")
        monkeypatch.setenv("SQLSESSION_EXPIRED_INTERVAL_MS", "750")
        options = Config({}).bind(ExpiredOptions)
        assert options.clear is True
        assert options.interval_ms == 750.0

    def test_bind_rejects_non_numeric_env_string(self, monkeypatch):
        monkeypatch.setenv("SQLSESSION_EXPIRED_INTERVAL_MS", "soon")
        with pytest.raises(ConfigurationException) as exc_info:
            Config({}).bind(ExpiredOptions)
        assert exc_info.value.code == "INVALID_SETTING"

    def test_bind_custom_dataclass(self):
        @config_properties(prefix="pool")
        @dataclass
        class PoolConfig:
            size: int = 5

        assert Config({"pool": {"size": "9"}}).bind(PoolConfig).size == 9

    def test_bind_undecorated_class_raises(self):
        @dataclass
        class Plain:
            x: int = 1

        with pytest.raises(ConfigurationException):
            Config({}).bind(Plain)
