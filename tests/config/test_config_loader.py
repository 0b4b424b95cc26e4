"""Tests for configuration loading (orion_config)."""

from pathlib import Path

import pytest
import yaml

from orion_config import get_active_config
from orion_config.loader import compute_checksum, load_config, load_yaml_file, parse_config
from orion_config.schema import OrionConfig, PresentationConfig
from orion_kernel.exceptions import ConfigurationError


def _write(tmp_path: Path, data) -> Path:
    path = tmp_path / "orion.yaml"
    path.write_text(yaml.safe_dump(data))
    return path


class TestParseConfig:
    def test_empty_gives_defaults(self):
        config = parse_config({})
        assert config == OrionConfig()
        assert config.presentation == PresentationConfig(
            currency="USD", amount_places=0, index_places=2,
        )
        assert config.logging.level == "INFO"
        assert config.database.url is None

    def test_full_document(self):
        config = parse_config({
            "presentation": {"currency": "ngn", "amount_places": 2, "index_places": 3},
            "logging": {"level": "debug"},
            "database": {"url": "sqlite://", "echo": True, "pool_size": 4},
        })
        assert config.presentation.currency == "NGN"
        assert config.presentation.amount_places == 2
        assert config.presentation.index_places == 3
        assert config.logging.level == "DEBUG"
        assert config.database.url == "sqlite://"
        assert config.database.echo is True
        assert config.database.pool_size == 4

    @pytest.mark.parametrize("data,key", [
        ({"presentation": {"currency": "DOLLARS"}}, "presentation.currency"),
        ({"presentation": {"index_places": -1}}, "presentation.index_places"),
        ({"presentation": {"amount_places": "2"}}, "presentation.amount_places"),
        ({"presentation": {"index_places": True}}, "presentation.index_places"),
        ({"logging": {"level": "LOUD"}}, "logging.level"),
        ({"database": {"pool_size": 0}}, "database.pool_size"),
        ({"database": ["not", "a", "mapping"]}, "database"),
    ])
    def test_invalid_values(self, data, key):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_config(data)
        assert exc_info.value.key == key
        assert exc_info.value.code == "CONFIGURATION_ERROR"


class TestLoadFile:
    def test_load_config(self, tmp_path):
        path = _write(tmp_path, {"presentation": {"index_places": 4}})
        assert load_config(path).presentation.index_places == 4

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_yaml_file(path) == {}

    def test_non_mapping_document(self, tmp_path):
        path = _write(tmp_path, ["a", "b"])
        with pytest.raises(ConfigurationError):
            load_yaml_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.yaml")


class TestChecksum:
    def test_key_order_independent(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})

    def test_value_sensitive(self):
        assert compute_checksum({"a": 1}) != compute_checksum({"a": 2})


class TestGetActiveConfig:
    def test_defaults_without_environment(self):
        assert get_active_config(environ={}) == OrionConfig()

    def test_path_from_environment(self, tmp_path):
        path = _write(tmp_path, {"presentation": {"currency": "EUR"}})
        config = get_active_config(environ={"ORION_CONFIG": str(path)})
        assert config.presentation.currency == "EUR"

    def test_explicit_path_wins(self, tmp_path):
        explicit = _write(tmp_path, {"presentation": {"currency": "EUR"}})
        config = get_active_config(explicit, environ={"ORION_CONFIG": str(tmp_path / "absent.yaml")})
        assert config.presentation.currency == "EUR"

    def test_database_url_override(self, tmp_path):
        path = _write(tmp_path, {"database": {"url": "sqlite:///file.db", "pool_size": 3}})
        config = get_active_config(path, environ={"ORION_DATABASE_URL": "postgresql://db/orion"})
        assert config.database.url == "postgresql://db/orion"
        assert config.database.pool_size == 3

    def test_emits_trace(self, captured_logs):
        get_active_config(environ={})
        traces = [r for r in captured_logs() if r["message"] == "ORION_CONFIG_TRACE"]
        assert len(traces) == 1
        assert traces[0]["source"] == "defaults"
        assert traces[0]["checksum"] == compute_checksum({})
