"""
Тесты системы конфигурации.
"""

import json

import pytest
import yaml

from fetch_pool.utils.config import Config, apply_env_overrides, load_config, save_config
from fetch_pool.feeder import FeederConfig, build_url
from fetch_pool.exceptions import ConfigurationError


def write_yaml(path, data):
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


class TestLoadConfig:
    """Тесты загрузки конфигурации из файла."""

    def test_short_keys_are_accepted(self, tmp_path):
        path = write_yaml(tmp_path / "config.yaml", {
            "c": 4,
            "n": 25,
            "filePath": "ids.txt",
            "baseUrl": "https://example.com/items/%s"
        })

        config = load_config(path, environ={})

        assert config.max_workers == 4
        assert config.feeder.batch_size == 25
        assert config.feeder.file_path == "ids.txt"
        assert config.feeder.base_url == "https://example.com/items/%s"
        assert config.queue_size == 25

    def test_sections(self, tmp_path):
        path = write_yaml(tmp_path / "config.yml", {
            "max_workers": 8,
            "max_queue_size": 16,
            "feeder": {"file_path": "list.txt", "raise_on_error": True},
            "metrics": {"port": 9100, "system_metrics": False},
            "worker_manager": {"idle_timeout": 2.5, "min_workers": 1},
            "execution": {"timeout": 5}
        })

        config = load_config(path, environ={})

        assert config.queue_size == 16
        assert config.feeder.raise_on_error is True
        assert config.metrics.port == 9100
        assert config.worker_manager.min_workers == 1

        pool_config = config.to_pool_config()
        assert pool_config.worker_config.idle_timeout == 2.5
        assert pool_config.execution_config.timeout == 5

    def test_json_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"max_workers": 3, "feeder": {"batch_size": 7}}), encoding="utf-8")

        config = load_config(path, environ={})

        assert config.max_workers == 3
        assert config.queue_size == 7

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")

        config = load_config(path, environ={})

        assert config.max_workers == Config().max_workers

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config(tmp_path / "absent.yaml", environ={})

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "config.ini"
        path.write_text("[pool]\n", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            load_config(path, environ={})

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("c: [1, 2\n", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            load_config(path, environ={})

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            load_config(path, environ={})

    def test_unknown_key(self, tmp_path):
        path = write_yaml(tmp_path / "config.yaml", {"workers": 3})

        with pytest.raises(ConfigurationError):
            load_config(path, environ={})

    def test_unknown_section_key(self, tmp_path):
        path = write_yaml(tmp_path / "config.yaml", {"feeder": {"url": "x"}})

        with pytest.raises(ConfigurationError):
            load_config(path, environ={})


class TestValidation:
    """Тесты валидации."""

    @pytest.mark.parametrize("data", [
        {"c": 0},
        {"max_queue_size": 0},
        {"n": 0},
        {"baseUrl": "https://example.com/items/"},
        {"baseUrl": "https://example.com/a%20b/%s"},
        {"baseUrl": "https://example.com/%s/%s"},
        {"metrics": {"port": 70000}},
        {"worker_manager": {"min_workers": 20}},
        {"execution": {"timeout": 0}},
    ])
    def test_invalid_values(self, tmp_path, data):
        path = write_yaml(tmp_path / "config.yaml", data)

        with pytest.raises(ConfigurationError):
            load_config(path, environ={})

    def test_errors_are_collected(self):
        config = Config(max_workers=0)
        config.feeder.base_url = "no-placeholder"

        with pytest.raises(ConfigurationError) as exc_info:
            config.validate()

        assert "max_workers" in str(exc_info.value)
        assert "base_url" in str(exc_info.value)

    def test_literal_percent_in_template(self):
        """Литеральный '%' допустим только в виде '%%'."""
        config = Config(feeder=FeederConfig(base_url="http://h/a%20b/%s"))
        with pytest.raises(ConfigurationError):
            config.validate()

        config = Config(feeder=FeederConfig(base_url="http://h/a%%20b/%s"))
        assert config.validate()
        assert build_url(config.feeder.base_url, "7") == "http://h/a%20b/7"


class TestEnvOverrides:
    """Тесты переопределения переменными окружения."""

    def test_overrides_replace_file_values(self, tmp_path):
        path = write_yaml(tmp_path / "config.yaml", {"c": 2, "n": 10, "filePath": "a.txt"})

        config = load_config(path, environ={
            "FETCH_POOL_MAX_WORKERS": "6",
            "FETCH_POOL_BATCH_SIZE": "30",
            "FETCH_POOL_FILE_PATH": "b.txt",
            "FETCH_POOL_RAISE_ON_ERROR": "true",
            "FETCH_POOL_METRICS_PORT": "9200"
        })

        assert config.max_workers == 6
        assert config.feeder.batch_size == 30
        assert config.feeder.file_path == "b.txt"
        assert config.feeder.raise_on_error is True
        assert config.metrics.port == 9200

    def test_source_is_not_mutated(self):
        data = {"feeder": {"batch_size": 5}}

        result = apply_env_overrides(data, {"FETCH_POOL_BATCH_SIZE": "9"})

        assert result["feeder"]["batch_size"] == 9
        assert data == {"feeder": {"batch_size": 5}}

    def test_invalid_integer(self):
        with pytest.raises(ConfigurationError):
            apply_env_overrides({}, {"FETCH_POOL_MAX_WORKERS": "many"})


class TestSaveConfig:
    """Тесты сохранения конфигурации."""

    @pytest.mark.parametrize("fmt,suffix", [("yaml", ".yaml"), ("json", ".json")])
    def test_saved_config_loads_back(self, tmp_path, fmt, suffix):
        config = Config(max_workers=5)
        config.feeder.batch_size = 12
        path = tmp_path / "nested" / f"config{suffix}"

        save_config(config, path, format=fmt)
        loaded = load_config(path, environ={})

        assert loaded.to_dict() == config.to_dict()

    def test_unsupported_format(self, tmp_path):
        with pytest.raises(ValueError):
            save_config(Config(), tmp_path / "config.toml", format="toml")
