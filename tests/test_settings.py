"""Tests for config.settings — environment-driven configuration."""

import pytest

from sparqlmap.config import AppConfig, RuntimeConfig, StoreConfig
from sparqlmap.runtime.cache import DEFAULT_CACHE_SIZE

ENV_VARS = [
    "SPARQLMAP_BACKEND",
    "SPARQLMAP_QUERY_URL",
    "SPARQLMAP_UPDATE_URL",
    "SPARQLMAP_TIMEOUT",
    "SPARQLMAP_CACHE_SIZE",
    "SPARQLMAP_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    def test_app_defaults(self):
        config = AppConfig.from_env()
        assert config.store.backend == "memory"
        assert config.store.query_url == ""
        assert config.store.timeout == 30.0
        assert config.runtime.cache_size == DEFAULT_CACHE_SIZE
        assert config.log_level == "INFO"

    def test_dataclass_defaults_match_env_defaults(self):
        assert StoreConfig() == StoreConfig.from_env()
        assert RuntimeConfig() == RuntimeConfig.from_env()


class TestFromEnv:
    def test_endpoint_settings(self, monkeypatch):
        monkeypatch.setenv("SPARQLMAP_BACKEND", "endpoint")
        monkeypatch.setenv("SPARQLMAP_QUERY_URL", "http://localhost:3030/ds/query")
        monkeypatch.setenv("SPARQLMAP_UPDATE_URL", "http://localhost:3030/ds/update")
        monkeypatch.setenv("SPARQLMAP_TIMEOUT", "2.5")
        config = StoreConfig.from_env()
        assert config.backend == "endpoint"
        assert config.update_url.endswith("/update")
        assert config.timeout == 2.5

    def test_runtime_and_log_level(self, monkeypatch):
        monkeypatch.setenv("SPARQLMAP_CACHE_SIZE", "16")
        monkeypatch.setenv("SPARQLMAP_LOG_LEVEL", "debug")
        config = AppConfig.from_env()
        assert config.runtime.cache_size == 16
        assert config.log_level == "DEBUG"

    def test_bad_number(self, monkeypatch):
        monkeypatch.setenv("SPARQLMAP_CACHE_SIZE", "lots")
        with pytest.raises(ValueError):
            RuntimeConfig.from_env()
