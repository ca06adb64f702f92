"""
Tests for analyzer settings, secrets and logging setup.
"""

import logging
from contextlib import contextmanager
from unittest.mock import patch

import pytest

from gwaln.config import secrets
from gwaln.config.secrets import MissingAPIKeyError, check_keys, get_gemini_key
from gwaln.config.settings import (
    DEFAULT_CACHE_TTL_HOURS,
    DEFAULT_GEMINI_MODEL,
    DEFAULT_MAX_CITATIONS,
    get_cache_ttl_hours,
    get_citation_config,
    get_gemini_config,
    load_analyzer_config,
)
from gwaln.logging_config import LOG_DIR_ENV, LOG_FILE, configure_logging


class TestLoadAnalyzerConfig:
    """Tests for YAML config loading."""

    def test_loads_mapping(self, tmp_path):
        path = tmp_path / "analyzer.yaml"
        path.write_text("cache:\n  ttl_hours: 12\ngemini:\n  model: gemini-pro\n")

        config = load_analyzer_config(str(path))

        assert config['cache']['ttl_hours'] == 12
        assert get_gemini_config(config)['model'] == "gemini-pro"

    def test_missing_file(self, tmp_path):
        assert load_analyzer_config(str(tmp_path / "missing.yaml")) == {}

    def test_non_mapping_ignored(self, tmp_path):
        path = tmp_path / "analyzer.yaml"
        path.write_text("- a\n- b\n")
        assert load_analyzer_config(str(path)) == {}

    def test_broken_yaml_ignored(self, tmp_path):
        path = tmp_path / "analyzer.yaml"
        path.write_text("cache: [unclosed\n")
        assert load_analyzer_config(str(path)) == {}

    def test_repo_config_has_default_ttl(self):
        assert get_cache_ttl_hours(load_analyzer_config()) == 72.0


class TestGetters:
    """Tests for the typed config getters."""

    def test_ttl_default(self):
        assert get_cache_ttl_hours({}) == float(DEFAULT_CACHE_TTL_HOURS)

    def test_ttl_from_string(self):
        assert get_cache_ttl_hours({'cache': {'ttl_hours': "5"}}) == 5.0

    def test_ttl_invalid_falls_back(self):
        assert get_cache_ttl_hours({'cache': {'ttl_hours': "soon"}}) == float(DEFAULT_CACHE_TTL_HOURS)

    def test_ttl_negative_clamped(self):
        assert get_cache_ttl_hours({'cache': {'ttl_hours': -4}}) == 0.0

    def test_ttl_null_section(self):
        assert get_cache_ttl_hours({'cache': None}) == float(DEFAULT_CACHE_TTL_HOURS)

    def test_gemini_defaults(self):
        assert get_gemini_config({})['model'] == DEFAULT_GEMINI_MODEL

    def test_citation_defaults(self):
        assert get_citation_config({})['max_citations'] == DEFAULT_MAX_CITATIONS


class TestSecrets:
    """Tests for API key lookup."""

    def test_missing_key_raises(self, monkeypatch):
        monkeypatch.delenv(secrets.GEMINI_KEY_ENV, raising=False)
        with pytest.raises(MissingAPIKeyError):
            get_gemini_key()
        assert check_keys() == {secrets.GEMINI_KEY_ENV: "MISSING"}

    def test_key_is_stripped(self, monkeypatch):
        monkeypatch.setenv(secrets.GEMINI_KEY_ENV, "  abc  ")
        assert get_gemini_key() == "abc"
        assert check_keys() == {secrets.GEMINI_KEY_ENV: "OK"}



@contextmanager
def bare_root_logger():
    """Run with an empty root handler list, restoring handlers and levels on exit."""
    root = logging.getLogger()
    level, urllib3_level = root.level, logging.getLogger("urllib3").level
    with patch.object(root, 'handlers', []):
        try:
            yield root
        finally:
            for handler in root.handlers:
                handler.close()
            root.setLevel(level)
            logging.getLogger("urllib3").setLevel(urllib3_level)


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_console_only_by_default(self, monkeypatch):
        monkeypatch.delenv(LOG_DIR_ENV, raising=False)
        with bare_root_logger() as root:
            configure_logging()

            assert [type(h) for h in root.handlers] == [logging.StreamHandler]
            assert root.level == logging.INFO
            assert logging.getLogger("urllib3").level == logging.WARNING

    def test_file_handler_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv(LOG_DIR_ENV, str(tmp_path / "logs"))
        with bare_root_logger() as root:
            configure_logging(verbose=True)

            assert any(isinstance(h, logging.FileHandler) for h in root.handlers)
            assert root.level == logging.DEBUG
        assert (tmp_path / "logs" / LOG_FILE).exists()

    def test_second_call_is_noop(self, monkeypatch):
        monkeypatch.delenv(LOG_DIR_ENV, raising=False)
        with bare_root_logger() as root:
            configure_logging()
            configure_logging(verbose=True)

            assert len(root.handlers) == 1
            assert root.level == logging.INFO
