# ==============================================
# Tests for configuration loading
# ==============================================

import logging
import os

import pytest

from pgdrift.config import configure_logging, get_config, reset_config


class TestGetConfig:

    def test_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        config = get_config()

        assert config.database.url is None
        assert config.database.host == "localhost"
        assert config.database.port == 5432
        assert config.sampling.sample_size == 5000
        assert config.sampling.production_mode is False
        assert config.sampling.show_progress is True
        assert config.drift.ghost_key_threshold == pytest.approx(0.10)
        assert config.index.min_occurrences == 100
        assert config.log_level == "WARNING"
        assert config.report_dir == "reports/"

    def test_environment_overrides(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("DATABASE_URL", "postgresql://db/app")
        monkeypatch.setenv("PGPORT", "6543")
        monkeypatch.setenv("PGDRIFT_SAMPLE_SIZE", "250")
        monkeypatch.setenv("PGDRIFT_PRODUCTION_MODE", "true")
        monkeypatch.setenv("PGDRIFT_SHOW_PROGRESS", "0")
        monkeypatch.setenv("PGDRIFT_TYPE_INCONSISTENCY_THRESHOLD", "2.5")
        monkeypatch.setenv("PGDRIFT_DETECT_SCHEMA_EVOLUTION", "no")
        monkeypatch.setenv("PGDRIFT_MIN_OCCURRENCES", "7")
        monkeypatch.setenv("PGDRIFT_LOG_LEVEL", "debug")

        config = get_config()

        assert config.database.url == "postgresql://db/app"
        assert config.database.port == 6543
        assert config.sampling.sample_size == 250
        assert config.sampling.production_mode is True
        assert config.sampling.show_progress is False
        assert config.drift.type_inconsistency_threshold == pytest.approx(2.5)
        assert config.drift.detect_schema_evolution is False
        assert config.index.min_occurrences == 7
        assert config.log_level == "DEBUG"

    def test_dotenv_file_is_loaded(self, tmp_path, monkeypatch):
        (tmp_path / ".env").write_text("PGDRIFT_SAMPLE_SIZE=42\n")
        monkeypatch.chdir(tmp_path)

        try:
            assert get_config().sampling.sample_size == 42
        finally:
            # load_dotenv writes straight into os.environ
            os.environ.pop("PGDRIFT_SAMPLE_SIZE", None)

    def test_singleton(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert get_config() is get_config()

    def test_reset(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        first = get_config()
        monkeypatch.setenv("PGDRIFT_SAMPLE_SIZE", "10")
        reset_config()

        second = get_config()
        assert second is not first
        assert second.sampling.sample_size == 10

    def test_bad_number(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("PGDRIFT_SAMPLE_SIZE", "lots")

        with pytest.raises(ValueError):
            get_config()


class TestConfigureLogging:

    def test_adds_one_handler(self):
        configure_logging("info")
        configure_logging("DEBUG")

        logger = logging.getLogger("pgdrift")
        assert len(logger.handlers) == 1
        assert logger.level == logging.DEBUG
