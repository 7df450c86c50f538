# ==============================================
# Configuration Management
# ==============================================
#
# PURPOSE:
#   Load and validate all configuration from environment
#   variables / .env file. Provides typed config objects
#   to all other modules. CLI flags override these values.
#
# CLASSES:
# --------
# - DatabaseConfig (dataclass)
#     url: str | None        (DATABASE_URL, wins over the discrete params)
#     host: str              (PGHOST, default "localhost")
#     port: int              (PGPORT, default 5432)
#     user: str | None       (PGUSER)
#     password: str | None   (PGPASSWORD)
#     database: str | None   (PGDATABASE)
#     connect_timeout: int   (PGDRIFT_CONNECT_TIMEOUT, default 30)
#
# - SamplingConfig (dataclass)
#     sample_size: int       (PGDRIFT_SAMPLE_SIZE, default 5000)
#     production_mode: bool  (PGDRIFT_PRODUCTION_MODE, default false)
#     show_progress: bool    (PGDRIFT_SHOW_PROGRESS, default true)
#     fetch_size: int        (PGDRIFT_FETCH_SIZE, default 1000)
#
# - DriftConfig / IndexConfig (see analysis/thresholds.py)
#     PGDRIFT_TYPE_INCONSISTENCY_THRESHOLD, PGDRIFT_GHOST_KEY_THRESHOLD,
#     PGDRIFT_SPARSE_FIELD_THRESHOLD, PGDRIFT_MISSING_KEY_THRESHOLD,
#     PGDRIFT_DETECT_SCHEMA_EVOLUTION,
#     PGDRIFT_HIGH_DENSITY_THRESHOLD, PGDRIFT_MEDIUM_DENSITY_THRESHOLD,
#     PGDRIFT_MIN_OCCURRENCES
#
# - AppConfig (dataclass)
#     database, sampling, drift, index
#     log_level: str         (PGDRIFT_LOG_LEVEL, default "WARNING")
#     report_dir: str        (PGDRIFT_REPORT_DIR, default "reports/")
#
# FUNCTIONS:
# ----------
# - get_config() -> AppConfig
#     Load .env using python-dotenv, construct AppConfig.
#     Returns the same singleton on repeated calls.
#
# - reset_config() -> None
#     Drop the singleton so the next get_config() re-reads the environment.
#
# - configure_logging(level) -> None
#     Attach one stream handler to the "pgdrift" logger. Only the CLI
#     calls this; library code just logs.
#
# USAGE:
# ------
#   from pgdrift.config import get_config
#   config = get_config()
#   print(config.sampling.sample_size)
#   print(config.drift.ghost_key_threshold)
#
# ==============================================

import logging
import os
import sys
from dataclasses import dataclass, field
from typing import Optional, Union

from dotenv import find_dotenv, load_dotenv

from pgdrift.analysis.thresholds import DriftConfig, IndexConfig


@dataclass
class DatabaseConfig:
    """PostgreSQL connection configuration."""
    url: Optional[str] = None
    host: str = "localhost"
    port: int = 5432
    user: Optional[str] = None
    password: Optional[str] = None
    database: Optional[str] = None
    connect_timeout: int = 30


@dataclass
class SamplingConfig:
    """How many documents to read and how carefully."""
    sample_size: int = 5000
    production_mode: bool = False
    show_progress: bool = True
    fetch_size: int = 1000


@dataclass
class AppConfig:
    """Main application configuration."""
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    drift: DriftConfig = field(default_factory=DriftConfig)
    index: IndexConfig = field(default_factory=IndexConfig)
    log_level: str = "WARNING"
    report_dir: str = "reports/"


# Singleton instance
_config_instance: Optional[AppConfig] = None


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def get_config() -> AppConfig:
    """
    Load configuration from environment variables / .env file.
    Returns the same singleton instance on repeated calls.

    Returns:
        AppConfig: Application configuration

    Raises:
        ValueError: If a numeric variable cannot be parsed
    """
    global _config_instance

    if _config_instance is not None:
        return _config_instance

    # Load .env from the directory pgdrift is run in (or a parent)
    load_dotenv(dotenv_path=find_dotenv(usecwd=True))

    database_config = DatabaseConfig(
        url=os.getenv("DATABASE_URL") or None,
        host=os.getenv("PGHOST", "localhost"),
        port=int(os.getenv("PGPORT", "5432")),
        user=os.getenv("PGUSER") or None,
        password=os.getenv("PGPASSWORD") or None,
        database=os.getenv("PGDATABASE") or None,
        connect_timeout=int(os.getenv("PGDRIFT_CONNECT_TIMEOUT", "30")),
    )

    sampling_config = SamplingConfig(
        sample_size=int(os.getenv("PGDRIFT_SAMPLE_SIZE", "5000")),
        production_mode=_env_bool("PGDRIFT_PRODUCTION_MODE", False),
        show_progress=_env_bool("PGDRIFT_SHOW_PROGRESS", True),
        fetch_size=int(os.getenv("PGDRIFT_FETCH_SIZE", "1000")),
    )

    drift_config = DriftConfig(
        type_inconsistency_threshold=float(
            os.getenv("PGDRIFT_TYPE_INCONSISTENCY_THRESHOLD", "5.0")
        ),
        ghost_key_threshold=float(os.getenv("PGDRIFT_GHOST_KEY_THRESHOLD", "0.10")),
        sparse_field_threshold=float(os.getenv("PGDRIFT_SPARSE_FIELD_THRESHOLD", "0.80")),
        missing_key_threshold=float(os.getenv("PGDRIFT_MISSING_KEY_THRESHOLD", "0.95")),
        detect_schema_evolution=_env_bool("PGDRIFT_DETECT_SCHEMA_EVOLUTION", True),
    )

    index_config = IndexConfig(
        high_density_threshold=float(os.getenv("PGDRIFT_HIGH_DENSITY_THRESHOLD", "0.8")),
        medium_density_threshold=float(os.getenv("PGDRIFT_MEDIUM_DENSITY_THRESHOLD", "0.2")),
        min_occurrences=int(os.getenv("PGDRIFT_MIN_OCCURRENCES", "100")),
    )

    _config_instance = AppConfig(
        database=database_config,
        sampling=sampling_config,
        drift=drift_config,
        index=index_config,
        log_level=os.getenv("PGDRIFT_LOG_LEVEL", "WARNING").upper(),
        report_dir=os.getenv("PGDRIFT_REPORT_DIR", "reports/"),
    )

    return _config_instance


def reset_config() -> None:
    """Forget the cached configuration."""
    global _config_instance
    _config_instance = None


LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: Union[str, int] = "WARNING") -> None:
    """
    Send pgdrift log records to stderr at the given level.

    Calling it again only changes the level.
    """
    logger = logging.getLogger("pgdrift")
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(level.upper() if isinstance(level, str) else level)
