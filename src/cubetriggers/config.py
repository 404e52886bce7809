from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

NGRAM_POSITION_MODES = ("first_match", "all")


def _env_str(name: str, default: str) -> str:
    return os.getenv(name, default).strip()


def _env_optional(name: str) -> str | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return int(value)


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return float(value)


def _default_data_dir() -> Path:
    return Path(_env_str("CUBETRIGGERS_DATA_DIR", "data"))


@dataclass(slots=True)
class PostgresSettings:
    """PostgreSQL connection settings."""

    dsn: str | None = field(default_factory=lambda: _env_optional("CUBETRIGGERS_POSTGRES_DSN"))
    host: str | None = field(default_factory=lambda: _env_optional("CUBETRIGGERS_POSTGRES_HOST"))
    port: int = field(default_factory=lambda: _env_int("CUBETRIGGERS_POSTGRES_PORT", 5432))
    db: str | None = field(default_factory=lambda: _env_optional("CUBETRIGGERS_POSTGRES_DB"))
    user: str | None = field(default_factory=lambda: _env_optional("CUBETRIGGERS_POSTGRES_USER"))
    password: str | None = field(
        default_factory=lambda: _env_optional("CUBETRIGGERS_POSTGRES_PASSWORD")
    )
    sslmode: str = field(default_factory=lambda: _env_str("CUBETRIGGERS_POSTGRES_SSLMODE", "disable"))
    connect_timeout_s: int = field(
        default_factory=lambda: _env_int("CUBETRIGGERS_POSTGRES_CONNECT_TIMEOUT", 5)
    )

    @property
    def is_configured(self) -> bool:
        """Return True when either a DSN or a host and database are set."""

        return bool(self.dsn or (self.host and self.db))


@dataclass(slots=True)
class JobSettings:
    """Background job execution settings."""

    import_max_attempts: int = field(
        default_factory=lambda: _env_int("CUBETRIGGERS_IMPORT_MAX_ATTEMPTS", 3)
    )
    aggregate_max_attempts: int = field(
        default_factory=lambda: _env_int("CUBETRIGGERS_AGGREGATE_MAX_ATTEMPTS", 2)
    )
    retry_backoff_s: float = field(
        default_factory=lambda: _env_float("CUBETRIGGERS_RETRY_BACKOFF_S", 2.0)
    )
    aggregate_delay_s: float = field(
        default_factory=lambda: _env_float("CUBETRIGGERS_AGGREGATE_DELAY_S", 5.0)
    )
    import_workers: int = field(default_factory=lambda: _env_int("CUBETRIGGERS_IMPORT_WORKERS", 2))
    aggregate_workers: int = field(
        default_factory=lambda: _env_int("CUBETRIGGERS_AGGREGATE_WORKERS", 1)
    )


@dataclass(slots=True)
class Settings:
    """Central configuration for parsing, import processing, and aggregation."""

    data_dir: Path = field(default_factory=_default_data_dir)
    duckdb_path: Path = field(
        default_factory=lambda: Path(
            os.getenv("CUBETRIGGERS_DUCKDB_PATH", str(_default_data_dir() / "cubetriggers.duckdb"))
        )
    )
    ngram_min_length: int = field(
        default_factory=lambda: _env_int("CUBETRIGGERS_NGRAM_MIN_LENGTH", 4)
    )
    ngram_max_length: int = field(
        default_factory=lambda: _env_int("CUBETRIGGERS_NGRAM_MAX_LENGTH", 6)
    )
    # first_match keeps one occurrence row per distinct window text per algorithm
    ngram_positions: str = field(
        default_factory=lambda: _env_str("CUBETRIGGERS_NGRAM_POSITIONS", "first_match")
    )
    progress_batch_size: int = field(
        default_factory=lambda: _env_int("CUBETRIGGERS_PROGRESS_BATCH_SIZE", 10)
    )
    postgres: PostgresSettings = field(default_factory=PostgresSettings)
    jobs: JobSettings = field(default_factory=JobSettings)

    def validate(self) -> None:
        """Raise ValueError when settings are inconsistent."""
        if self.ngram_min_length < 1:
            raise ValueError("ngram_min_length must be at least 1")
        if self.ngram_max_length < self.ngram_min_length:
            raise ValueError("ngram_max_length must be >= ngram_min_length")
        if self.ngram_positions not in NGRAM_POSITION_MODES:
            raise ValueError(
                f"ngram_positions must be one of {NGRAM_POSITION_MODES}, "
                f"got {self.ngram_positions!r}"
            )
        if self.progress_batch_size < 1:
            raise ValueError("progress_batch_size must be at least 1")

    def ensure_dirs(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.duckdb_path.parent.mkdir(parents=True, exist_ok=True)


def get_settings(**overrides: object) -> Settings:
    """Return a Settings instance read from the environment, with overrides applied."""
    load_dotenv()
    settings = Settings()
    for name, value in overrides.items():
        if not hasattr(settings, name):
            raise TypeError(f"get_settings() got an unexpected keyword argument '{name}'")
        setattr(settings, name, value)
    settings.validate()
    settings.ensure_dirs()
    return settings
