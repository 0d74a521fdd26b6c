"""Data storage and connection pool configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import env_float, env_int

APP_DIR_NAME: Final[str] = "jigorders"
DEFAULT_DB_FILENAME: Final[str] = "jigorders.db"

DEFAULT_POOL_SIZE: Final[int] = 10
DEFAULT_POOL_TIMEOUT_SECONDS: Final[float] = 10.0
DEFAULT_POOL_RECYCLE_SECONDS: Final[int] = 30
DEFAULT_CONNECT_TIMEOUT_SECONDS: Final[int] = 10
DEFAULT_STATEMENT_TIMEOUT_MS: Final[int] = 30_000
DEFAULT_PREWARM_DELAY_SECONDS: Final[float] = 1.0


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def ensure_data_dir(self) -> Path:
        data_dir = self.resolve_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def database_path(self, *, ensure: bool = True) -> Path:
        base = self.ensure_data_dir() if ensure else self.resolve_data_dir()
        return base / self.database_filename

    def database_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.database_path()}"


@dataclass(frozen=True, slots=True, kw_only=True)
class DatabaseConfig:
    """Connection settings for the order store.

    ``pool_recycle_seconds`` bounds how long an idle pooled connection is reused;
    ``statement_timeout_ms`` is applied server side where the backend supports it.
    """

    uri: str
    pool_size: int = DEFAULT_POOL_SIZE
    max_overflow: int = 0
    pool_timeout_seconds: float = DEFAULT_POOL_TIMEOUT_SECONDS
    pool_recycle_seconds: int = DEFAULT_POOL_RECYCLE_SECONDS
    connect_timeout_seconds: int = DEFAULT_CONNECT_TIMEOUT_SECONDS
    statement_timeout_ms: int = DEFAULT_STATEMENT_TIMEOUT_MS
    prewarm_delay_seconds: float = DEFAULT_PREWARM_DELAY_SECONDS


def _default_data_dir() -> Path:
    if os.name == "nt":
        base = os.getenv("LOCALAPPDATA")
        base_path = Path(base) if base else (Path.home() / "AppData" / "Local")
    else:
        base = os.getenv("XDG_DATA_HOME")
        base_path = Path(base) if base else (Path.home() / ".local" / "share")
    return (base_path / APP_DIR_NAME).expanduser().resolve()


def get_storage_config() -> StorageConfig:
    env_dir = os.getenv("JIGORDERS_DATA_DIR")
    data_dir = Path(env_dir) if env_dir else _default_data_dir()
    return StorageConfig(data_dir=data_dir)


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    env_uri = os.getenv("DATABASE_URI")
    if env_uri:
        uri = env_uri
    else:
        storage_config = storage or get_storage_config()
        uri = storage_config.database_uri()
    return DatabaseConfig(
        uri=uri,
        pool_size=env_int("JIGORDERS_POOL_SIZE", DEFAULT_POOL_SIZE, minimum=1),
        pool_timeout_seconds=env_float("JIGORDERS_POOL_TIMEOUT", DEFAULT_POOL_TIMEOUT_SECONDS),
        pool_recycle_seconds=env_int("JIGORDERS_POOL_RECYCLE", DEFAULT_POOL_RECYCLE_SECONDS),
        connect_timeout_seconds=env_int(
            "JIGORDERS_CONNECT_TIMEOUT", DEFAULT_CONNECT_TIMEOUT_SECONDS
        ),
        statement_timeout_ms=env_int(
            "JIGORDERS_STATEMENT_TIMEOUT_MS", DEFAULT_STATEMENT_TIMEOUT_MS
        ),
        prewarm_delay_seconds=env_float(
            "JIGORDERS_PREWARM_DELAY", DEFAULT_PREWARM_DELAY_SECONDS
        ),
    )
