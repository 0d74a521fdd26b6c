"""Pooled database access with bounded retries for transient failures."""

from __future__ import annotations

import threading
from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import (
    DBAPIError,
    DisconnectionError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from jigorders.config import RetryPolicy
from jigorders.domain.errors import PersistenceError, StorageError, TransientStorageError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy.engine import Connection, Engine
    from sqlalchemy.sql import Executable

    from jigorders.config import DatabaseConfig

log = getLogger(__name__)

# OperationalError also covers schema and syntax problems on some drivers
# (SQLite reports a missing table this way); those are not worth retrying.
NON_TRANSIENT_MARKERS: Final[tuple[str, ...]] = (
    "no such table",
    "no such column",
    "syntax error",
    "does not exist",
    "permission denied",
)


def is_transient(exc: BaseException) -> bool:
    """Return whether ``exc`` is a connectivity failure worth retrying."""

    if isinstance(exc, (DisconnectionError, PoolTimeoutError)):
        return True
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    if isinstance(exc, OperationalError):
        message = str(exc.orig if exc.orig is not None else exc).lower()
        return not any(marker in message for marker in NON_TRANSIENT_MARKERS)
    return False


def build_engine(config: DatabaseConfig) -> Engine:
    url = make_url(config.uri)
    kwargs: dict[str, Any] = {"pool_pre_ping": True}
    connect_args: dict[str, Any] = {}
    if url.get_backend_name() == "sqlite":
        # prewarm runs on a timer thread
        connect_args["check_same_thread"] = False
        connect_args["timeout"] = config.connect_timeout_seconds
    else:
        kwargs.update(
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            pool_timeout=config.pool_timeout_seconds,
            pool_recycle=config.pool_recycle_seconds,
        )
        if url.get_backend_name() == "postgresql":
            connect_args["connect_timeout"] = config.connect_timeout_seconds
            connect_args["options"] = f"-c statement_timeout={config.statement_timeout_ms}"
    return create_engine(url, connect_args=connect_args, **kwargs)


class DatabaseGateway:
    """Owns the connection pool and runs statements under the retry policy.

    ``open`` builds the pool; any other call opens it lazily. ``close`` disposes
    it, after which the gateway may be opened again.
    """

    def __init__(
        self,
        config: DatabaseConfig,
        retry_policy: RetryPolicy | None = None,
        *,
        engine: Engine | None = None,
    ) -> None:
        self.config = config
        self.retry_policy = retry_policy or RetryPolicy()
        self._engine = engine
        self._lock = threading.Lock()
        self._prewarm_timer: threading.Timer | None = None

    @property
    def engine(self) -> Engine:
        return self.open()

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def open(self) -> Engine:
        with self._lock:
            if self._engine is None:
                url = make_url(self.config.uri)
                log.info("Opening database pool for %s", url.render_as_string(hide_password=True))
                self._engine = build_engine(self.config)
            return self._engine

    def close(self) -> None:
        with self._lock:
            if self._prewarm_timer is not None:
                self._prewarm_timer.cancel()
                self._prewarm_timer = None
            if self._engine is not None:
                self._engine.dispose()
                self._engine = None
                log.info("Closed database pool")

    def prewarm(self, delay_seconds: float | None = None) -> threading.Timer:
        """Schedule a ``SELECT 1`` so the first request does not pay for connecting."""

        delay = self.config.prewarm_delay_seconds if delay_seconds is None else delay_seconds
        timer = threading.Timer(delay, self._prewarm)
        timer.daemon = True
        self._prewarm_timer = timer
        timer.start()
        return timer

    def _prewarm(self) -> None:
        try:
            self.ping_or_raise()
        except Exception as exc:  # noqa: BLE001
            log.warning("Database prewarm failed: %s", exc)
        else:
            log.info("Database pool prewarmed")

    def query(
        self,
        sql: str | Executable,
        params: Mapping[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Run one statement and return its rows as dictionaries."""

        statement = text(sql) if isinstance(sql, str) else sql

        def run() -> list[dict[str, Any]]:
            with self.engine.begin() as connection:
                result = connection.execute(statement, dict(params or {}))
                if not result.returns_rows:
                    return []
                return [dict(row) for row in result.mappings()]

        return self.retrying(run)

    def run_in_transaction[T](self, work: Callable[[Connection], T]) -> T:
        def run() -> T:
            with self.engine.begin() as connection:
                return work(connection)

        return self.retrying(run)

    def retrying[T](self, work: Callable[[], T]) -> T:
        """Run ``work`` under the retry policy and translate SQLAlchemy errors."""

        retryer = self.retry_policy.build(retry_on=is_transient, logger=log)
        try:
            return retryer(work)
        except SQLAlchemyError as exc:
            if is_transient(exc):
                raise TransientStorageError(
                    f"Database unavailable after {self.retry_policy.attempts} attempts: {exc}"
                ) from exc
            raise PersistenceError(str(exc)) from exc

    def ping_or_raise(self) -> None:
        with self.engine.connect() as connection:
            connection.execute(text("SELECT 1"))

    def ping(self) -> dict[str, Any]:
        """Report connectivity without raising."""

        url = make_url(self.config.uri)
        status: dict[str, Any] = {
            "backend": url.get_backend_name(),
            "database": url.database,
            "pool_open": self.is_open,
        }
        try:
            self.retrying(self.ping_or_raise)
        except StorageError as exc:
            status.update(connected=False, error=str(exc))
        else:
            status["connected"] = True
        return status
