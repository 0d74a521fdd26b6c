from __future__ import annotations

import logging
from pathlib import Path

import pytest

from jigorders.config import (
    ConfigurationError,
    MissingConfigurationError,
    configure_logging,
    get_database_config,
    get_reconciliation_config,
    get_retry_policy,
    get_storage_config,
    require_env_vars,
)
from jigorders.domain.reconciliation.contracts import FailureMode


def test_require_env_vars_reports_all_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JIGORDERS_A", "value")
    monkeypatch.setenv("JIGORDERS_B", "  ")
    monkeypatch.delenv("JIGORDERS_C", raising=False)

    with pytest.raises(MissingConfigurationError, match="JIGORDERS_B, JIGORDERS_C"):
        require_env_vars(["JIGORDERS_A", "JIGORDERS_B", "JIGORDERS_C"])


def test_database_config_defaults_to_sqlite_in_data_dir(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.delenv("DATABASE_URI", raising=False)
    monkeypatch.setenv("JIGORDERS_DATA_DIR", str(tmp_path / "data"))

    config = get_database_config()

    assert config.uri == f"sqlite+pysqlite:///{(tmp_path / 'data' / 'jigorders.db').resolve()}"
    assert config.pool_size == 10
    assert config.pool_recycle_seconds == 30
    assert config.statement_timeout_ms == 30_000
    assert get_storage_config().resolve_data_dir() == (tmp_path / "data").resolve()


def test_database_config_reads_pool_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "postgresql+psycopg://localhost/orders")
    monkeypatch.setenv("JIGORDERS_POOL_SIZE", "4")
    monkeypatch.setenv("JIGORDERS_POOL_TIMEOUT", "2.5")
    monkeypatch.setenv("JIGORDERS_STATEMENT_TIMEOUT_MS", "5000")
    monkeypatch.setenv("JIGORDERS_PREWARM_DELAY", "0")

    config = get_database_config()

    assert config.uri == "postgresql+psycopg://localhost/orders"
    assert config.pool_size == 4
    assert config.pool_timeout_seconds == 2.5
    assert config.statement_timeout_ms == 5000
    assert config.prewarm_delay_seconds == 0.0


@pytest.mark.parametrize(("name", "value"), [("JIGORDERS_POOL_SIZE", "ten"), ("JIGORDERS_POOL_SIZE", "0")])
def test_invalid_numbers_raise(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite+pysqlite:///:memory:")
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigurationError, match=name):
        get_database_config()


def test_retry_policy_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JIGORDERS_RETRY_ATTEMPTS", "5")
    monkeypatch.setenv("JIGORDERS_RETRY_BACKOFF", "0.5")

    policy = get_retry_policy()

    assert policy.attempts == 5
    assert policy.backoff_step_seconds == 0.5


def test_failure_mode(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("JIGORDERS_FAILURE_MODE", raising=False)
    assert get_reconciliation_config().failure_mode is FailureMode.ISOLATE

    monkeypatch.setenv("JIGORDERS_FAILURE_MODE", "FAIL_FAST")
    assert get_reconciliation_config().failure_mode is FailureMode.FAIL_FAST

    monkeypatch.setenv("JIGORDERS_FAILURE_MODE", "sometimes")
    with pytest.raises(ConfigurationError, match="JIGORDERS_FAILURE_MODE"):
        get_reconciliation_config()


def test_missing_configuration_error_lists_names() -> None:
    error = MissingConfigurationError(["JIGORDERS_Z", "JIGORDERS_A"])

    assert error.names == ("JIGORDERS_A", "JIGORDERS_Z")
    assert str(error) == "Missing configuration for: JIGORDERS_A, JIGORDERS_Z"


@pytest.mark.parametrize(
    ("level", "expected"),
    [(logging.INFO, logging.WARNING), (logging.DEBUG, logging.DEBUG)],
)
def test_configure_logging_quiets_library_loggers(level: int, expected: int) -> None:
    configure_logging(level=level, force=True)

    assert logging.getLogger("alembic").level == expected
    assert logging.getLogger("sqlalchemy.engine").level == expected
