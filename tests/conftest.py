from __future__ import annotations

import random
from typing import TYPE_CHECKING

import pytest

from jigorders.adapters.sqlalchemy.gateway import DatabaseGateway
from jigorders.adapters.sqlalchemy.migrations import upgrade_head
from jigorders.app import OrderService
from jigorders.config import DatabaseConfig, RetryPolicy
from tests.helpers.orders import TickingClock

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def retry_policy(sleeps: list[float]) -> RetryPolicy:
    return RetryPolicy(attempts=3, backoff_step_seconds=0.0, sleep=sleeps.append)


@pytest.fixture
def database_config(tmp_path: Path) -> DatabaseConfig:
    return DatabaseConfig(
        uri=f"sqlite+pysqlite:///{tmp_path / 'orders.db'}",
        prewarm_delay_seconds=0.0,
    )


@pytest.fixture
def gateway(database_config: DatabaseConfig, retry_policy: RetryPolicy) -> Iterator[DatabaseGateway]:
    gateway = DatabaseGateway(database_config, retry_policy)
    upgrade_head(engine=gateway.open())
    try:
        yield gateway
    finally:
        gateway.close()


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def service(gateway: DatabaseGateway, clock: TickingClock) -> OrderService:
    return OrderService(gateway, clock=clock, rng=random.Random(7))
