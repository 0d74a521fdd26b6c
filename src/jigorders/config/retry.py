"""Retry policy for transient storage failures."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Final

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_incrementing,
)

from .env import env_float, env_int

DEFAULT_RETRY_ATTEMPTS: Final[int] = 3
DEFAULT_BACKOFF_STEP_SECONDS: Final[float] = 1.0


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Linear backoff: the n-th retry waits ``n * backoff_step_seconds``."""

    attempts: int = DEFAULT_RETRY_ATTEMPTS
    backoff_step_seconds: float = DEFAULT_BACKOFF_STEP_SECONDS
    sleep: Callable[[float], None] = field(default=time.sleep, compare=False)

    def build(
        self,
        *,
        retry_on: Callable[[BaseException], bool],
        logger: logging.Logger,
    ) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(max(self.attempts, 1)),
            wait=wait_incrementing(
                start=self.backoff_step_seconds,
                increment=self.backoff_step_seconds,
            ),
            retry=retry_if_exception(retry_on),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            sleep=self.sleep,
            reraise=True,
        )


def get_retry_policy() -> RetryPolicy:
    return RetryPolicy(
        attempts=env_int("JIGORDERS_RETRY_ATTEMPTS", DEFAULT_RETRY_ATTEMPTS, minimum=1),
        backoff_step_seconds=env_float("JIGORDERS_RETRY_BACKOFF", DEFAULT_BACKOFF_STEP_SECONDS),
    )
