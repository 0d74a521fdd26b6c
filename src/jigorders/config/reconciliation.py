"""Reconciliation engine settings."""

from __future__ import annotations

import os
from dataclasses import dataclass

from jigorders.domain.reconciliation.contracts import FailureMode

from .errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class ReconciliationConfig:
    failure_mode: FailureMode = FailureMode.ISOLATE


def get_reconciliation_config() -> ReconciliationConfig:
    raw = os.getenv("JIGORDERS_FAILURE_MODE")
    if raw is None or not raw.strip():
        return ReconciliationConfig()
    try:
        mode = FailureMode(raw.strip().lower())
    except ValueError as exc:
        choices = ", ".join(member.value for member in FailureMode)
        raise ConfigurationError(
            f"JIGORDERS_FAILURE_MODE must be one of {choices}, got {raw!r}"
        ) from exc
    return ReconciliationConfig(failure_mode=mode)
