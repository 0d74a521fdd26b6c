"""Response envelopes returned by the application services."""

from __future__ import annotations

from datetime import date, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any
from uuid import UUID

from jigorders.domain.model import order_source

if TYPE_CHECKING:
    from collections.abc import Mapping

    from jigorders.domain.errors import BatchValidationError
    from jigorders.domain.model import PersistedOrder


class ErrorCode(StrEnum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"
    NOT_FOUND = "NOT_FOUND"


def jsonable(value: Any) -> Any:
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, UUID | StrEnum):
        return str(value)
    return value


def serialize_order(order: PersistedOrder, *, with_source: bool = False) -> dict[str, Any]:
    data = {name: jsonable(value) for name, value in order.as_dict().items()}
    if with_source:
        data["source"] = order_source(order).value
    return data


def success_response(**fields: Any) -> dict[str, Any]:
    return {"success": True, **fields}


def error_response(
    message: str,
    *,
    code: ErrorCode,
    details: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    response: dict[str, Any] = {"success": False, "error": message, "code": code.value}
    if details:
        response["details"] = dict(details)
    return response


def validation_failure(error: BatchValidationError) -> dict[str, Any]:
    details = {"problems": [problem.as_dict() for problem in error.problems]}
    return error_response(str(error), code=ErrorCode.VALIDATION_ERROR, details=details)
