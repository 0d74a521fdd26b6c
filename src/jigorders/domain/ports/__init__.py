"""Ports implemented by storage adapters."""

from __future__ import annotations

from .persistence import OrderPage, OrderRepository, OrderSummary, RelatedEntityReader
from .unit_of_work import OrderUnitOfWork, OrderUnitOfWorkFactory

__all__ = [
    "OrderPage",
    "OrderRepository",
    "OrderSummary",
    "OrderUnitOfWork",
    "OrderUnitOfWorkFactory",
    "RelatedEntityReader",
]
