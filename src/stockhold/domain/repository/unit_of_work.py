"""Abstract unit of work: one database transaction.

Every core operation opens a unit of work, locks the rows it mutates
through the ``*_for_update`` repository methods, and commits. Leaving the
``with`` block without ``commit()`` (including by exception) rolls back
every change and releases every lock.

Lock order across the codebase: reservation -> variant -> order.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

from stockhold.domain.repository.order_repository import OrderRepository
from stockhold.domain.repository.reservation_repository import ReservationRepository
from stockhold.domain.repository.variant_repository import VariantRepository


class UnitOfWork(ABC):

    variants: VariantRepository
    reservations: ReservationRepository
    orders: OrderRepository

    def __enter__(self) -> UnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.rollback()
        self.close()

    @abstractmethod
    def commit(self) -> None:
        """Make every change visible and release all row locks."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard uncommitted changes. A no-op after ``commit()``."""

    def close(self) -> None:
        """Release the underlying connection."""


UnitOfWorkFactory = Callable[[], UnitOfWork]
