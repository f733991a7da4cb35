"""Abstract repository for StockReservation aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from stockhold.domain.model.reservation import StockReservation


class ReservationRepository(ABC):

    @abstractmethod
    def get(self, reservation_id: int) -> StockReservation | None:
        """Return a reservation without locking it, or None."""

    @abstractmethod
    def get_for_update(
        self, reservation_id: int, skip_locked: bool = False
    ) -> StockReservation | None:
        """Return a reservation and hold its row lock.

        With ``skip_locked`` a row already locked by another unit of work
        is reported as None instead of waiting for it.
        """

    @abstractmethod
    def list_expired_ids(
        self, now: datetime, variant_id: int | None = None
    ) -> list[int]:
        """Return IDs of ACTIVE reservations whose ``expires_at`` <= now."""

    @abstractmethod
    def active_quantity(self, variant_id: int) -> int:
        """Sum of quantities held by ACTIVE reservations of a variant."""

    @abstractmethod
    def add(self, reservation: StockReservation) -> None:
        """Persist a new reservation and assign its ID."""

    @abstractmethod
    def save(self, reservation: StockReservation) -> None:
        """Persist changes to a locked reservation."""
