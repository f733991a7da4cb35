"""StockReservation aggregate: a time-boxed hold on a variant's stock."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

from stockhold.domain.exceptions import InvalidStatusError
from stockhold.domain.model.value_objects import Quantity


class ReservationStatus(Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    CONSUMED = "consumed"


DEFAULT_TTL = timedelta(minutes=15)


@dataclass
class StockReservation:
    """A hold of ``quantity`` units of one variant until ``expires_at``.

    Lifecycle: ACTIVE -> EXPIRED (swept, or payment explicitly failed)
    and ACTIVE -> CONSUMED (payment succeeded). Both targets are final.
    """

    id: int | None
    variant_id: int
    quantity: int
    expires_at: datetime
    status: ReservationStatus = ReservationStatus.ACTIVE
    created_at: datetime | None = field(default=None)

    @staticmethod
    def create(
        variant_id: int,
        quantity: int,
        now: datetime,
        ttl: timedelta = DEFAULT_TTL,
    ) -> StockReservation:
        Quantity(quantity)
        return StockReservation(
            id=None,
            variant_id=variant_id,
            quantity=quantity,
            expires_at=now + ttl,
            created_at=now,
        )

    # --- Queries --------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self.status == ReservationStatus.ACTIVE

    def is_expired_at(self, now: datetime) -> bool:
        return self.expires_at <= now

    def is_live_at(self, now: datetime) -> bool:
        """True while the hold is active and its TTL has not elapsed."""
        return self.is_active and not self.is_expired_at(now)

    # --- State transitions ----------------------------------------------------

    def expire(self) -> None:
        self._require_active()
        self.status = ReservationStatus.EXPIRED

    def consume(self) -> None:
        self._require_active()
        self.status = ReservationStatus.CONSUMED

    def _require_active(self) -> None:
        if not self.is_active:
            raise InvalidStatusError(
                f"Reservation #{self.id}",
                ReservationStatus.ACTIVE.value,
                self.status.value,
            )
