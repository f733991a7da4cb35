"""Application service: Expire Reservations use case.

Returns the stock of every ACTIVE reservation whose TTL has elapsed.
Each reservation is expired in its own unit of work so one slow row
never holds the locks of the others, and a crash half-way leaves the
remaining rows for the next run.

Safe to run concurrently with itself: candidates are re-checked under
the reservation lock, and rows another sweeper is already handling are
skipped rather than waited on.
"""

from __future__ import annotations

import logging

from stockhold.application.clock import Clock, utc_now
from stockhold.domain.repository.unit_of_work import UnitOfWorkFactory
from stockhold.domain.service.variant_ledger import VariantLedger

logger = logging.getLogger(__name__)


class ExpireReservationsHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory, clock: Clock = utc_now) -> None:
        self._uow_factory = uow_factory
        self._clock = clock

    def handle(self, variant_id: int | None = None) -> int:
        """Expire stale holds, optionally only those of one variant.

        Returns the number of reservations this call moved to EXPIRED.
        """
        now = self._clock()
        with self._uow_factory() as uow:
            candidates = uow.reservations.list_expired_ids(now, variant_id=variant_id)

        expired = 0
        for reservation_id in candidates:
            if self._expire_one(reservation_id):
                expired += 1

        if expired:
            logger.info("Expired %d stale reservation(s)", expired)
        return expired

    def _expire_one(self, reservation_id: int) -> bool:
        now = self._clock()
        with self._uow_factory() as uow:
            reservation = uow.reservations.get_for_update(reservation_id, skip_locked=True)
            # Gone, locked elsewhere, already finalized or renewed: nothing to do.
            if reservation is None or not reservation.is_active:
                return False
            if not reservation.is_expired_at(now):
                return False

            VariantLedger(uow).release_hold(reservation.variant_id, reservation.quantity)
            reservation.expire()
            uow.reservations.save(reservation)
            uow.commit()

        logger.info(
            "Reservation #%s expired, released %d of variant #%s",
            reservation_id, reservation.quantity, reservation.variant_id,
            extra={"reservation_id": reservation_id},
        )
        return True
