"""Application service: Reserve Stock use case.

Creates a time-boxed hold on a variant. Stale holds on the same variant
are expired first, so a request is never refused because of stock
still counted against a reservation whose TTL already elapsed.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from stockhold.application.clock import Clock, utc_now
from stockhold.application.dto import ReservationDTO
from stockhold.application.expire_reservations import ExpireReservationsHandler
from stockhold.application.mapping import reservation_to_dto
from stockhold.domain.model.reservation import DEFAULT_TTL, StockReservation
from stockhold.domain.model.value_objects import Quantity
from stockhold.domain.repository.unit_of_work import UnitOfWorkFactory
from stockhold.domain.service.variant_ledger import VariantLedger

logger = logging.getLogger(__name__)


class ReserveStockHandler:

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        ttl: timedelta = DEFAULT_TTL,
        clock: Clock = utc_now,
    ) -> None:
        self._uow_factory = uow_factory
        self._ttl = ttl
        self._clock = clock
        self._expirer = ExpireReservationsHandler(uow_factory, clock)

    def handle(self, variant_id: int, quantity: int) -> ReservationDTO:
        """Hold ``quantity`` units of a variant.

        Raises ``OutOfStockError`` (with the available quantity) when the
        hold cannot be satisfied; nothing is written in that case.
        """
        Quantity(quantity)

        self._expirer.handle(variant_id=variant_id)

        with self._uow_factory() as uow:
            now = self._clock()
            VariantLedger(uow).try_hold(variant_id, quantity)
            reservation = StockReservation.create(variant_id, quantity, now, self._ttl)
            uow.reservations.add(reservation)
            uow.commit()

        logger.info(
            "Reservation #%s holds %d of variant #%s until %s",
            reservation.id, quantity, variant_id, reservation.expires_at.isoformat(),
            extra={"reservation_id": reservation.id},
        )
        return reservation_to_dto(reservation)
