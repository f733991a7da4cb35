"""Application service: Update Variant use case.

Catalog edits (price, physical stock count, active flag) take the same
variant row lock as reservations, so a recount can never drop the
total below what is currently held.
"""

from __future__ import annotations

import logging

from stockhold.application.dto import VariantLineDTO
from stockhold.application.show_inventory import variant_to_line
from stockhold.domain.exceptions import EntityNotFoundError
from stockhold.domain.model.value_objects import Money
from stockhold.domain.repository.unit_of_work import UnitOfWorkFactory

logger = logging.getLogger(__name__)


class UpdateVariantHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(
        self,
        variant_id: int,
        price: str | int | None = None,
        stock_total: int | None = None,
        active: bool | None = None,
    ) -> VariantLineDTO:
        with self._uow_factory() as uow:
            variant = uow.variants.get_for_update(variant_id)
            if variant is None:
                raise EntityNotFoundError(f"Variant #{variant_id} not found")

            if price is not None:
                variant.update_price(Money.of(price, variant.price.currency))
            if stock_total is not None:
                variant.set_stock_total(stock_total)
            if active is not None:
                variant.active = active

            uow.variants.save(variant)
            uow.commit()

        logger.info(
            "Variant #%s updated (price=%s, total=%d, active=%s)",
            variant_id, variant.price, variant.stock_total, variant.active,
        )
        return variant_to_line(variant)
