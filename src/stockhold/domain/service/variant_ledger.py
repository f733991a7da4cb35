"""Domain service: Variant Ledger.

The only code allowed to touch a variant's stock counters on the
concurrency-critical path. Every operation locks the variant row inside
the caller's unit of work before reading it, so the read-modify-write
of ``stock_reserved`` / ``stock_total`` is serialized per variant.
"""

from __future__ import annotations

import logging

from stockhold.domain.exceptions import EntityNotFoundError
from stockhold.domain.model.variant import ProductVariant
from stockhold.domain.repository.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class VariantLedger:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def try_hold(self, variant_id: int, quantity: int) -> ProductVariant:
        """Reserve ``quantity`` units or raise ``OutOfStockError``.

        The error reports the quantity actually available so the caller
        can offer a smaller hold.
        """
        variant = self._lock(variant_id)
        variant.hold(quantity)
        self._uow.variants.save(variant)
        logger.debug(
            "Held %d of variant #%s (reserved=%d, total=%d)",
            quantity, variant_id, variant.stock_reserved, variant.stock_total,
        )
        return variant

    def release_hold(self, variant_id: int, quantity: int) -> ProductVariant:
        variant = self._lock(variant_id)
        if quantity > variant.stock_reserved:
            logger.warning(
                "Releasing %d of variant #%s but only %d reserved; flooring at zero",
                quantity, variant_id, variant.stock_reserved,
            )
        variant.release(quantity)
        self._uow.variants.save(variant)
        return variant

    def consume(self, variant_id: int, quantity: int) -> ProductVariant:
        """Permanently deduct sold units from total and reserved."""
        variant = self._lock(variant_id)
        variant.consume(quantity)
        self._uow.variants.save(variant)
        logger.debug(
            "Consumed %d of variant #%s (reserved=%d, total=%d)",
            quantity, variant_id, variant.stock_reserved, variant.stock_total,
        )
        return variant

    def _lock(self, variant_id: int) -> ProductVariant:
        variant = self._uow.variants.get_for_update(variant_id)
        if variant is None:
            raise EntityNotFoundError(f"Variant #{variant_id} not found")
        return variant
