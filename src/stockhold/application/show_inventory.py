"""Application service: Show Inventory use case (query)."""

from __future__ import annotations

from stockhold.application.dto import VariantLineDTO
from stockhold.domain.model.variant import ProductVariant
from stockhold.domain.repository.unit_of_work import UnitOfWorkFactory


def variant_to_line(variant: ProductVariant) -> VariantLineDTO:
    return VariantLineDTO(
        id=variant.id,  # type: ignore[arg-type]
        sku=variant.sku,
        color=variant.color,
        size=variant.size,
        engraving_code=variant.engraving_code,
        engraving_name=variant.engraving_name,
        price=variant.price.amount,
        total=variant.stock_total,
        reserved=variant.stock_reserved,
        available=variant.available,
        active=variant.active,
    )


class ShowInventoryHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(self, active_only: bool = False) -> list[VariantLineDTO]:
        with self._uow_factory() as uow:
            variants = uow.variants.list_all(active_only=active_only)
        return [variant_to_line(variant) for variant in variants]
