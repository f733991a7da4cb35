"""Application service: Add Variant use case."""

from __future__ import annotations

from stockhold.application.dto import VariantLineDTO
from stockhold.application.show_inventory import variant_to_line
from stockhold.domain.exceptions import ValidationError
from stockhold.domain.model.value_objects import Money
from stockhold.domain.model.variant import ProductVariant
from stockhold.domain.repository.unit_of_work import UnitOfWorkFactory


class AddVariantHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory, currency: str = "CLP") -> None:
        self._uow_factory = uow_factory
        self._currency = currency

    def handle(
        self,
        sku: str,
        price: str | int,
        stock_total: int,
        color: str | None = None,
        size: str | None = None,
        engraving_code: str | None = None,
        engraving_name: str | None = None,
    ) -> VariantLineDTO:
        """Add a new sellable variant to the catalog."""
        variant = ProductVariant.create(
            sku=sku,
            price=Money.of(price, self._currency),
            stock_total=stock_total,
            color=color,
            size=size,
            engraving_code=engraving_code,
            engraving_name=engraving_name,
        )
        with self._uow_factory() as uow:
            if uow.variants.get_by_sku(variant.sku) is not None:
                raise ValidationError(f"Variant '{variant.sku}' already exists")
            uow.variants.add(variant)
            uow.commit()
        return variant_to_line(variant)
