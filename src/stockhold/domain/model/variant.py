"""ProductVariant aggregate: a sellable configuration and its stock counters.

Each variant knows the total physical quantity in stock and how much of
it is currently held by active reservations.
"""

from __future__ import annotations

from dataclasses import dataclass

from stockhold.domain.exceptions import OutOfStockError, ValidationError
from stockhold.domain.model.value_objects import Money


@dataclass
class ProductVariant:
    """Aggregate root for stock tracking.

    Invariants:
    - ``stock_reserved`` can never exceed ``stock_total``
    - ``available`` is always >= 0
    """

    id: int | None
    sku: str
    price: Money
    stock_total: int
    stock_reserved: int = 0
    color: str | None = None
    size: str | None = None
    engraving_code: str | None = None
    engraving_name: str | None = None
    active: bool = True

    @staticmethod
    def create(
        sku: str,
        price: Money,
        stock_total: int,
        color: str | None = None,
        size: str | None = None,
        engraving_code: str | None = None,
        engraving_name: str | None = None,
    ) -> ProductVariant:
        if not sku or not sku.strip():
            raise ValidationError("SKU is required")
        if stock_total < 0:
            raise ValidationError("Stock total cannot be negative")
        return ProductVariant(
            id=None,
            sku=sku.strip(),
            price=price,
            stock_total=stock_total,
            color=color,
            size=size,
            engraving_code=engraving_code,
            engraving_name=engraving_name,
        )

    @property
    def available(self) -> int:
        return self.stock_total - self.stock_reserved

    def hold(self, quantity: int) -> None:
        """Move ``quantity`` units from available to reserved."""
        if quantity <= 0:
            raise ValidationError("Hold quantity must be positive")
        if not self.active:
            raise ValidationError(f"Variant {self.sku} is not available for sale")
        if quantity > self.available:
            raise OutOfStockError(self.id, quantity, self.available)  # type: ignore[arg-type]
        self.stock_reserved += quantity

    def release(self, quantity: int) -> None:
        """Return held units to the pool, never dropping below zero."""
        if quantity <= 0:
            raise ValidationError("Release quantity must be positive")
        self.stock_reserved = max(self.stock_reserved - quantity, 0)

    def consume(self, quantity: int) -> None:
        """Permanently remove sold stock.

        Both ``stock_total`` and ``stock_reserved`` decrease by the same
        amount: the units leave the warehouse and the hold ends.
        """
        if quantity <= 0:
            raise ValidationError("Consume quantity must be positive")
        if quantity > self.stock_reserved or quantity > self.stock_total:
            raise ValidationError(
                f"Cannot consume {quantity} of {self.sku} "
                f"(total={self.stock_total}, reserved={self.stock_reserved})"
            )
        self.stock_reserved -= quantity
        self.stock_total -= quantity

    # --- Catalog adjustments --------------------------------------------------

    def set_stock_total(self, stock_total: int) -> None:
        if stock_total < 0:
            raise ValidationError("Stock total cannot be negative")
        if stock_total < self.stock_reserved:
            raise ValidationError(
                f"Cannot set stock of {self.sku} to {stock_total} "
                f"below the {self.stock_reserved} units currently reserved"
            )
        self.stock_total = stock_total

    def update_price(self, new_price: Money) -> None:
        """Change the price.

        Existing orders are unaffected: they froze the price at
        order-creation time.
        """
        self.price = new_price
