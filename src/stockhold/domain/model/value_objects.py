"""Value Objects shared across the domain.

Value Objects are immutable and compared by value, not identity.
They encapsulate validation so invalid values can never exist.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from stockhold.domain.exceptions import ValidationError


@dataclass(frozen=True)
class Money:
    """Monetary amount in minor currency units.

    Amounts are whole integers (cents, or pesos for zero-decimal
    currencies) so arithmetic never rounds.
    """

    amount: int
    currency: str = "CLP"

    def __post_init__(self) -> None:
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise ValidationError(
                f"Money amount must be an integer, got {type(self.amount).__name__}"
            )
        if self.amount < 0:
            raise ValidationError(
                f"Money amount cannot be negative, got {self.amount}"
            )

    # --- Arithmetic helpers ---------------------------------------------------

    def __add__(self, other: Money) -> Money:
        self._assert_same_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def __mul__(self, factor: int) -> Money:
        if not isinstance(factor, int):
            raise TypeError(f"Can only multiply Money by int, got {type(factor).__name__}")
        return Money(self.amount * factor, self.currency)

    def __lt__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount < other.amount

    def __le__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount <= other.amount

    # --- Display --------------------------------------------------------------

    def __str__(self) -> str:
        return f"{self.amount} {self.currency}"

    # --- Internal helpers -----------------------------------------------------

    def _assert_same_currency(self, other: Money) -> None:
        if self.currency != other.currency:
            raise ValidationError(
                f"Cannot combine {self.currency} with {other.currency}"
            )

    # --- Factory --------------------------------------------------------------

    @staticmethod
    def zero(currency: str = "CLP") -> Money:
        return Money(0, currency)

    @staticmethod
    def of(amount: str | int, currency: str = "CLP") -> Money:
        """Convenient factory that coerces CLI/webhook input safely."""
        try:
            return Money(int(str(amount).strip()), currency)
        except ValueError as exc:
            raise ValidationError(f"Invalid money amount: {amount!r}") from exc


@dataclass(frozen=True)
class Quantity:
    """A positive integer quantity.

    Enforces the invariant that you cannot hold zero or negative units.
    """

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValidationError(
                f"Quantity must be an integer, got {type(self.value).__name__}"
            )
        if self.value <= 0:
            raise ValidationError("Quantity must be positive")

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class BuyerInfo:
    """Contact details of the person paying for an order."""

    name: str
    email: str
    phone: str

    def __post_init__(self) -> None:
        missing = [
            field_name
            for field_name in ("name", "email", "phone")
            if not (getattr(self, field_name) or "").strip()
        ]
        if missing:
            raise ValidationError(
                f"Missing buyer data: {', '.join(missing)}"
            )

    @staticmethod
    def of(name: str | None, email: str | None, phone: str | None) -> BuyerInfo:
        return BuyerInfo(
            name=(name or "").strip(),
            email=(email or "").strip(),
            phone=(phone or "").strip(),
        )


class DeliveryMethod(Enum):
    PICKUP = "pickup"
    SHIP = "ship"

    @staticmethod
    def parse(raw: str | None) -> DeliveryMethod:
        """Map the storefront's delivery vocabulary onto a method."""
        key = (raw or "").strip().lower()
        if key in _PICKUP_ALIASES:
            return DeliveryMethod.PICKUP
        if key in _SHIP_ALIASES:
            return DeliveryMethod.SHIP
        raise ValidationError(f"Invalid delivery method: {raw!r}")


_PICKUP_ALIASES = frozenset(
    {"pickup", "pick_up", "retiro", "retira", "retirar", "retiro_en_tienda"}
)
_SHIP_ALIASES = frozenset(
    {
        "ship",
        "shipping",
        "delivery",
        "envio",
        "envío",
        "despacho",
        "envio_por_pagar",
        "envio por pagar",
        "envío por pagar",
    }
)


@dataclass(frozen=True)
class DeliveryInfo:
    """How the buyer receives the goods.

    Invariant: an address is present if and only if the order ships.
    """

    method: DeliveryMethod
    address: str | None = None

    def __post_init__(self) -> None:
        if self.method == DeliveryMethod.SHIP and not (self.address or "").strip():
            raise ValidationError("Delivery address is required for shipping")

    @staticmethod
    def of(method: str | None, address: str | None = None) -> DeliveryInfo:
        parsed = DeliveryMethod.parse(method)
        if parsed == DeliveryMethod.PICKUP:
            return DeliveryInfo(parsed, None)
        return DeliveryInfo(parsed, (address or "").strip() or None)
