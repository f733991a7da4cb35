"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the CLI / webhook adapters and the application
layer without exposing domain internals. They are frozen, which also
makes them safe read-only snapshots for the notification collaborator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class OrderItemSpec:
    """Input: an item line as sent by the storefront."""

    variant_id: int
    quantity: int


@dataclass(frozen=True)
class ReservationDTO:
    id: int
    variant_id: int
    quantity: int
    status: str
    expires_at: str  # ISO 8601, UTC


@dataclass(frozen=True)
class OrderLineItemDTO:
    variant_id: int
    sku: str
    quantity: int
    unit_price: int
    line_total: int
    color: str | None = None
    size: str | None = None
    engraving_code: str | None = None
    engraving_name: str | None = None


@dataclass(frozen=True)
class OrderDTO:
    """Output: a complete order as handed to the outside world."""

    id: int
    reservation_id: int
    status: str
    buyer_name: str
    buyer_email: str
    buyer_phone: str
    delivery_method: str
    delivery_address: str | None
    items: list[OrderLineItemDTO]
    total: int
    currency: str
    reference: str | None = None
    payment_reference: str | None = None
    paid_at: str | None = None
    review_reason: str | None = None
    notes: str | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class PaymentIntentDTO:
    order_id: int
    reference: str
    provider: str
    redirect_url: str
    request_id: str | None = None


@dataclass(frozen=True)
class VariantLineDTO:
    id: int
    sku: str
    color: str | None
    size: str | None
    engraving_code: str | None
    engraving_name: str | None
    price: int
    total: int
    reserved: int
    available: int
    active: bool


@dataclass(frozen=True)
class Acknowledgement:
    """What the payment-notification endpoint always answers with."""

    ok: bool = True
    detail: dict[str, Any] = field(default_factory=dict)
