"""Abstract payment collaborator.

The reconciler's state machine is provider-agnostic: each concrete
provider only knows how to open a checkout session and how to read its
own notification payloads.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class PaymentOutcome(Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class PaymentLine:
    sku: str
    name: str
    quantity: int
    unit_price: int


@dataclass(frozen=True)
class PaymentRequest:
    """Everything the gateway needs to open a checkout for one order."""

    reference: str
    amount: int
    currency: str
    description: str
    buyer_name: str
    buyer_email: str
    buyer_phone: str
    lines: list[PaymentLine]
    return_url: str | None = None
    cancel_url: str | None = None
    delivery_address: str | None = None
    client_ip: str | None = None
    user_agent: str | None = None


@dataclass(frozen=True)
class PaymentIntent:
    provider: str
    redirect_url: str
    request_id: str | None = None


@dataclass(frozen=True)
class PaymentNotification:
    reference: str | None
    outcome: PaymentOutcome
    correlation_id: str | None = None
    raw_status: str | None = None
    payload: Mapping[str, Any] = field(default_factory=dict)


class PaymentGateway(ABC):

    name: str

    @abstractmethod
    def create_intent(self, request: PaymentRequest) -> PaymentIntent:
        """Open a checkout session and return where to send the buyer.

        Raises ``PaymentGatewayError`` if the provider refuses.
        """

    @abstractmethod
    def interpret_notification(self, payload: Mapping[str, Any]) -> PaymentNotification:
        """Translate a provider's webhook body into a PaymentNotification."""
