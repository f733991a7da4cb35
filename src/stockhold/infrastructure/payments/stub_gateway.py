"""Development payment provider: no network, no real money.

The redirect URL points at a configurable stub page. Notifications are
plain JSON bodies such as ``{"reference": "ORD-7", "status": "paid"}``.
"""

from __future__ import annotations

from typing import Any, Mapping
from urllib.parse import urlencode

from stockhold.application.payment_gateway import (
    PaymentGateway,
    PaymentIntent,
    PaymentNotification,
    PaymentOutcome,
    PaymentRequest,
)

_SUCCESS = {"PAID", "APPROVED", "SUCCESS"}
_FAILURE = {"FAILED", "REJECTED", "DECLINED", "CANCELLED"}


class StubPaymentGateway(PaymentGateway):

    name = "stub"

    def __init__(self, base_url: str) -> None:
        self._base_url = base_url

    def create_intent(self, request: PaymentRequest) -> PaymentIntent:
        separator = "&" if "?" in self._base_url else "?"
        query = urlencode({"reference": request.reference, "amount": request.amount})
        return PaymentIntent(
            provider=self.name,
            redirect_url=f"{self._base_url}{separator}{query}",
        )

    def interpret_notification(self, payload: Mapping[str, Any]) -> PaymentNotification:
        status = str(payload.get("status") or "").strip().upper()
        if status in _SUCCESS:
            outcome = PaymentOutcome.SUCCESS
        elif status in _FAILURE:
            outcome = PaymentOutcome.FAILURE
        else:
            outcome = PaymentOutcome.UNKNOWN

        request_id = payload.get("requestId") or payload.get("request_id")
        return PaymentNotification(
            reference=payload.get("reference") or None,
            outcome=outcome,
            correlation_id=str(request_id) if request_id else None,
            raw_status=status or None,
            payload=dict(payload),
        )
