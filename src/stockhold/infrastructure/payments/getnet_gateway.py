"""Getnet Web Checkout provider.

Sessions are opened with a POST to ``{base_url}/api/session``. Every
request carries WSSE-style credentials::

    tranKey = Base64(SHA-256(nonce + seed + secretKey))

where ``nonce`` is 16 random bytes (sent Base64-encoded) and ``seed`` is
the current time in ISO 8601. Notifications report the session status
either as a string or as ``{"status": ..., "reason": ...}``, at the top
level or nested under ``data`` / ``notifyData``.
"""

from __future__ import annotations

import base64
import hashlib
import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Mapping

import requests

from stockhold.application.payment_gateway import (
    PaymentGateway,
    PaymentIntent,
    PaymentNotification,
    PaymentOutcome,
    PaymentRequest,
)
from stockhold.domain.exceptions import PaymentGatewayError

logger = logging.getLogger(__name__)

APPROVED = "APPROVED"
FAILED_STATUSES = frozenset({"REJECTED", "FAILED"})

DEFAULT_TIMEOUT_SECONDS = 15


def build_auth(
    login: str,
    secret_key: str,
    now: datetime,
    nonce: bytes | None = None,
) -> dict[str, str]:
    """Credentials block for one Getnet request."""
    nonce = nonce if nonce is not None else os.urandom(16)
    seed = now.astimezone(timezone.utc).isoformat()
    digest = hashlib.sha256(nonce + seed.encode("utf-8") + secret_key.encode("utf-8"))
    return {
        "login": login,
        "tranKey": base64.b64encode(digest.digest()).decode("ascii"),
        "nonce": base64.b64encode(nonce).decode("ascii"),
        "seed": seed,
    }


def _status_of(container: Any) -> str | None:
    if not isinstance(container, Mapping):
        return None
    status = container.get("status")
    if isinstance(status, Mapping):
        status = status.get("status")
    return str(status) if status else None


class GetnetPaymentGateway(PaymentGateway):

    name = "getnet"

    def __init__(
        self,
        base_url: str,
        login: str,
        secret_key: str,
        return_url: str | None = None,
        session_ttl: timedelta = timedelta(minutes=15),
        locale: str = "es_CL",
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        http: Any = requests,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._login = login
        self._secret_key = secret_key
        self._return_url = return_url
        self._session_ttl = session_ttl
        self._locale = locale
        self._timeout = timeout
        self._http = http
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # --- Session creation -----------------------------------------------------

    def create_intent(self, request: PaymentRequest) -> PaymentIntent:
        if not request.client_ip:
            raise PaymentGatewayError("Getnet requires the buyer's IP address")
        if not request.user_agent:
            raise PaymentGatewayError("Getnet requires the buyer's user agent")
        return_url = request.return_url or self._return_url
        if not return_url:
            raise PaymentGatewayError("Getnet requires a return URL")

        body = self._session_body(request, return_url)
        url = f"{self._base_url}/api/session"
        try:
            resp = self._http.post(url, json=body, timeout=self._timeout)
        except requests.exceptions.RequestException as exc:
            raise PaymentGatewayError(f"Getnet is unavailable: {exc}") from exc

        try:
            data = resp.json()
        except ValueError:
            data = {}

        if resp.status_code >= 400:
            logger.warning(
                "Getnet refused session for %s: HTTP %s %s",
                request.reference, resp.status_code, data,
                extra={"reference": request.reference},
            )
            raise PaymentGatewayError(
                f"Getnet session failed with HTTP {resp.status_code}"
            )

        process_url = data.get("processUrl")
        request_id = data.get("requestId")
        if not process_url or not request_id:
            raise PaymentGatewayError("Getnet response lacks processUrl or requestId")

        return PaymentIntent(
            provider=self.name,
            redirect_url=process_url,
            request_id=str(request_id),
        )

    def _session_body(self, request: PaymentRequest, return_url: str) -> dict[str, Any]:
        now = self._clock()
        payer: dict[str, Any] = {
            "name": request.buyer_name,
            "email": request.buyer_email,
            "mobile": request.buyer_phone,
        }
        if request.delivery_address:
            payer["address"] = {"street": request.delivery_address}

        return {
            "auth": build_auth(self._login, self._secret_key, now),
            "locale": self._locale,
            "ipAddress": request.client_ip,
            "userAgent": request.user_agent,
            "expiration": (now + self._session_ttl).astimezone(timezone.utc).isoformat(),
            "payment": {
                "reference": request.reference,
                "description": request.description,
                "amount": {"currency": request.currency, "total": request.amount},
                "allowPartial": False,
                "items": [
                    {
                        "sku": line.sku,
                        "name": line.name,
                        "quantity": line.quantity,
                        "price": line.unit_price,
                    }
                    for line in request.lines
                ],
            },
            "payer": payer,
            "returnUrl": return_url,
            "cancelUrl": request.cancel_url or return_url,
        }

    # --- Notifications --------------------------------------------------------

    def interpret_notification(self, payload: Mapping[str, Any]) -> PaymentNotification:
        data = payload.get("data") if isinstance(payload.get("data"), Mapping) else {}
        reference = (
            payload.get("reference")
            or data.get("reference")
            or payload.get("buyOrder")
            or payload.get("buy_order")
        )
        status = (
            _status_of(payload)
            or _status_of(data)
            or _status_of(payload.get("notifyData"))
            or ""
        ).upper()
        request_id = (
            payload.get("requestId")
            or payload.get("request_id")
            or data.get("requestId")
            or data.get("request_id")
        )

        if status == APPROVED:
            outcome = PaymentOutcome.SUCCESS
        elif status in FAILED_STATUSES:
            outcome = PaymentOutcome.FAILURE
        else:
            outcome = PaymentOutcome.UNKNOWN

        return PaymentNotification(
            reference=str(reference) if reference else None,
            outcome=outcome,
            correlation_id=str(request_id) if request_id else None,
            raw_status=status or None,
            payload=dict(payload),
        )
