"""Plain-text paid-order emails for the store and the buyer."""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage

from stockhold.application.dto import OrderDTO
from stockhold.application.notifier import Notifier

logger = logging.getLogger(__name__)


def render_order_summary(order: OrderDTO) -> str:
    lines = [
        f"Order #{order.id} ({order.reference or 'no reference'})",
        f"Status: {order.status}",
        "",
        f"Buyer: {order.buyer_name}",
        f"Email: {order.buyer_email}",
        f"Phone: {order.buyer_phone}",
        f"Delivery: {order.delivery_method}",
    ]
    if order.delivery_address:
        lines.append(f"Address: {order.delivery_address}")
    lines.append("")
    for item in order.items:
        attrs = " / ".join(
            part
            for part in (item.color, item.size, item.engraving_name or item.engraving_code)
            if part
        )
        label = f"{item.sku} ({attrs})" if attrs else item.sku
        lines.append(
            f"  {label}  x{item.quantity}  {item.unit_price} = {item.line_total}"
        )
    lines.append("")
    lines.append(f"Total: {order.total} {order.currency}")
    if order.notes:
        lines.append(f"Notes: {order.notes}")
    return "\n".join(lines)


class SmtpNotifier(Notifier):
    """Sends one message to the store address and one to the buyer."""

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        store_email: str | None = None,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        timeout: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._sender = sender
        self._store_email = store_email
        self._username = username
        self._password = password
        self._use_tls = use_tls
        self._timeout = timeout

    def order_paid(self, order: OrderDTO) -> None:
        body = render_order_summary(order)
        messages = []
        if self._store_email:
            messages.append(
                self._message(self._store_email, f"New paid order #{order.id}", body)
            )
        if order.buyer_email:
            messages.append(
                self._message(
                    order.buyer_email,
                    f"Your order #{order.id} is confirmed",
                    f"Hi {order.buyer_name},\n\nWe received your payment.\n\n{body}",
                )
            )
        if not messages:
            return

        with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as server:
            if self._use_tls:
                server.starttls()
            if self._username:
                server.login(self._username, self._password or "")
            for msg in messages:
                server.send_message(msg)
                logger.info(
                    "Email sent to %s: %s", msg["To"], msg["Subject"],
                    extra={"order_id": order.id},
                )

    def _message(self, to: str, subject: str, body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self._sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(body)
        return msg
