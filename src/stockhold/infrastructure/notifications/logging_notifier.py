"""Default notifier: paid orders only show up in the log."""

from __future__ import annotations

import logging

from stockhold.application.dto import OrderDTO
from stockhold.application.notifier import Notifier

logger = logging.getLogger(__name__)


class LoggingNotifier(Notifier):

    def order_paid(self, order: OrderDTO) -> None:
        logger.info(
            "Order #%s paid: %s %s for %s <%s> (%s)",
            order.id, order.total, order.currency,
            order.buyer_name, order.buyer_email, order.delivery_method,
            extra={"order_id": order.id, "reference": order.reference},
        )
