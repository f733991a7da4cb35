"""Abstract notification collaborator for paid orders."""

from __future__ import annotations

from abc import ABC, abstractmethod

from stockhold.application.dto import OrderDTO


class Notifier(ABC):

    @abstractmethod
    def order_paid(self, order: OrderDTO) -> None:
        """Tell the store (and the buyer) that an order was paid.

        Runs after the payment is committed; raising here never undoes it.
        """
