"""Abstract repository for Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from stockhold.domain.model.order import Order


class OrderRepository(ABC):

    @abstractmethod
    def get_by_id(self, order_id: int) -> Order | None:
        """Return an order by its ID, or None if not found."""

    @abstractmethod
    def get_by_reference(self, reference: str) -> Order | None:
        """Return the order carrying an external payment reference."""

    @abstractmethod
    def get_by_reservation_for_update(self, reservation_id: int) -> Order | None:
        """Return the order bound to a reservation and hold its row lock."""

    @abstractmethod
    def list_for_review(self) -> list[Order]:
        """Return orders flagged for operator review."""

    @abstractmethod
    def add(self, order: Order) -> None:
        """Persist a new order and assign its ID."""

    @abstractmethod
    def save(self, order: Order) -> None:
        """Persist changes to a locked order."""
