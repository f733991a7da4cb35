"""Abstract repository for ProductVariant aggregate.

Defined in the domain layer so the domain never depends on
infrastructure. Concrete implementations (SQL, in-process) live in the
infrastructure layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from stockhold.domain.model.variant import ProductVariant


class VariantRepository(ABC):

    @abstractmethod
    def get(self, variant_id: int) -> ProductVariant | None:
        """Return a variant by its ID without locking it, or None."""

    @abstractmethod
    def get_for_update(self, variant_id: int) -> ProductVariant | None:
        """Return a variant and hold its row lock until the unit of work ends."""

    @abstractmethod
    def get_by_sku(self, sku: str) -> ProductVariant | None:
        """Return a variant by its SKU, or None."""

    @abstractmethod
    def list_all(self, active_only: bool = False) -> list[ProductVariant]:
        """Return every variant, ordered for display."""

    @abstractmethod
    def add(self, variant: ProductVariant) -> None:
        """Persist a new variant and assign its ID."""

    @abstractmethod
    def save(self, variant: ProductVariant) -> None:
        """Persist changes to a variant obtained with ``get_for_update``."""
