"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.
Every error carries a machine-readable ``code`` plus whatever payload the
caller needs to react (available stock, expected vs. actual status).
"""

from __future__ import annotations

from typing import Any


class DomainException(Exception):
    """Base class for all domain errors."""

    code = "domain_error"

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "message": str(self)}


class ValidationError(DomainException):
    """A business rule or invariant was violated."""

    code = "validation_error"


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""

    code = "not_found"


class ConflictError(DomainException):
    """The request is valid but conflicts with the current state."""

    code = "conflict"


class OutOfStockError(ConflictError):
    """Not enough unreserved stock to satisfy a hold."""

    code = "out_of_stock"

    def __init__(self, variant_id: int, requested: int, available: int) -> None:
        super().__init__(
            f"Insufficient stock for variant #{variant_id} "
            f"(need {requested}, have {available} available)"
        )
        self.variant_id = variant_id
        self.requested = requested
        self.available = available

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload.update(
            variant_id=self.variant_id,
            requested=self.requested,
            available=self.available,
        )
        return payload


class ReservationInactiveError(ConflictError):
    """The reservation is expired or already in a terminal state."""

    code = "reservation_expired_or_inactive"

    def __init__(self, reservation_id: int, status: str, expires_at: str) -> None:
        super().__init__(
            f"Reservation #{reservation_id} is not active "
            f"(status={status}, expires_at={expires_at})"
        )
        self.reservation_id = reservation_id
        self.status = status
        self.expires_at = expires_at

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload.update(
            reservation_id=self.reservation_id,
            status=self.status,
            expires_at=self.expires_at,
        )
        return payload


class InvalidStatusError(ConflictError):
    """An entity is not in the status the operation requires."""

    code = "invalid_status"

    def __init__(self, entity: str, expected: str, actual: str) -> None:
        super().__init__(
            f"{entity} is {actual}, expected {expected}"
        )
        self.entity = entity
        self.expected = expected
        self.actual = actual

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload.update(expected=self.expected, actual=self.actual)
        return payload


class PaymentGatewayError(DomainException):
    """The payment collaborator refused or failed to create an intent."""

    code = "payment_gateway_error"
