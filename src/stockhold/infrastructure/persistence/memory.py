"""In-process store with the same transactional contract as the database.

Only valid for a single-process deployment: row locks are
``threading.Lock`` objects, one per row, held from the ``*_for_update``
read until commit or rollback. Writes are staged on the unit of work
and become visible together at commit, after the same checks the SQL
schema enforces with constraints.
"""

from __future__ import annotations

import copy
import itertools
import threading
from datetime import datetime
from typing import Any

from stockhold.domain.model.order import Order
from stockhold.domain.model.reservation import ReservationStatus, StockReservation
from stockhold.domain.model.variant import ProductVariant
from stockhold.domain.repository.order_repository import OrderRepository
from stockhold.domain.repository.reservation_repository import ReservationRepository
from stockhold.domain.repository.unit_of_work import UnitOfWork
from stockhold.domain.repository.variant_repository import VariantRepository

VARIANTS = "product_variants"
RESERVATIONS = "stock_reservations"
ORDERS = "orders"


class LockTimeoutError(TimeoutError):
    """A row lock could not be acquired in time."""


class ConstraintViolationError(Exception):
    """A commit would break a storage-level invariant."""


class InMemoryStore:
    """Committed rows plus one lock per row."""

    def __init__(self) -> None:
        self.tables: dict[str, dict[int, Any]] = {
            VARIANTS: {},
            RESERVATIONS: {},
            ORDERS: {},
        }
        self._ids = {name: itertools.count(1) for name in self.tables}
        self._row_locks: dict[tuple[str, int], threading.Lock] = {}
        self.guard = threading.RLock()

    def next_id(self, table: str) -> int:
        with self.guard:
            return next(self._ids[table])

    def row_lock(self, table: str, row_id: int) -> threading.Lock:
        with self.guard:
            return self._row_locks.setdefault((table, row_id), threading.Lock())

    def snapshot(self, table: str) -> list[Any]:
        with self.guard:
            return [copy.deepcopy(row) for _, row in sorted(self.tables[table].items())]


class InMemoryUnitOfWork(UnitOfWork):

    def __init__(self, store: InMemoryStore, lock_timeout: float = 5.0) -> None:
        self._store = store
        self._lock_timeout = lock_timeout
        self._held: dict[tuple[str, int], threading.Lock] = {}
        self._pending: dict[tuple[str, int], Any] = {}

    def __enter__(self) -> InMemoryUnitOfWork:
        self._held = {}
        self._pending = {}
        self.variants = InMemoryVariantRepository(self)
        self.reservations = InMemoryReservationRepository(self)
        self.orders = InMemoryOrderRepository(self)
        return self

    # --- Transaction ----------------------------------------------------------

    def commit(self) -> None:
        with self._store.guard:
            self._check_constraints()
            for (table, row_id), row in self._pending.items():
                self._store.tables[table][row_id] = copy.deepcopy(row)
        self._pending = {}
        self._release()

    def rollback(self) -> None:
        self._pending = {}
        self._release()

    # --- Row access used by the repositories ----------------------------------

    def lock(self, table: str, row_id: int, skip_locked: bool = False) -> bool:
        key = (table, row_id)
        if key in self._held:
            return True
        lock = self._store.row_lock(table, row_id)
        if skip_locked:
            acquired = lock.acquire(blocking=False)
        else:
            acquired = lock.acquire(timeout=self._lock_timeout)
            if not acquired:
                raise LockTimeoutError(f"Timed out waiting for {table} #{row_id}")
        if acquired:
            self._held[key] = lock
        return acquired

    def read(self, table: str, row_id: int) -> Any | None:
        key = (table, row_id)
        if key in self._pending:
            return copy.deepcopy(self._pending[key])
        with self._store.guard:
            row = self._store.tables[table].get(row_id)
            return copy.deepcopy(row)

    def rows(self, table: str) -> list[Any]:
        """Committed rows overlaid with this unit of work's staged writes."""
        with self._store.guard:
            merged = dict(self._store.tables[table])
        for (pending_table, row_id), row in self._pending.items():
            if pending_table == table:
                merged[row_id] = row
        return [copy.deepcopy(row) for _, row in sorted(merged.items())]

    def stage(self, table: str, row: Any) -> None:
        if row.id is None:
            row.id = self._store.next_id(table)
        self._pending[(table, row.id)] = copy.deepcopy(row)

    # --- Internal helpers -----------------------------------------------------

    def _release(self) -> None:
        held, self._held = self._held, {}
        for lock in held.values():
            lock.release()

    def _check_constraints(self) -> None:
        for (table, row_id), row in self._pending.items():
            if table == VARIANTS and not 0 <= row.stock_reserved <= row.stock_total:
                raise ConstraintViolationError(
                    f"Variant #{row_id} counters out of range "
                    f"(total={row.stock_total}, reserved={row.stock_reserved})"
                )
            if table == ORDERS:
                for other_id, other in self._store.tables[ORDERS].items():
                    if other_id == row_id:
                        continue
                    if other.reservation_id == row.reservation_id:
                        raise ConstraintViolationError(
                            f"Reservation #{row.reservation_id} already has an order"
                        )
                    if row.reference and other.reference == row.reference:
                        raise ConstraintViolationError(
                            f"Payment reference {row.reference} already in use"
                        )


class InMemoryVariantRepository(VariantRepository):

    def __init__(self, uow: InMemoryUnitOfWork) -> None:
        self._uow = uow

    def get(self, variant_id: int) -> ProductVariant | None:
        return self._uow.read(VARIANTS, variant_id)

    def get_for_update(self, variant_id: int) -> ProductVariant | None:
        self._uow.lock(VARIANTS, variant_id)
        return self._uow.read(VARIANTS, variant_id)

    def get_by_sku(self, sku: str) -> ProductVariant | None:
        for variant in self._uow.rows(VARIANTS):
            if variant.sku == sku:
                return variant
        return None

    def list_all(self, active_only: bool = False) -> list[ProductVariant]:
        return [v for v in self._uow.rows(VARIANTS) if v.active or not active_only]

    def add(self, variant: ProductVariant) -> None:
        self._uow.stage(VARIANTS, variant)

    def save(self, variant: ProductVariant) -> None:
        self._uow.stage(VARIANTS, variant)


class InMemoryReservationRepository(ReservationRepository):

    def __init__(self, uow: InMemoryUnitOfWork) -> None:
        self._uow = uow

    def get(self, reservation_id: int) -> StockReservation | None:
        return self._uow.read(RESERVATIONS, reservation_id)

    def get_for_update(
        self, reservation_id: int, skip_locked: bool = False
    ) -> StockReservation | None:
        if not self._uow.lock(RESERVATIONS, reservation_id, skip_locked=skip_locked):
            return None
        return self._uow.read(RESERVATIONS, reservation_id)

    def list_expired_ids(
        self, now: datetime, variant_id: int | None = None
    ) -> list[int]:
        return [
            r.id
            for r in self._uow.rows(RESERVATIONS)
            if r.status == ReservationStatus.ACTIVE
            and r.expires_at <= now
            and (variant_id is None or r.variant_id == variant_id)
        ]

    def active_quantity(self, variant_id: int) -> int:
        return sum(
            r.quantity
            for r in self._uow.rows(RESERVATIONS)
            if r.variant_id == variant_id and r.status == ReservationStatus.ACTIVE
        )

    def add(self, reservation: StockReservation) -> None:
        self._uow.stage(RESERVATIONS, reservation)

    def save(self, reservation: StockReservation) -> None:
        self._uow.stage(RESERVATIONS, reservation)


class InMemoryOrderRepository(OrderRepository):

    def __init__(self, uow: InMemoryUnitOfWork) -> None:
        self._uow = uow

    def get_by_id(self, order_id: int) -> Order | None:
        return self._uow.read(ORDERS, order_id)

    def get_by_reference(self, reference: str) -> Order | None:
        for order in self._uow.rows(ORDERS):
            if order.reference == reference:
                return order
        return None

    def get_by_reservation_for_update(self, reservation_id: int) -> Order | None:
        for order in self._uow.rows(ORDERS):
            if order.reservation_id == reservation_id:
                self._uow.lock(ORDERS, order.id)
                return self._uow.read(ORDERS, order.id)
        return None

    def list_for_review(self) -> list[Order]:
        return [o for o in self._uow.rows(ORDERS) if o.review_reason is not None]

    def add(self, order: Order) -> None:
        self._uow.stage(ORDERS, order)

    def save(self, order: Order) -> None:
        self._uow.stage(ORDERS, order)
