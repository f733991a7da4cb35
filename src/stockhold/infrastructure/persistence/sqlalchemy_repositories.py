"""SQLAlchemy-backed repositories and unit of work.

Row locks are ``SELECT ... FOR UPDATE`` taken inside the session's
transaction and released by its commit or rollback. On SQLite the whole
transaction holds the database write lock instead (see ``database``).
Locked reads use
``populate_existing()`` so a row loaded earlier in the same session is
re-read under the lock rather than served stale from the identity map.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import func
from sqlalchemy.orm import Session, sessionmaker

from stockhold.domain.model.order import Order, OrderLineItem, OrderStatus
from stockhold.domain.model.reservation import ReservationStatus, StockReservation
from stockhold.domain.model.value_objects import (
    BuyerInfo,
    DeliveryInfo,
    DeliveryMethod,
    Money,
    Quantity,
)
from stockhold.domain.model.variant import ProductVariant
from stockhold.domain.repository.order_repository import OrderRepository
from stockhold.domain.repository.reservation_repository import ReservationRepository
from stockhold.domain.repository.unit_of_work import UnitOfWork
from stockhold.domain.repository.variant_repository import VariantRepository
from stockhold.infrastructure.persistence.orm import OrderRow, ReservationRow, VariantRow


def _utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; everything stored is UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class SqlAlchemyVariantRepository(VariantRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    # --- VariantRepository interface ------------------------------------------

    def get(self, variant_id: int) -> ProductVariant | None:
        row = self._session.get(VariantRow, variant_id)
        return self._to_domain(row) if row else None

    def get_for_update(self, variant_id: int) -> ProductVariant | None:
        row = (
            self._session.query(VariantRow)
            .filter(VariantRow.id == variant_id)
            .populate_existing()
            .with_for_update()
            .first()
        )
        return self._to_domain(row) if row else None

    def get_by_sku(self, sku: str) -> ProductVariant | None:
        row = self._session.query(VariantRow).filter(VariantRow.sku == sku).first()
        return self._to_domain(row) if row else None

    def list_all(self, active_only: bool = False) -> list[ProductVariant]:
        query = self._session.query(VariantRow)
        if active_only:
            query = query.filter(VariantRow.active.is_(True))
        rows = query.order_by(
            VariantRow.color, VariantRow.engraving_code, VariantRow.size, VariantRow.id
        ).all()
        return [self._to_domain(row) for row in rows]

    def add(self, variant: ProductVariant) -> None:
        row = VariantRow()
        self._apply(row, variant)
        self._session.add(row)
        self._session.flush()
        variant.id = row.id

    def save(self, variant: ProductVariant) -> None:
        row = self._session.get(VariantRow, variant.id)
        if row is None:
            raise LookupError(f"Variant #{variant.id} is not persisted")
        self._apply(row, variant)
        self._session.flush()

    # --- Mapping --------------------------------------------------------------

    @staticmethod
    def _apply(row: VariantRow, variant: ProductVariant) -> None:
        row.sku = variant.sku
        row.color = variant.color
        row.size = variant.size
        row.engraving_code = variant.engraving_code
        row.engraving_name = variant.engraving_name
        row.price = variant.price.amount
        row.currency = variant.price.currency
        row.stock_total = variant.stock_total
        row.stock_reserved = variant.stock_reserved
        row.active = variant.active

    @staticmethod
    def _to_domain(row: VariantRow) -> ProductVariant:
        return ProductVariant(
            id=row.id,
            sku=row.sku,
            price=Money(row.price, row.currency),
            stock_total=row.stock_total,
            stock_reserved=row.stock_reserved,
            color=row.color,
            size=row.size,
            engraving_code=row.engraving_code,
            engraving_name=row.engraving_name,
            active=bool(row.active),
        )


class SqlAlchemyReservationRepository(ReservationRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    # --- ReservationRepository interface --------------------------------------

    def get(self, reservation_id: int) -> StockReservation | None:
        row = self._session.get(ReservationRow, reservation_id)
        return self._to_domain(row) if row else None

    def get_for_update(
        self, reservation_id: int, skip_locked: bool = False
    ) -> StockReservation | None:
        row = (
            self._session.query(ReservationRow)
            .filter(ReservationRow.id == reservation_id)
            .populate_existing()
            .with_for_update(skip_locked=skip_locked)
            .first()
        )
        return self._to_domain(row) if row else None

    def list_expired_ids(
        self, now: datetime, variant_id: int | None = None
    ) -> list[int]:
        query = self._session.query(ReservationRow.id).filter(
            ReservationRow.status == ReservationStatus.ACTIVE.value,
            ReservationRow.expires_at <= now,
        )
        if variant_id is not None:
            query = query.filter(ReservationRow.variant_id == variant_id)
        return [row_id for (row_id,) in query.order_by(ReservationRow.id).all()]

    def active_quantity(self, variant_id: int) -> int:
        total = (
            self._session.query(func.coalesce(func.sum(ReservationRow.quantity), 0))
            .filter(
                ReservationRow.variant_id == variant_id,
                ReservationRow.status == ReservationStatus.ACTIVE.value,
            )
            .scalar()
        )
        return int(total or 0)

    def add(self, reservation: StockReservation) -> None:
        row = ReservationRow()
        self._apply(row, reservation)
        self._session.add(row)
        self._session.flush()
        reservation.id = row.id

    def save(self, reservation: StockReservation) -> None:
        row = self._session.get(ReservationRow, reservation.id)
        if row is None:
            raise LookupError(f"Reservation #{reservation.id} is not persisted")
        self._apply(row, reservation)
        self._session.flush()

    # --- Mapping --------------------------------------------------------------

    @staticmethod
    def _apply(row: ReservationRow, reservation: StockReservation) -> None:
        row.variant_id = reservation.variant_id
        row.quantity = reservation.quantity
        row.status = reservation.status.value
        row.expires_at = reservation.expires_at
        row.created_at = reservation.created_at or reservation.expires_at

    @staticmethod
    def _to_domain(row: ReservationRow) -> StockReservation:
        return StockReservation(
            id=row.id,
            variant_id=row.variant_id,
            quantity=row.quantity,
            expires_at=_utc(row.expires_at),  # type: ignore[arg-type]
            status=ReservationStatus(row.status),
            created_at=_utc(row.created_at),
        )


class SqlAlchemyOrderRepository(OrderRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    # --- OrderRepository interface --------------------------------------------

    def get_by_id(self, order_id: int) -> Order | None:
        row = self._session.get(OrderRow, order_id)
        return self._to_domain(row) if row else None

    def get_by_reference(self, reference: str) -> Order | None:
        row = self._session.query(OrderRow).filter(OrderRow.reference == reference).first()
        return self._to_domain(row) if row else None

    def get_by_reservation_for_update(self, reservation_id: int) -> Order | None:
        row = (
            self._session.query(OrderRow)
            .filter(OrderRow.reservation_id == reservation_id)
            .populate_existing()
            .with_for_update()
            .first()
        )
        return self._to_domain(row) if row else None

    def list_for_review(self) -> list[Order]:
        rows = (
            self._session.query(OrderRow)
            .filter(OrderRow.review_reason.isnot(None))
            .order_by(OrderRow.updated_at.desc(), OrderRow.id.desc())
            .all()
        )
        return [self._to_domain(row) for row in rows]

    def add(self, order: Order) -> None:
        row = OrderRow()
        self._apply(row, order)
        self._session.add(row)
        self._session.flush()
        order.id = row.id

    def save(self, order: Order) -> None:
        row = self._session.get(OrderRow, order.id)
        if row is None:
            raise LookupError(f"Order #{order.id} is not persisted")
        self._apply(row, order)
        self._session.flush()

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _apply(row: OrderRow, order: Order) -> None:
        total = order.total
        row.reservation_id = order.reservation_id
        row.status = order.status.value
        row.buyer_name = order.buyer.name
        row.buyer_email = order.buyer.email
        row.buyer_phone = order.buyer.phone
        row.delivery_method = order.delivery.method.value
        row.delivery_address = order.delivery.address
        row.notes = order.notes
        row.items = [
            {
                "variant_id": item.variant_id,
                "sku": item.sku,
                "color": item.color,
                "size": item.size,
                "engraving_code": item.engraving_code,
                "engraving_name": item.engraving_name,
                "quantity": item.quantity.value,
                "unit_price": item.unit_price.amount,
                "currency": item.unit_price.currency,
                "line_total": item.line_total.amount,
            }
            for item in order.items
        ]
        row.total = total.amount
        row.currency = total.currency
        row.reference = order.reference
        row.payment_reference = order.payment_reference
        row.paid_at = order.paid_at
        row.review_reason = order.review_reason
        row.created_at = order.created_at
        row.updated_at = order.updated_at or order.created_at

    @staticmethod
    def _to_domain(row: OrderRow) -> Order:
        items = [
            OrderLineItem(
                variant_id=i["variant_id"],
                sku=i["sku"],
                quantity=Quantity(i["quantity"]),
                unit_price=Money(i["unit_price"], i.get("currency", row.currency)),
                color=i.get("color"),
                size=i.get("size"),
                engraving_code=i.get("engraving_code"),
                engraving_name=i.get("engraving_name"),
            )
            for i in row.items
        ]
        return Order(
            id=row.id,
            reservation_id=row.reservation_id,
            buyer=BuyerInfo(row.buyer_name, row.buyer_email, row.buyer_phone),
            delivery=DeliveryInfo(DeliveryMethod(row.delivery_method), row.delivery_address),
            items=items,
            status=OrderStatus(row.status),
            notes=row.notes,
            reference=row.reference,
            payment_reference=row.payment_reference,
            paid_at=_utc(row.paid_at),
            review_reason=row.review_reason,
            created_at=_utc(row.created_at),
            updated_at=_utc(row.updated_at),
        )


class SqlAlchemyUnitOfWork(UnitOfWork):
    """One session, one transaction."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory
        self._session: Session | None = None
        self._committed = False

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        self._session = self._session_factory()
        self._committed = False
        self.variants = SqlAlchemyVariantRepository(self._session)
        self.reservations = SqlAlchemyReservationRepository(self._session)
        self.orders = SqlAlchemyOrderRepository(self._session)
        return self

    def commit(self) -> None:
        if self._session is None:
            raise RuntimeError("unit of work not entered")
        self._session.commit()
        self._committed = True

    def rollback(self) -> None:
        if self._session is not None and not self._committed:
            self._session.rollback()

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None
