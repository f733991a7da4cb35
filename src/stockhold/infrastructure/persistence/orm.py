"""SQLAlchemy table definitions.

The storage layer enforces what it can on its own: non-negative
counters, ``stock_reserved <= stock_total``, positive reservation
quantities, one order per reservation and unique payment references.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class VariantRow(Base):
    __tablename__ = "product_variants"
    __table_args__ = (
        CheckConstraint("stock_total >= 0", name="ck_variant_stock_total_non_negative"),
        CheckConstraint("stock_reserved >= 0", name="ck_variant_stock_reserved_non_negative"),
        CheckConstraint("stock_reserved <= stock_total", name="ck_variant_reserved_within_total"),
        CheckConstraint("price >= 0", name="ck_variant_price_non_negative"),
    )

    id = Column(Integer, primary_key=True)
    sku = Column(String(64), unique=True, nullable=False, index=True)
    color = Column(String(64), nullable=True)
    size = Column(String(32), nullable=True)
    engraving_code = Column(String(64), nullable=True)
    engraving_name = Column(String(128), nullable=True)
    price = Column(Integer, nullable=False)  # minor currency units
    currency = Column(String(3), nullable=False, default="CLP")
    stock_total = Column(Integer, nullable=False, default=0)
    stock_reserved = Column(Integer, nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class ReservationRow(Base):
    __tablename__ = "stock_reservations"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_reservation_quantity_positive"),
    )

    id = Column(Integer, primary_key=True)
    variant_id = Column(Integer, ForeignKey("product_variants.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    status = Column(String(16), nullable=False, default="active", index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)


class OrderRow(Base):
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("total >= 0", name="ck_order_total_non_negative"),
    )

    id = Column(Integer, primary_key=True)
    reservation_id = Column(
        Integer, ForeignKey("stock_reservations.id"), unique=True, nullable=False
    )
    status = Column(String(32), nullable=False, default="pending_payment", index=True)
    buyer_name = Column(String(255), nullable=False)
    buyer_email = Column(String(255), nullable=False)
    buyer_phone = Column(String(64), nullable=False)
    delivery_method = Column(String(16), nullable=False)
    delivery_address = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    items = Column(JSON, nullable=False)
    total = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="CLP")
    reference = Column(String(32), unique=True, nullable=True)
    payment_reference = Column(String(255), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    review_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
