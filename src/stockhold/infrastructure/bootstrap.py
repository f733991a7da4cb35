"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from sqlalchemy.engine import Engine

from stockhold.application.add_variant import AddVariantHandler
from stockhold.application.audit_stock import AuditStockHandler
from stockhold.application.create_order import CreateOrderHandler
from stockhold.application.create_payment import CreatePaymentHandler
from stockhold.application.expire_reservations import ExpireReservationsHandler
from stockhold.application.finalize_payment import FinalizePaymentHandler
from stockhold.application.notifier import Notifier
from stockhold.application.payment_gateway import PaymentGateway
from stockhold.application.receive_payment_notification import (
    ReceivePaymentNotificationHandler,
)
from stockhold.application.reserve_stock import ReserveStockHandler
from stockhold.application.show_inventory import ShowInventoryHandler
from stockhold.application.show_order import ListReviewQueueHandler, ShowOrderHandler
from stockhold.application.update_variant import UpdateVariantHandler
from stockhold.domain.repository.unit_of_work import UnitOfWorkFactory
from stockhold.infrastructure.config import ConfigurationError, Settings
from stockhold.infrastructure.notifications.logging_notifier import LoggingNotifier
from stockhold.infrastructure.notifications.smtp_notifier import SmtpNotifier
from stockhold.infrastructure.payments.getnet_gateway import GetnetPaymentGateway
from stockhold.infrastructure.payments.stub_gateway import StubPaymentGateway
from stockhold.infrastructure.persistence.database import (
    create_db_engine,
    create_session_factory,
    init_schema,
)
from stockhold.infrastructure.persistence.memory import InMemoryStore, InMemoryUnitOfWork
from stockhold.infrastructure.persistence.sqlalchemy_repositories import (
    SqlAlchemyUnitOfWork,
)
from stockhold.infrastructure.sweeper import ExpirySweeper

# In-process store for embedding and tests; its data dies with the process.
MEMORY_URL = "memory://"

_settings: Settings | None = None
_engine: Engine | None = None
_memory_store: InMemoryStore | None = None


def configure(settings: Settings | None = None) -> Settings:
    """(Re)load settings and drop every cached resource built from them."""
    global _settings, _engine, _memory_store
    if _engine is not None:
        _engine.dispose()
    _settings = settings or Settings.from_env()
    _engine = None
    _memory_store = None
    return _settings


def settings() -> Settings:
    return _settings or configure()


def _db_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = create_db_engine(settings())
    return _engine


# --- Persistence ---------------------------------------------------------------


def unit_of_work_factory() -> UnitOfWorkFactory:
    global _memory_store
    cfg = settings()
    if cfg.database_url == MEMORY_URL:
        if _memory_store is None:
            _memory_store = InMemoryStore()
        store = _memory_store
        timeout = cfg.db_lock_timeout_ms / 1000 or 5.0
        return lambda: InMemoryUnitOfWork(store, lock_timeout=timeout)

    session_factory = create_session_factory(_db_engine())
    return lambda: SqlAlchemyUnitOfWork(session_factory)


def init_database() -> None:
    if settings().database_url != MEMORY_URL:
        init_schema(_db_engine())


# --- Collaborators -------------------------------------------------------------


def payment_gateway() -> PaymentGateway:
    cfg = settings()
    if cfg.pay_provider == "stub":
        return StubPaymentGateway(cfg.stub_pay_url)
    if cfg.pay_provider == "getnet":
        if not (cfg.getnet_base_url and cfg.getnet_login and cfg.getnet_secret_key):
            raise ConfigurationError(
                "GETNET_BASE_URL, GETNET_LOGIN and GETNET_SECRETKEY are required "
                "for the getnet provider"
            )
        return GetnetPaymentGateway(
            base_url=cfg.getnet_base_url,
            login=cfg.getnet_login,
            secret_key=cfg.getnet_secret_key,
            return_url=cfg.return_url,
            session_ttl=cfg.payment_session_ttl,
        )
    raise ConfigurationError(f"Unknown payment provider {cfg.pay_provider!r}")


def notifier() -> Notifier:
    cfg = settings()
    if cfg.notifier == "log":
        return LoggingNotifier()
    if cfg.notifier == "smtp":
        return SmtpNotifier(
            host=cfg.smtp_host,
            port=cfg.smtp_port,
            sender=cfg.smtp_from,
            store_email=cfg.store_email,
            username=cfg.smtp_username,
            password=cfg.smtp_password,
            use_tls=cfg.smtp_use_tls,
        )
    raise ConfigurationError(f"Unknown notifier {cfg.notifier!r}")


# --- Use cases -----------------------------------------------------------------


def reserve_stock_handler() -> ReserveStockHandler:
    return ReserveStockHandler(unit_of_work_factory(), ttl=settings().reservation_ttl)


def expire_reservations_handler() -> ExpireReservationsHandler:
    return ExpireReservationsHandler(unit_of_work_factory())


def create_order_handler() -> CreateOrderHandler:
    return CreateOrderHandler(unit_of_work_factory())


def create_payment_handler() -> CreatePaymentHandler:
    cfg = settings()
    return CreatePaymentHandler(
        unit_of_work_factory(),
        payment_gateway(),
        return_url=cfg.return_url,
        cancel_url=cfg.cancel_url,
    )


def receive_payment_notification_handler() -> ReceivePaymentNotificationHandler:
    uow_factory = unit_of_work_factory()
    return ReceivePaymentNotificationHandler(
        uow_factory,
        payment_gateway(),
        FinalizePaymentHandler(uow_factory),
        notifier(),
    )


def add_variant_handler() -> AddVariantHandler:
    return AddVariantHandler(unit_of_work_factory(), currency=settings().currency)


def update_variant_handler() -> UpdateVariantHandler:
    return UpdateVariantHandler(unit_of_work_factory())


def show_inventory_handler() -> ShowInventoryHandler:
    return ShowInventoryHandler(unit_of_work_factory())


def show_order_handler() -> ShowOrderHandler:
    return ShowOrderHandler(unit_of_work_factory())


def review_queue_handler() -> ListReviewQueueHandler:
    return ListReviewQueueHandler(unit_of_work_factory())


def audit_stock_handler() -> AuditStockHandler:
    return AuditStockHandler(unit_of_work_factory())


def expiry_sweeper() -> ExpirySweeper:
    return ExpirySweeper(
        expire_reservations_handler(), interval_seconds=settings().sweep_interval_seconds
    )
