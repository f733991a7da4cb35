"""Engine and session factory construction.

PostgreSQL connections get a statement and lock timeout so a stalled
transaction cannot keep a variant row locked indefinitely.

SQLite has no row locks and drops ``FOR UPDATE``. Its transactions are
opened with ``BEGIN IMMEDIATE`` instead, which takes the database write
lock before the first read, so units of work run one at a time.
"""

from __future__ import annotations

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from stockhold.infrastructure.config import Settings
from stockhold.infrastructure.persistence.orm import Base


def create_db_engine(settings: Settings) -> Engine:
    url = settings.database_url
    if url.startswith("postgresql"):
        options = (
            f"-c statement_timeout={settings.db_statement_timeout_ms} "
            f"-c lock_timeout={settings.db_lock_timeout_ms}"
        )
        return create_engine(url, pool_pre_ping=True, connect_args={"options": options})

    if url.startswith("sqlite"):
        connect_args = {
            "check_same_thread": False,
            "timeout": settings.db_lock_timeout_ms / 1000,
        }
        if url in ("sqlite://", "sqlite:///:memory:"):
            engine = create_engine(url, connect_args=connect_args, poolclass=StaticPool)
        else:
            engine = create_engine(url, connect_args=connect_args)
        _serialize_sqlite_transactions(engine)
        return engine

    return create_engine(url, pool_pre_ping=True)


def _serialize_sqlite_transactions(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        # pysqlite would otherwise defer BEGIN until the first write.
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_schema(engine: Engine) -> None:
    Base.metadata.create_all(engine)
