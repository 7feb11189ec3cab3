from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from taskmarket.core.config import get_settings


class Base(DeclarativeBase):
    """Base class for ORM models."""


def build_engine(database_url: str, **kwargs: Any) -> Engine:
    """Create an engine whose transactions are safe for the ledger's compound writes.

    SQLite transactions are opened with ``BEGIN IMMEDIATE`` so the write lock is
    taken up front and concurrent writers queue behind the busy timeout instead
    of failing on lock upgrade.
    """

    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return create_engine(url, pool_pre_ping=True, **kwargs)

    connect_args = {"check_same_thread": False, "timeout": 30}
    connect_args.update(kwargs.pop("connect_args", {}))
    engine = create_engine(url, connect_args=connect_args, **kwargs)

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, _connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(connection) -> None:
        connection.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


engine = build_engine(get_settings().database_url)

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
    class_=Session,
)


@contextmanager
def transactional_session() -> Generator[Session, None, None]:
    """Provide a transactional scope for a series of database operations."""

    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def expire_cached(db: Session, model: type[Base], pk: int, *attributes: str) -> None:
    """Expire an identity-map instance after a Core-level UPDATE bypassed the ORM."""

    instance = db.identity_map.get(db.identity_key(model, pk))
    if instance is not None:
        db.expire(instance, list(attributes) or None)


@contextmanager
def atomic(db: Session) -> Generator[Session, None, None]:
    """Run a unit of work on an existing session: commit on success, roll back on any error."""

    try:
        yield db
        db.commit()
    except BaseException:
        db.rollback()
        raise
