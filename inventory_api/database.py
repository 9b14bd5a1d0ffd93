"""
Inventory API — Database Engine & Session Factory
Supports SQLite (local dev) and PostgreSQL / SQL Server (production).
"""

from __future__ import annotations

import logging
from typing import Generator

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger("inventory_api.database")


class Base(DeclarativeBase):
    """Shared declarative base for all ORM models."""

    pass


def build_engine(database_url: str) -> Engine:
    """Construct SQLAlchemy engine with appropriate settings for URL type."""
    is_sqlite = database_url.startswith("sqlite")

    if is_sqlite:
        kwargs = {
            "connect_args": {"check_same_thread": False, "timeout": 30},
            "echo": False,
        }
        # A private in-memory database only survives on a single connection
        if ":memory:" in database_url or database_url == "sqlite://":
            kwargs["poolclass"] = StaticPool
        engine = create_engine(database_url, **kwargs)

        @event.listens_for(engine, "connect")
        def set_sqlite_pragmas(dbapi_conn, _connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute("PRAGMA synchronous=NORMAL")
            cursor.close()

    else:
        engine = create_engine(
            database_url,
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,
            echo=False,
        )

    return engine


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields a SQLAlchemy Session from the
    factory the app was built with. The session is closed after the request.

    Usage:
        @router.get("/example")
        def example(db: Session = Depends(get_db)):
            ...
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def init_db(engine: Engine) -> None:
    """
    Create all tables defined in all model modules.
    Called by the app lifespan and by scripts/init_db.py.
    """
    # Import all models so their table definitions are registered on Base.metadata
    from inventory_api.models import catalog, users  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("database schema ready (%d tables)", len(Base.metadata.tables))
