"""
Newsroom - Database Configuration

SQLModel database setup with connection pooling.
Supports PostgreSQL (production) and SQLite (development and tests).

Usage:
    from newsroom.database import get_engine, init_db

    engine = get_engine()
    init_db(engine)  # Creates tables
"""

from typing import Generator

from fastapi import Request
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from newsroom.config import settings


def get_engine(database_url: str = None, echo: bool = False):
    """
    Create SQLAlchemy engine with appropriate configuration.

    Args:
        database_url: Override database URL
        echo: Log SQL statements

    Returns:
        SQLAlchemy Engine
    """
    url = database_url or settings.DATABASE_URL

    if url.startswith("sqlite"):
        # A single shared connection keeps in-memory databases alive
        return create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    return create_engine(
        url,
        echo=echo,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
    )


def init_db(engine) -> None:
    """
    Create all tables for accounts and content.

    Safe to call multiple times (uses CREATE IF NOT EXISTS).
    """
    # Import models to register them with SQLModel
    from newsroom.auth import models as _auth_models  # noqa: F401
    from newsroom.content import models as _content_models  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session_factory(engine):
    """
    Create a session factory bound to engine.

    Returns:
        Callable that creates new database sessions
    """
    def session_factory() -> Session:
        return Session(engine)

    return session_factory


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    FastAPI dependency yielding a request-scoped session.

    The factory is installed on app.state during startup (or by tests).
    """
    db = request.app.state.db_session_factory()
    try:
        yield db
    finally:
        db.close()
