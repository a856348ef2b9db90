"""
Database configuration and session management with SQLAlchemy.

Uses async SQLAlchemy for non-blocking database operations.

Design Decisions:
- AsyncSession for non-blocking operations
- Connection pooling with sensible defaults
- Explicit transaction management
- Session-per-request pattern
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import Integer, String, Text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from facturas.config import get_settings

logger = logging.getLogger(__name__)

TITULO_MAX_LENGTH = 255
URL_MAX_LENGTH = 500


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


class Factura(Base):
    """An invoice record."""
    __tablename__ = "facturas"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    titulo: Mapped[str] = mapped_column(String(TITULO_MAX_LENGTH), nullable=False)
    descripcion: Mapped[str | None] = mapped_column(Text)
    url: Mapped[str | None] = mapped_column(String(URL_MAX_LENGTH))

    def __repr__(self) -> str:
        return f"Factura(id={self.id!r}, titulo={self.titulo!r})"


# Engine and session factory (initialized lazily)
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Get or create the async database engine."""
    global _engine
    if _engine is None:
        settings = get_settings()
        url = settings.sqlalchemy_url

        engine_options = {"echo": settings.debug}
        # SQLite picks its own pool class
        if url.get_backend_name() != "sqlite":
            engine_options.update(pool_size=5, max_overflow=10, pool_timeout=30)

        _engine = create_async_engine(url, **engine_options)
        logger.info(f"Database engine created for {url.render_as_string(hide_password=True)}")
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get the session factory for creating database sessions."""
    global _session_factory
    if _session_factory is None:
        engine = get_engine()
        _session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _session_factory


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Get a database session for a request.

    Usage:
        async with get_session() as session:
            session.add(record)
            await session.commit()
    """
    factory = get_session_factory()
    session = factory()
    try:
        yield session
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


async def init_db() -> None:
    """
    Initialize database tables.

    Call this on application startup to ensure tables exist.
    """
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialized")


async def close_db() -> None:
    """Close database connections on shutdown."""
    global _engine, _session_factory
    if _engine:
        await _engine.dispose()
        _engine = None
        _session_factory = None
    logger.info("Database connections closed")
