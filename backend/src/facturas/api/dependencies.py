"""
FastAPI dependencies shared by the routers.

Tests override these through ``app.dependency_overrides``.
"""

from typing import Annotated, AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from facturas.config import get_settings
from facturas.infrastructure.database import get_session
from facturas.infrastructure.repository import FacturaRepository
from facturas.services.scraper import HtmlFetcher, ScrapeService


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """One database session per request."""
    async with get_session() as session:
        yield session


def get_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> FacturaRepository:
    return FacturaRepository(session)


def get_scrape_service() -> ScrapeService:
    """Build a scrape service from the current settings."""
    settings = get_settings()
    fetcher = HtmlFetcher(
        timeout=settings.scrape_timeout,
        user_agent=settings.scrape_user_agent,
        max_bytes=settings.scrape_max_bytes,
    )
    return ScrapeService(fetcher=fetcher)


SessionDep = Annotated[AsyncSession, Depends(get_db_session)]
RepositoryDep = Annotated[FacturaRepository, Depends(get_repository)]
ScrapeServiceDep = Annotated[ScrapeService, Depends(get_scrape_service)]
