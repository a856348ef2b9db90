"""
Repository for the facturas table.

Thin persistence layer used by the API routes. Each mutating call
commits its own transaction.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from facturas.infrastructure.database import Factura

logger = logging.getLogger(__name__)


class FacturaRepository:
    """CRUD operations over ``Factura`` rows."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_all(self) -> list[Factura]:
        result = await self.session.execute(select(Factura).order_by(Factura.id))
        return list(result.scalars().all())

    async def get(self, factura_id: int) -> Factura | None:
        return await self.session.get(Factura, factura_id)

    async def create(
        self,
        titulo: str,
        descripcion: str | None = None,
        url: str | None = None,
    ) -> Factura:
        """Insert a new invoice and return it with its assigned id."""
        factura = Factura(titulo=titulo, descripcion=descripcion, url=url)
        self.session.add(factura)
        await self.session.commit()
        await self.session.refresh(factura)
        logger.info(f"Factura {factura.id} created")
        return factura

    async def update(
        self,
        factura_id: int,
        titulo: str,
        descripcion: str | None = None,
        url: str | None = None,
    ) -> Factura | None:
        """
        Replace the fields of an existing invoice.

        Returns:
            The updated row, or None if no invoice has that id.
        """
        factura = await self.get(factura_id)
        if factura is None:
            return None

        factura.titulo = titulo
        factura.descripcion = descripcion
        factura.url = url
        await self.session.commit()
        logger.info(f"Factura {factura_id} updated")
        return factura

    async def delete(self, factura_id: int) -> bool:
        """Delete an invoice. Returns True if a row was removed."""
        factura = await self.get(factura_id)
        if factura is None:
            return False

        await self.session.delete(factura)
        await self.session.commit()
        logger.info(f"Factura {factura_id} deleted")
        return True
