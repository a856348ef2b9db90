#!/usr/bin/env python3
"""
Seed the facturas table with sample invoices.

Usage:
    python -m facturas.seed
    python -m facturas.seed --log-level DEBUG

Connection settings come from the same environment variables as the API
(DATABASE_URL, or DB_HOST / DB_USER / DB_PASSWORD / DB_NAME).
"""

import argparse
import asyncio
import logging
import sys

from facturas.infrastructure.database import close_db, get_session, init_db
from facturas.infrastructure.repository import FacturaRepository

logger = logging.getLogger(__name__)


SAMPLE_FACTURAS = [
    {
        "titulo": "Factura Cliente A",
        "descripcion": "Servicios de consultoría tecnológica para el trimestre Q1",
        "url": "https://example.com/facturas/factura-001.pdf",
    },
    {
        "titulo": "Factura Cliente B",
        "descripcion": "Desarrollo de aplicación móvil y mantenimiento",
        "url": "https://example.com/facturas/factura-002.pdf",
    },
    {
        "titulo": "Factura Cliente C",
        "descripcion": "Hosting y servicios en la nube - mensualidad",
        "url": "https://example.com/facturas/factura-003.pdf",
    },
    {
        "titulo": "Factura Cliente D",
        "descripcion": "Diseño gráfico y branding corporativo",
        "url": "https://example.com/facturas/factura-004.pdf",
    },
    {
        "titulo": "Factura Cliente E",
        "descripcion": "Soporte técnico y actualización de sistemas",
        "url": "https://example.com/facturas/factura-005.pdf",
    },
]


async def seed_database(facturas: list[dict] | None = None) -> list[int]:
    """
    Insert sample invoices, creating the table first if needed.

    Returns:
        Ids of the inserted rows, in insertion order.
    """
    facturas = SAMPLE_FACTURAS if facturas is None else facturas
    await init_db()

    logger.info("Inserting sample invoices...")
    ids: list[int] = []
    async with get_session() as session:
        repository = FacturaRepository(session)
        for data in facturas:
            factura = await repository.create(**data)
            ids.append(factura.id)
            logger.info(f"Inserted: {factura.titulo} (id={factura.id})")

    logger.info(f"Database seeded successfully, {len(ids)} invoices inserted")
    return ids


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the seed script."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(message)s",
        datefmt="%H:%M:%S",
    )


async def _run() -> None:
    try:
        await seed_database()
    finally:
        await close_db()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Insert sample invoices into the facturas table")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    args = parser.parse_args(argv)

    setup_logging(args.log_level)

    try:
        asyncio.run(_run())
    except Exception:
        logger.exception("Error seeding database")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
