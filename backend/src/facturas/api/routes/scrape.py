"""
Invoice scraping endpoint.

Fetches an external HTML page and returns the invoice fields found in it.
"""

import logging

import httpx
from fastapi import APIRouter, HTTPException, status

from facturas.api.dependencies import ScrapeServiceDep
from facturas.api.schemas import ErrorResponse, ScrapedInvoiceResponse, ScrapeRequest
from facturas.services.scraper import ScrapeError
from facturas.services.scraper.fetcher import validate_url

logger = logging.getLogger(__name__)

router = APIRouter(tags=["scraping"])


@router.post(
    "/scrape-factura",
    response_model=ScrapedInvoiceResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing or invalid URL"},
        500: {"model": ErrorResponse, "description": "Page could not be fetched or parsed"},
    },
)
async def scrape_factura(
    request: ScrapeRequest,
    service: ScrapeServiceDep,
) -> ScrapedInvoiceResponse:
    """
    Scrape an invoice page.

    **Process:**
    1. Download the page (single attempt, redirects followed)
    2. Locate the line-item table
    3. Read issuer, customer, number, date and totals by selector or label
    """
    if not request.url or not request.url.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="La URL es requerida",
        )

    try:
        url = validate_url(request.url)
    except ScrapeError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    try:
        invoice = await service.scrape(url)
    except (ScrapeError, httpx.HTTPError) as e:
        logger.exception(f"Scraping failed for {url}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error al obtener la factura: {e}",
        )

    return ScrapedInvoiceResponse.from_domain(invoice)
