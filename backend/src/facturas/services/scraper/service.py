"""
Scrape service - fetch an invoice page and extract its fields.
"""

import logging

from facturas.domain.models import ScrapedInvoice

from .extractor import HtmlInvoiceExtractor
from .fetcher import HtmlFetcher

logger = logging.getLogger(__name__)


class ScrapeService:
    """
    Orchestrates the one-shot fetch and parse of an invoice page.

    No retries: a failed fetch or an unreadable page is reported to the
    caller as is.
    """

    def __init__(
        self,
        fetcher: HtmlFetcher,
        extractor: HtmlInvoiceExtractor | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.extractor = extractor or HtmlInvoiceExtractor()

    async def scrape(self, url: str) -> ScrapedInvoice:
        page = await self.fetcher.fetch(url)
        # Keep the URL the caller asked for; redirects are visible in the logs
        if page.url != url:
            logger.info(f"{url} redirected to {page.url}")
        return self.extractor.extract(page.html, url)
