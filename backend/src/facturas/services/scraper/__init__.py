"""
Scraper subpackage - invoice data from external HTML pages.
"""

from .extractor import HtmlInvoiceExtractor
from .fetcher import FetchedPage, HtmlFetcher, ScrapeError
from .normalize import FieldNormalizer
from .service import ScrapeService
from .table import TableDetector

__all__ = [
    "FetchedPage",
    "FieldNormalizer",
    "HtmlFetcher",
    "HtmlInvoiceExtractor",
    "ScrapeError",
    "ScrapeService",
    "TableDetector",
]
