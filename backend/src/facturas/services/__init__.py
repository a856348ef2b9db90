"""
Services package - Business logic and external integrations.

Includes the invoice page scraper.
"""

from .scraper import HtmlInvoiceExtractor, ScrapeService

__all__ = ["HtmlInvoiceExtractor", "ScrapeService"]
