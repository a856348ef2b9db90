"""
Async fetching of invoice pages.

One short-lived httpx client per fetch; redirects are followed and the
body is decoded with the charset the server declares.
"""

import logging
from dataclasses import dataclass
from urllib.parse import urlparse

import httpx

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = {"http", "https"}

# Content types we are willing to parse as a page
HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml", "text/plain")


class ScrapeError(Exception):
    """Raised when a page cannot be fetched or read as an invoice."""
    pass


@dataclass
class FetchedPage:
    """A downloaded page ready for parsing."""
    url: str
    status_code: int
    content_type: str
    html: str


def validate_url(url: str) -> str:
    """Return the stripped URL, or raise ScrapeError if it is not http(s)."""
    cleaned = url.strip()
    try:
        parsed = urlparse(cleaned)
    except ValueError:
        raise ScrapeError(f"URL no válida: {url}")
    if parsed.scheme not in ALLOWED_SCHEMES or not parsed.netloc:
        raise ScrapeError(f"URL no válida: {url}")
    return cleaned


class HtmlFetcher:
    """
    Downloads HTML pages with httpx.

    The body is streamed so that pages over max_bytes are abandoned
    without being held in memory.

    Example:
        fetcher = HtmlFetcher(timeout=10.0)
        page = await fetcher.fetch("https://example.com/factura/1")
    """

    def __init__(
        self,
        timeout: float = 15.0,
        user_agent: str = "facturas-scraper",
        max_bytes: int = 5_000_000,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize fetcher.

        Args:
            timeout: Seconds before the request is abandoned
            user_agent: User-Agent header to send
            max_bytes: Largest body accepted
            transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        self.timeout = timeout
        self.user_agent = user_agent
        self.max_bytes = max_bytes
        self.transport = transport

    async def fetch(self, url: str) -> FetchedPage:
        """
        Download a page.

        Raises:
            ScrapeError: Invalid URL, non-HTML content or oversized body
            httpx.HTTPError: Network failure or non-2xx status
        """
        url = validate_url(url)
        headers = {
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.5",
        }

        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            headers=headers,
            transport=self.transport,
        ) as client:
            logger.info(f"Fetching invoice page {url}")
            async with client.stream("GET", url) as response:
                response.raise_for_status()

                content_type = response.headers.get("Content-Type", "")
                media_type = content_type.split(";", 1)[0].strip().lower()
                if media_type and media_type not in HTML_CONTENT_TYPES:
                    raise ScrapeError(f"Tipo de contenido no soportado: {media_type}")

                declared = response.headers.get("Content-Length")
                if declared and declared.isdigit() and int(declared) > self.max_bytes:
                    raise self._too_large(int(declared))

                body = await self._read_limited(response)
                encoding = response.encoding or "utf-8"

        logger.info(f"Fetched {response.url} ({response.status_code}, {len(body)} bytes)")
        return FetchedPage(
            url=str(response.url),
            status_code=response.status_code,
            content_type=media_type,
            html=body.decode(encoding, errors="replace"),
        )

    async def _read_limited(self, response: httpx.Response) -> bytes:
        """Read the body, stopping as soon as it passes max_bytes."""
        chunks: list[bytes] = []
        size = 0
        async for chunk in response.aiter_bytes():
            size += len(chunk)
            if size > self.max_bytes:
                raise self._too_large(size)
            chunks.append(chunk)
        return b"".join(chunks)

    def _too_large(self, size: int) -> ScrapeError:
        return ScrapeError(f"La página excede el tamaño máximo ({size} > {self.max_bytes} bytes)")
