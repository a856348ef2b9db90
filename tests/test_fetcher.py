"""Tests for the async page fetcher."""

import httpx
import pytest

from facturas.services.scraper import HtmlFetcher, ScrapeError


def _fetcher(handler, **kwargs) -> HtmlFetcher:
    return HtmlFetcher(transport=httpx.MockTransport(handler), **kwargs)


@pytest.mark.asyncio
async def test_fetch_returns_page_and_sends_user_agent():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["user_agent"] = request.headers["User-Agent"]
        return httpx.Response(200, html="<h1>Factura</h1>")

    page = await _fetcher(handler, user_agent="test-agent/1.0").fetch("https://example.com/f/1")

    assert page.status_code == 200
    assert page.content_type == "text/html"
    assert page.html == "<h1>Factura</h1>"
    assert seen["user_agent"] == "test-agent/1.0"


@pytest.mark.asyncio
async def test_fetch_follows_redirects():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/old":
            return httpx.Response(301, headers={"Location": "https://example.com/new"})
        return httpx.Response(200, html="<p>nueva</p>")

    page = await _fetcher(handler).fetch("https://example.com/old")

    assert page.url == "https://example.com/new"
    assert page.html == "<p>nueva</p>"


@pytest.mark.asyncio
async def test_fetch_raises_on_error_status():
    fetcher = _fetcher(lambda request: httpx.Response(503, text="down"))

    with pytest.raises(httpx.HTTPStatusError):
        await fetcher.fetch("https://example.com/f/1")


@pytest.mark.asyncio
async def test_fetch_rejects_non_html_content():
    fetcher = _fetcher(lambda request: httpx.Response(200, json={"total": 10}))

    with pytest.raises(ScrapeError, match="application/json"):
        await fetcher.fetch("https://example.com/api")


@pytest.mark.asyncio
async def test_fetch_rejects_oversized_body():
    fetcher = _fetcher(lambda request: httpx.Response(200, html="x" * 100), max_bytes=10)

    with pytest.raises(ScrapeError, match="tamaño máximo"):
        await fetcher.fetch("https://example.com/big")


@pytest.mark.asyncio
async def test_fetch_stops_reading_oversized_stream():
    consumed = []

    async def body():
        for _ in range(1000):
            consumed.append(1)
            yield b"x" * 8

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, headers={"Content-Type": "text/html"}, content=body())

    with pytest.raises(ScrapeError, match="tamaño máximo"):
        await _fetcher(handler, max_bytes=10).fetch("https://example.com/stream")

    assert len(consumed) < 1000


@pytest.mark.asyncio
async def test_fetch_rejects_declared_length_before_reading():
    consumed = []

    async def body():
        consumed.append(1)
        yield b"x"

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            headers={"Content-Type": "text/html", "Content-Length": "5000"},
            content=body(),
        )

    with pytest.raises(ScrapeError, match="5000 > 10"):
        await _fetcher(handler, max_bytes=10).fetch("https://example.com/big")

    assert consumed == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "url",
    ["ftp://example.com/f", "example.com/f", "https://", "javascript:alert(1)", "http://[::1"],
)
async def test_fetch_rejects_invalid_urls(url):
    fetcher = _fetcher(lambda request: httpx.Response(200, html=""))

    with pytest.raises(ScrapeError, match="URL no válida"):
        await fetcher.fetch(url)
