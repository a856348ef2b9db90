"""Tests for POST /api/scrape-factura with the outbound fetch mocked."""

import httpx
import pytest

from facturas.api.dependencies import get_scrape_service
from facturas.services.scraper import HtmlFetcher, ScrapeService


@pytest.fixture
def pages(load_sample):
    """URL -> (status, content type, body) served by the mock transport."""
    return {
        "https://facturas.example.com/f/42": (200, "text/html; charset=utf-8", load_sample("factura_selectores.html")),
        "https://facturas.example.com/pdf": (200, "application/pdf", "%PDF-1.4"),
    }


@pytest.fixture
def scrape_client(app, client, pages):
    def handler(request: httpx.Request) -> httpx.Response:
        status, content_type, body = pages.get(str(request.url), (404, "text/html", "<h1>Not found</h1>"))
        return httpx.Response(status, headers={"Content-Type": content_type}, text=body)

    fetcher = HtmlFetcher(transport=httpx.MockTransport(handler))
    app.dependency_overrides[get_scrape_service] = lambda: ScrapeService(fetcher=fetcher)
    yield client
    app.dependency_overrides.clear()


def test_scrape_extracts_issuer_items_and_totals(scrape_client):
    response = scrape_client.post("/api/scrape-factura", json={"url": "https://facturas.example.com/f/42"})

    assert response.status_code == 200, response.text
    payload = response.json()
    assert payload["url"] == "https://facturas.example.com/f/42"
    assert payload["numero"] == "F-2024-0042"
    assert payload["fecha"] == "2024-03-05"
    assert payload["emisor"] == {
        "nombre": "ACME Soluciones S.L.",
        "nif": "B12345678",
        "direccion": "Calle Mayor 1, 28013 Madrid",
    }
    assert payload["cliente"]["nombre"] == "Distribuciones Norte S.A."
    assert payload["items"] == [
        {
            "descripcion": "Consultoría tecnológica",
            "cantidad": "10",
            "precio_unitario": "50.00",
            "importe": "500.00",
        },
        {
            "descripcion": "Licencia anual",
            "cantidad": "1",
            "precio_unitario": "1200.00",
            "importe": "1200.00",
        },
    ]
    assert payload["subtotal"] == "1700.00"
    assert payload["impuestos"] == "357.00"
    assert payload["total"] == "2057.00"
    assert payload["moneda"] == "EUR"
    assert payload["revisar"] == []


@pytest.mark.parametrize("body", [{}, {"url": ""}, {"url": "  "}])
def test_scrape_without_url_is_rejected(scrape_client, body):
    response = scrape_client.post("/api/scrape-factura", json=body)

    assert response.status_code == 400
    assert response.json() == {"error": "La URL es requerida"}


@pytest.mark.parametrize("url", ["ftp://facturas.example.com/f/42", "http://[::1"])
def test_scrape_rejects_invalid_url(scrape_client, url):
    response = scrape_client.post("/api/scrape-factura", json={"url": url})

    assert response.status_code == 400
    assert "URL no válida" in response.json()["error"]


def test_scrape_upstream_error_returns_500(scrape_client):
    response = scrape_client.post("/api/scrape-factura", json={"url": "https://facturas.example.com/missing"})

    assert response.status_code == 500
    assert response.json()["error"].startswith("Error al obtener la factura")


def test_scrape_non_html_returns_500(scrape_client):
    response = scrape_client.post("/api/scrape-factura", json={"url": "https://facturas.example.com/pdf"})

    assert response.status_code == 500
    assert "application/pdf" in response.json()["error"]
