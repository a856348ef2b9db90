"""CRUD contract tests for /api/facturas."""

import pytest
from fastapi.testclient import TestClient

from facturas.api.dependencies import get_repository


def _create(client, **body):
    response = client.post("/api/facturas", json=body)
    assert response.status_code == 201, response.text
    return response.json()["id"]


def test_list_is_empty_on_fresh_database(client):
    response = client.get("/api/facturas")

    assert response.status_code == 200
    assert response.json() == []


def test_create_returns_id_and_message(client):
    response = client.post(
        "/api/facturas",
        json={"titulo": "Factura Cliente A", "descripcion": "Consultoría", "url": "https://example.com/a.pdf"},
    )

    assert response.status_code == 201
    payload = response.json()
    assert payload["message"] == "Factura creada"
    assert isinstance(payload["id"], int)


def test_create_then_read_returns_same_fields(client):
    factura_id = _create(
        client,
        titulo="Factura Cliente B",
        descripcion="Desarrollo de aplicación móvil",
        url="https://example.com/facturas/factura-002.pdf",
    )

    response = client.get(f"/api/facturas/{factura_id}")

    assert response.status_code == 200
    assert response.json() == {
        "id": factura_id,
        "titulo": "Factura Cliente B",
        "descripcion": "Desarrollo de aplicación móvil",
        "url": "https://example.com/facturas/factura-002.pdf",
    }


def test_optional_fields_default_to_null(client):
    factura_id = _create(client, titulo="Solo título")

    payload = client.get(f"/api/facturas/{factura_id}").json()

    assert payload["descripcion"] is None
    assert payload["url"] is None


def test_list_returns_all_in_id_order(client):
    first = _create(client, titulo="Primera")
    second = _create(client, titulo="Segunda")

    payload = client.get("/api/facturas").json()

    assert [f["id"] for f in payload] == [first, second]
    assert [f["titulo"] for f in payload] == ["Primera", "Segunda"]


@pytest.mark.parametrize("body", [{}, {"titulo": ""}, {"titulo": "   "}, {"descripcion": "sin título"}])
def test_create_without_title_is_rejected(client, body):
    response = client.post("/api/facturas", json=body)

    assert response.status_code == 400
    assert response.json() == {"error": "El título es requerido"}


def test_create_with_title_too_long_is_rejected(client):
    response = client.post("/api/facturas", json={"titulo": "x" * 256})

    assert response.status_code == 400
    assert response.json()["error"] == "Datos de entrada inválidos"


def test_create_with_url_too_long_is_rejected(client):
    response = client.post(
        "/api/facturas",
        json={"titulo": "Factura larga", "url": "https://example.com/" + "a" * 500},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Datos de entrada inválidos"
    assert client.get("/api/facturas").json() == []


def test_malformed_json_is_rejected(client):
    response = client.post(
        "/api/facturas",
        content="{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert "error" in response.json()


def test_read_missing_returns_404(client):
    response = client.get("/api/facturas/9999")

    assert response.status_code == 404
    assert response.json() == {"error": "Factura no encontrada"}


def test_read_non_integer_id_is_rejected(client):
    response = client.get("/api/facturas/abc")

    assert response.status_code == 400


def test_update_changes_persisted_fields(client):
    factura_id = _create(client, titulo="Original", descripcion="Antes", url="https://example.com/1")

    response = client.put(
        f"/api/facturas/{factura_id}",
        json={"titulo": "Actualizada", "descripcion": "Después"},
    )

    assert response.status_code == 200
    assert response.json() == {"message": "Factura actualizada correctamente"}

    payload = client.get(f"/api/facturas/{factura_id}").json()
    assert payload["titulo"] == "Actualizada"
    assert payload["descripcion"] == "Después"
    # PUT replaces the whole record
    assert payload["url"] is None


def test_update_missing_returns_404(client):
    response = client.put("/api/facturas/9999", json={"titulo": "Nada"})

    assert response.status_code == 404
    assert response.json() == {"error": "Factura no encontrada"}


def test_update_without_title_is_rejected(client):
    factura_id = _create(client, titulo="Original")

    response = client.put(f"/api/facturas/{factura_id}", json={"descripcion": "sin título"})

    assert response.status_code == 400
    assert response.json() == {"error": "El título es requerido"}
    assert client.get(f"/api/facturas/{factura_id}").json()["titulo"] == "Original"


def test_delete_removes_record(client):
    factura_id = _create(client, titulo="Para borrar")

    response = client.delete(f"/api/facturas/{factura_id}")

    assert response.status_code == 200
    assert response.json() == {"message": "Factura eliminada correctamente"}
    assert client.get(f"/api/facturas/{factura_id}").status_code == 404
    assert client.get("/api/facturas").json() == []


def test_delete_missing_returns_404(client):
    factura_id = _create(client, titulo="Una vez")
    client.delete(f"/api/facturas/{factura_id}")

    response = client.delete(f"/api/facturas/{factura_id}")

    assert response.status_code == 404
    assert response.json() == {"error": "Factura no encontrada"}


class FailingRepository:
    async def list_all(self):
        raise RuntimeError("conexión perdida")


def test_unexpected_error_returns_500_with_message(app):
    app.dependency_overrides[get_repository] = lambda: FailingRepository()

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/api/facturas")

    assert response.status_code == 500
    assert response.json() == {"error": "conexión perdida"}
