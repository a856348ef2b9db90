"""Shared fixtures: a throwaway SQLite database and a test client."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from facturas.config import get_settings

SAMPLE_DOCS = Path(__file__).parent / "sample_docs"


@pytest.fixture
def database_url(tmp_path, monkeypatch):
    """Point the application at a fresh SQLite file."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'facturas.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    get_settings.cache_clear()
    yield url
    get_settings.cache_clear()


@pytest.fixture
def app(database_url):
    from facturas.main import create_app

    return create_app()


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def load_sample():
    """Read an HTML fixture from tests/sample_docs."""
    def _load(name: str) -> str:
        return (SAMPLE_DOCS / name).read_text(encoding="utf-8")
    return _load
