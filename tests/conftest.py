import pytest
from fastapi.testclient import TestClient

from verdara import diagnostics, storage, weather
from verdara.catalog import router as catalog_router
from verdara.catalog.favorites import FavoritesRegistry
from verdara.catalog.schemas import CatalogItem
from verdara.main import app


def make_item(id, name, **kwargs):
    kwargs.setdefault("location", "")
    return CatalogItem(id=id, name=name, **kwargs)


@pytest.fixture
def sample_items():
    return [
        make_item(1, "Bear Trail", location="Estes Park, CO", state="CO", reviews=10, rating=4.2,
                  distance="3.5 mi", difficulty="Moderate"),
        make_item(2, "Cedar Loop", location="Moab, UT", state="UT", reviews=50, rating=3.9,
                  distance="1.2 mi", difficulty="Easy"),
        make_item(3, "Summit Ridge", location="Boulder, CO", state="CO", reviews=30, rating=4.8,
                  distance="12.0 mi", difficulty="Expert"),
        make_item(4, "River Walk", location="Bend, OR", state="OR", reviews=5, rating=None,
                  distance="n/a", difficulty="Difficult"),
    ]


@pytest.fixture(autouse=True)
def _reset_state(monkeypatch):
    storage.reset()
    diagnostics.clear()
    weather.clear_cache()
    monkeypatch.setattr(catalog_router, "favorites_registry", FavoritesRegistry())
    yield
    storage.reset()


@pytest.fixture
def client():
    return TestClient(app, raise_server_exceptions=False)
