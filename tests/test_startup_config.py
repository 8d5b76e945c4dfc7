import json

import pytest
from fastapi.testclient import TestClient

from app.errors import ConfigReadError
from app.main import (
    _get_effective_cors_origins,
    _validate_database_url_for_runtime,
    _validate_required_env_for_runtime,
    app,
    build_order_store,
)
from app.services.order_service import OrderService
from app.services.order_store import InMemoryOrderStore, SqlOrderStore


def test_validate_database_url_allows_sqlite():
    _validate_database_url_for_runtime("sqlite:///:memory:")


def test_validate_database_url_allows_postgres():
    _validate_database_url_for_runtime("postgresql://user:pass@db:5432/store")


def test_validate_database_url_requires_scheme():
    with pytest.raises(RuntimeError, match="missing URL scheme"):
        _validate_database_url_for_runtime("://db:5432/app")


def test_validate_database_url_rejects_unknown_scheme():
    with pytest.raises(RuntimeError, match="unsupported scheme 'mysql'"):
        _validate_database_url_for_runtime("mysql://user:pass@db:3306/app")


def test_validate_database_url_requires_host():
    with pytest.raises(RuntimeError, match="missing host"):
        _validate_database_url_for_runtime("postgresql:///app")


def test_validate_database_url_requires_database_name():
    with pytest.raises(RuntimeError, match="missing database name"):
        _validate_database_url_for_runtime("postgresql://user:pass@db:5432/")


def test_cors_origins_strip_quotes_and_blanks():
    assert _get_effective_cors_origins(' "https://a.example" , ,\'https://b.example\'') == [
        "https://a.example",
        "https://b.example",
    ]


def test_validate_required_env_accepts_local_defaults(monkeypatch):
    monkeypatch.setenv("ORDER_STORE", "memory")
    monkeypatch.delenv("ATLANTIC_API_URL", raising=False)
    monkeypatch.setenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:3001")

    _validate_required_env_for_runtime()


def test_validate_required_env_rejects_unknown_store(monkeypatch):
    monkeypatch.setenv("ORDER_STORE", "redis")

    with pytest.raises(RuntimeError, match="ORDER_STORE must be one of database, memory"):
        _validate_required_env_for_runtime()


def test_validate_required_env_requires_database_url_for_database_store(monkeypatch):
    monkeypatch.setenv("ORDER_STORE", "database")
    monkeypatch.delenv("DATABASE_URL", raising=False)

    with pytest.raises(RuntimeError, match="DATABASE_URL is required"):
        _validate_required_env_for_runtime()


def test_validate_required_env_rejects_invalid_atlantic_url(monkeypatch):
    monkeypatch.setenv("ATLANTIC_API_URL", "atlantich2h.com")

    with pytest.raises(RuntimeError, match="ATLANTIC_API_URL must be an absolute http\\(s\\) URL"):
        _validate_required_env_for_runtime()


def test_validate_required_env_rejects_invalid_cors(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", "localhost:3000")

    with pytest.raises(RuntimeError, match="CORS_ORIGINS contains invalid URL"):
        _validate_required_env_for_runtime()


def test_build_order_store_memory_by_default(monkeypatch):
    monkeypatch.setenv("ORDER_STORE", "memory")

    store, engine = build_order_store()

    assert isinstance(store, InMemoryOrderStore)
    assert engine is None


def test_build_order_store_database(monkeypatch):
    monkeypatch.setenv("ORDER_STORE", "database")
    monkeypatch.setenv("DATABASE_URL", "sqlite:///:memory:")

    store, engine = build_order_store()
    try:
        assert isinstance(store, SqlOrderStore)
        assert store.get("missing") is None
    finally:
        engine.dispose()


def test_lifespan_writes_default_config(monkeypatch, tmp_path):
    config_path = tmp_path / "store" / "config.json"
    monkeypatch.setenv("STORE_CONFIG_PATH", str(config_path))
    monkeypatch.setenv("ATLANTIC_API_KEY", "atl_from_env")

    with TestClient(app) as client:
        assert isinstance(app.state.order_service, OrderService)
        response = client.get("/api/packages")
        assert response.status_code == 200
        assert len(response.json()) == 5

    document = json.loads(config_path.read_text(encoding="utf-8"))
    assert document["atlanticApiKey"] == "atl_from_env"
    assert document["eggId"] == 15
    assert [package["id"] for package in document["packages"]] == [1, 2, 3, 4, 5]


def test_lifespan_keeps_existing_config(monkeypatch, tmp_path):
    config_path = tmp_path / "config.json"
    config_path.write_text(
        json.dumps({"packages": [{"id": 9, "name": "Tiny", "ram": 512, "price": 5000}]}),
        encoding="utf-8",
    )
    monkeypatch.setenv("STORE_CONFIG_PATH", str(config_path))

    with TestClient(app) as client:
        packages = client.get("/api/packages").json()

    assert packages == [{"id": 9, "name": "Tiny", "ram": 512, "price": 5000}]


def test_lifespan_fails_on_corrupt_config(monkeypatch, tmp_path):
    config_path = tmp_path / "config.json"
    config_path.write_text("{not json", encoding="utf-8")
    monkeypatch.setenv("STORE_CONFIG_PATH", str(config_path))

    with pytest.raises(ConfigReadError):
        with TestClient(app):
            pass

    assert config_path.read_text(encoding="utf-8") == "{not json"
