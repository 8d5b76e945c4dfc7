from fastapi import status


def test_list_packages_returns_configured_catalog(client, store_config):
    response = client.get("/api/packages")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert isinstance(data, list)
    assert len(data) == len(store_config.packages)
    assert data[0] == {"id": 1, "name": "1GB Starter", "ram": 1024, "price": 15000}


def test_list_packages_preserves_order(client):
    response = client.get("/api/packages")
    assert [package["id"] for package in response.json()] == [1, 2, 3, 4, 5]


def test_list_packages_without_service_returns_503():
    """Without a started lifespan or override there is no service to answer."""
    from fastapi.testclient import TestClient

    from app.main import app

    app.state.order_service = None
    response = TestClient(app).get("/api/packages")
    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE


def test_list_packages_returns_extra_keys_unchanged(store, gateway, panel):
    from fastapi.testclient import TestClient

    from app.dependencies import get_order_service
    from app.main import app
    from app.services.catalog import StoreConfig
    from app.services.order_service import OrderService

    config = StoreConfig(
        packages=[{"id": 1, "name": "1GB Starter", "ram": 1024, "price": 15000, "badge": "Hemat"}],
    )
    service = OrderService(config, store, gateway, panel)
    app.dependency_overrides[get_order_service] = lambda: service
    try:
        response = TestClient(app).get("/api/packages")
    finally:
        app.dependency_overrides.clear()

    assert response.json() == [{"id": 1, "name": "1GB Starter", "ram": 1024, "price": 15000, "badge": "Hemat"}]
