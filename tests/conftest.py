import os
import tempfile
from typing import Generator
from unittest.mock import MagicMock

# Override settings for tests before importing app modules
_config_dir = tempfile.mkdtemp(prefix="hosting-store-tests-")
os.environ["STORE_CONFIG_PATH"] = os.path.join(_config_dir, "config.json")
os.environ["ORDER_STORE"] = "memory"
os.environ["ATLANTIC_API_KEY"] = "atl_test_key"
os.environ["PTERODACTYL_API_KEY"] = "ptla_test_key"
os.environ["ATLANTIC_WEBHOOK_SECRET"] = ""
os.environ.pop("DATABASE_URL", None)

import pytest
from fastapi.testclient import TestClient

from app.dependencies import get_order_service
from app.main import app
from app.schemas.orders import Order
from app.services.atlantic_gateway import AtlanticGateway, QrisDeposit
from app.services.catalog import DEFAULT_PACKAGES, StoreConfig
from app.services.order_service import OrderService
from app.services.order_store import InMemoryOrderStore
from app.services.panel_client import PanelClient

TEST_PANEL_URL = "https://panel.test.example"


@pytest.fixture
def store_config() -> StoreConfig:
    return StoreConfig(
        atlantic_api_key="atl_test_key",
        pterodactyl_api_key="ptla_test_key",
        pterodactyl_panel_url=TEST_PANEL_URL,
        location_id=3,
        egg_id=15,
        packages=DEFAULT_PACKAGES,
    )


@pytest.fixture
def store() -> InMemoryOrderStore:
    return InMemoryOrderStore()


@pytest.fixture
def gateway() -> MagicMock:
    """Atlantic client double returning a fixed QRIS deposit."""
    mock = MagicMock(spec=AtlanticGateway)
    mock.create_qris_deposit.return_value = QrisDeposit(
        transaction_id="ATL-TX-1001",
        qr_image="https://atlantich2h.com/qr/ATL-TX-1001.png",
        qr_string="00020101021126570011ID.DANA.WWW",
    )
    return mock


@pytest.fixture
def panel() -> MagicMock:
    """Panel client double that succeeds with user 7 and server 42."""
    mock = MagicMock(spec=PanelClient)
    mock.create_user.return_value = 7
    mock.create_server.return_value = 42
    return mock


@pytest.fixture
def service(store_config, store, gateway, panel) -> OrderService:
    return OrderService(
        config=store_config,
        store=store,
        gateway=gateway,
        panel=panel,
        reference_prefix="WEB_SYAFA",
        fallback_email_domain="web-syafa-store.com",
    )


@pytest.fixture(scope="function")
def client(service: OrderService) -> Generator[TestClient, None, None]:
    """Create a test client wired to the test order service."""
    app.dependency_overrides[get_order_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def pending_order(service: OrderService) -> Order:
    """Create a pending order for the 1GB Starter package."""
    return service.create_order(
        package_id=1,
        panel_username="steve",
        customer_email="steve@example.com",
    ).order


@pytest.fixture
def deposit_webhook():
    """Build an Atlantic deposit webhook body."""

    def _build(reff_id: str, status: str = "success", transaction_id: str = "ATL-TX-1001") -> dict:
        return {
            "event": "deposit",
            "data": {
                "status": status,
                "reff_id": reff_id,
                "transaction_id": transaction_id,
                "nominal": 15000,
            },
        }

    return _build
