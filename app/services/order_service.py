"""Order lifecycle: pending -> processing -> success | failed.

Orders are created ``pending`` once the gateway hands back a QRIS deposit.
A successful deposit webhook moves the order to ``processing`` through an
atomic compare-and-set, provisions a panel user and server, and finishes in
``success`` or ``failed``. Nothing ever leaves a terminal status, and a
failed order is not retried; the customer places a new one.
"""

import logging
import secrets
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Callable

from app.errors import (
    InvalidEvent,
    InvalidPackage,
    OrderNotFound,
    ProvisioningError,
)
from app.schemas.orders import Order, OrderStatus, WebhookData
from app.schemas.packages import Package
from app.services.atlantic_gateway import AtlanticGateway
from app.services.catalog import StoreConfig
from app.services.order_store import OrderStore
from app.services.panel_client import PROVISIONING_FAILED_MESSAGE, PanelClient, ServerSpec

logger = logging.getLogger(__name__)

DEPOSIT_EVENT = "deposit"
SUCCESSFUL_PAYMENT_STATUS = "success"
MB_PER_CPU_CORE = 512


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_reff_id(prefix: str) -> str:
    return f"{prefix}_{time.time_ns() // 1_000_000}_{secrets.token_hex(4)}"


def cpu_cores_for(ram_mb: int) -> int:
    """One core per 512 MB of RAM, rounded half-up."""
    cores = Decimal(ram_mb) / Decimal(MB_PER_CPU_CORE)
    return int(cores.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class WebhookOutcome(str, Enum):
    PROCESSED = "processed"
    NOT_SUCCESSFUL = "not_successful"
    ALREADY_PROCESSED = "already_processed"


@dataclass(frozen=True)
class WebhookResult:
    outcome: WebhookOutcome
    order: Order | None = None


@dataclass(frozen=True)
class CreatedOrder:
    order: Order
    qris_url: str | None
    amount: int


class OrderService:
    def __init__(
        self,
        config: StoreConfig,
        store: OrderStore,
        gateway: AtlanticGateway,
        panel: PanelClient,
        reference_prefix: str = "WEB_SYAFA",
        fallback_email_domain: str = "web-syafa-store.com",
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.config = config
        self.store = store
        self.gateway = gateway
        self.panel = panel
        self.reference_prefix = reference_prefix
        self.fallback_email_domain = fallback_email_domain
        self._clock = clock

    def list_packages(self) -> list[Package]:
        return list(self.config.packages)

    def create_order(
        self,
        package_id: int,
        panel_username: str,
        customer_email: str | None = None,
    ) -> CreatedOrder:
        """Create a pending order and its QRIS deposit.

        The order is stored only after the gateway accepts the deposit; a
        gateway failure raises ``PaymentGatewayError`` and leaves no record.
        """
        package = self.config.find_package(package_id)
        if package is None:
            raise InvalidPackage("Invalid package selected")

        now = self._clock()
        order = Order(
            reff_id=generate_reff_id(self.reference_prefix),
            package_id=package.id,
            package_name=package.name,
            ram=package.ram,
            disk=package.ram,
            cpu=cpu_cores_for(package.ram),
            price=package.price,
            panel_username=panel_username,
            customer_email=customer_email or "",
            status=OrderStatus.PENDING,
            created_at=now,
            updated_at=now,
        )

        deposit = self.gateway.create_qris_deposit(order.reff_id, package.price)
        order = order.model_copy(
            update={
                "qris_url": deposit.qr_image,
                "qris_content": deposit.qr_string,
                "atlantic_transaction_id": deposit.transaction_id,
            }
        )
        self.store.put(order)
        logger.info("Order %s created for package %s (%s)", order.reff_id, package.id, package.name)
        return CreatedOrder(order=order, qris_url=order.qris_url, amount=package.price)

    def get_order(self, reff_id: str) -> Order:
        order = self.store.get(reff_id)
        if order is None:
            raise OrderNotFound("Order not found")
        return order

    def handle_webhook(self, event: str | None, data: WebhookData) -> WebhookResult:
        if event != DEPOSIT_EVENT:
            raise InvalidEvent("Invalid event type")

        if data.status != SUCCESSFUL_PAYMENT_STATUS:
            logger.info("Ignoring deposit webhook for %s with status %s", data.reff_id, data.status)
            return WebhookResult(WebhookOutcome.NOT_SUCCESSFUL)

        if not data.reff_id or self.store.get(data.reff_id) is None:
            raise OrderNotFound("Order not found")

        fields = {"status": OrderStatus.PROCESSING, "updated_at": self._clock()}
        if data.transaction_id is not None:
            fields["atlantic_transaction_id"] = data.transaction_id
        claimed = self.store.compare_and_set(data.reff_id, OrderStatus.PENDING, fields)
        if claimed is None:
            logger.info("Order %s already processed, skipping webhook", data.reff_id)
            return WebhookResult(WebhookOutcome.ALREADY_PROCESSED)

        return WebhookResult(WebhookOutcome.PROCESSED, self._provision(claimed))

    def _provision(self, order: Order) -> Order:
        password = secrets.token_hex(8)
        email = order.customer_email or f"{order.panel_username}@{self.fallback_email_domain}"
        try:
            user_id = self.panel.create_user(
                username=order.panel_username,
                email=email,
                first_name=order.panel_username,
                last_name="Customer",
                password=password,
            )
            server_id = self.panel.create_server(
                ServerSpec(
                    name=f"{order.panel_username}-{order.package_name}",
                    user_id=user_id,
                    egg_id=self.config.egg_id,
                    location_id=self.config.location_id,
                    memory_mb=order.ram,
                    disk_mb=order.disk,
                    cpu_cores=order.cpu,
                )
            )
        except Exception as exc:
            message = exc.message if isinstance(exc, ProvisioningError) else PROVISIONING_FAILED_MESSAGE
            logger.error("Provisioning failed for order %s: %s", order.reff_id, message, exc_info=True)
            self.store.patch(
                order.reff_id,
                {
                    "status": OrderStatus.FAILED,
                    "error_message": message,
                    "updated_at": self._clock(),
                },
            )
            if isinstance(exc, ProvisioningError):
                raise
            raise ProvisioningError(message) from exc

        completed = self.store.patch(
            order.reff_id,
            {
                "status": OrderStatus.SUCCESS,
                "panel_domain": self.config.pterodactyl_panel_url,
                "panel_password": password,
                "user_id": user_id,
                "server_id": server_id,
                "updated_at": self._clock(),
            },
        )
        logger.info("Order %s provisioned: user %s, server %s", order.reff_id, user_id, server_id)
        return completed
