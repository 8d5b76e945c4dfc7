from app.schemas.orders import (
    Order,
    OrderCreateRequest,
    OrderCreateResponse,
    OrderStatus,
    OrderStatusResponse,
    WebhookAck,
    WebhookPayload,
)
from app.schemas.packages import Package

__all__ = [
    "Order",
    "OrderCreateRequest",
    "OrderCreateResponse",
    "OrderStatus",
    "OrderStatusResponse",
    "Package",
    "WebhookAck",
    "WebhookPayload",
]
