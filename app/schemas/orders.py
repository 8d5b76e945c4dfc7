from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"


TERMINAL_STATUSES = {OrderStatus.SUCCESS, OrderStatus.FAILED}


def _as_optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


class Order(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    reff_id: str
    package_id: int
    package_name: str
    ram: int
    disk: int
    cpu: int
    price: int
    panel_username: str
    customer_email: str = ""
    payment_method: str = "qris"
    status: OrderStatus = OrderStatus.PENDING
    qris_url: str | None = None
    qris_content: str | None = None
    atlantic_transaction_id: str | None = None
    panel_domain: str = ""
    panel_password: str = ""
    user_id: int | None = None
    server_id: int | None = None
    error_message: str = ""
    created_at: datetime
    updated_at: datetime

    @field_validator("atlantic_transaction_id", mode="before")
    @classmethod
    def coerce_transaction_id(cls, value: Any) -> str | None:
        return _as_optional_str(value)

    @field_validator("created_at", "updated_at")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        # SQLite hands back naive datetimes even for timezone-aware columns
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class OrderCreateRequest(CamelModel):
    package_id: int = Field(alias="packageId")
    panel_username: str = Field(alias="panelUsername", min_length=1, max_length=191)
    customer_email: EmailStr | None = Field(default=None, alias="customerEmail")

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "packageId": 1,
                    "panelUsername": "steve",
                    "customerEmail": "steve@example.com",
                }
            ]
        },
    )

    @field_validator("panel_username")
    @classmethod
    def strip_username(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("panelUsername must not be blank")
        return value

    @field_validator("customer_email", mode="before")
    @classmethod
    def blank_email_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class OrderCreateResponse(CamelModel):
    success: bool = True
    order: Order
    qris_url: str | None = Field(alias="qrisUrl")
    amount: int


class OrderStatusResponse(BaseModel):
    success: bool = True
    order: Order


class WebhookData(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: str | None = None
    reff_id: str | None = None
    transaction_id: str | None = None

    @field_validator("status", "reff_id", "transaction_id", mode="before")
    @classmethod
    def coerce_to_str(cls, value: Any) -> str | None:
        return _as_optional_str(value)


class WebhookPayload(BaseModel):
    event: str | None = None
    data: WebhookData = Field(default_factory=WebhookData)


class WebhookAck(BaseModel):
    success: bool
    message: str
