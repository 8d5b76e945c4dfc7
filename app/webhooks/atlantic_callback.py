import hashlib
import hmac
import json
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from app.config import settings
from app.dependencies import get_order_service
from app.errors import InvalidEvent, OrderNotFound, ProvisioningError
from app.schemas.orders import WebhookAck, WebhookPayload
from app.services.order_service import OrderService, WebhookOutcome

router = APIRouter()
logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-atlantic-signature"

OUTCOME_MESSAGES = {
    WebhookOutcome.PROCESSED: "Payment processed successfully",
    WebhookOutcome.NOT_SUCCESSFUL: "Payment not successful",
    WebhookOutcome.ALREADY_PROCESSED: "Order already processed",
}


def _verify_atlantic_signature(raw_body: bytes, signature: str | None) -> None:
    """Validate HMAC SHA-256 signature when ATLANTIC_WEBHOOK_SECRET is configured."""
    secret = settings.ATLANTIC_WEBHOOK_SECRET
    if not secret:
        logger.warning("ATLANTIC_WEBHOOK_SECRET is not set, skipping webhook verification")
        return

    if not signature:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing webhook signature")

    expected = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()
    if not hmac.compare_digest(signature, expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid webhook signature")


@router.post(
    "/webhook",
    response_model=WebhookAck,
    summary="Atlantic H2H deposit webhook",
)
async def atlantic_webhook(
    request: Request,
    service: Annotated[OrderService, Depends(get_order_service)],
):
    """
    Atlantic calls this when a deposit changes state.
    A successful ``deposit`` event provisions the panel account and server.
    Repeated deliveries for an order that already left ``pending`` are acknowledged without side effects.
    """
    raw_body = await request.body()
    _verify_atlantic_signature(raw_body, request.headers.get(SIGNATURE_HEADER))

    try:
        payload = WebhookPayload.model_validate(json.loads(raw_body))
    except (ValueError, ValidationError) as e:
        logger.error(f"Invalid Atlantic webhook payload: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON")

    try:
        result = await run_in_threadpool(service.handle_webhook, payload.event, payload.data)
    except InvalidEvent as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except OrderNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except ProvisioningError as e:
        logger.warning(f"Panel provisioning failed for {payload.data.reff_id}: {e.message}")
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content=WebhookAck(success=False, message="Panel creation failed").model_dump(),
        )

    return WebhookAck(
        success=result.outcome == WebhookOutcome.PROCESSED,
        message=OUTCOME_MESSAGES[result.outcome],
    )
