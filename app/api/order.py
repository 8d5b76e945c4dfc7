from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from app.dependencies import get_order_service
from app.errors import InvalidPackage, OrderNotFound, PaymentGatewayError
from app.schemas.orders import OrderCreateRequest, OrderCreateResponse, OrderStatusResponse
from app.services.order_service import OrderService

router = APIRouter()


@router.post(
    "/create-order",
    response_model=OrderCreateResponse,
    summary="Create order and get QRIS payment",
)
def create_order(
    body: OrderCreateRequest,
    service: Annotated[OrderService, Depends(get_order_service)],
):
    """
    Create a pending order for the selected package and request a QRIS deposit.
    Returns the order, the QR image URL and the amount to pay.
    """
    try:
        created = service.create_order(
            package_id=body.package_id,
            panel_username=body.panel_username,
            customer_email=body.customer_email,
        )
    except InvalidPackage as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except PaymentGatewayError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.message)

    return OrderCreateResponse(
        order=created.order,
        qris_url=created.qris_url,
        amount=created.amount,
    )


@router.get(
    "/order-status/{reff_id}",
    response_model=OrderStatusResponse,
    summary="Get order status",
)
def order_status(
    reff_id: str,
    service: Annotated[OrderService, Depends(get_order_service)],
):
    """Returns the current order record, including panel credentials once provisioned."""
    try:
        order = service.get_order(reff_id)
    except OrderNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    return OrderStatusResponse(order=order)
