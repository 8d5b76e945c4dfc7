from fastapi import HTTPException, Request, status

from app.services.order_service import OrderService


def get_order_service(request: Request) -> OrderService:
    service = getattr(request.app.state, "order_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Order service is not initialised",
        )
    return service
