from typing import Annotated

from fastapi import APIRouter, Depends

from app.dependencies import get_order_service
from app.schemas.packages import Package
from app.services.order_service import OrderService

router = APIRouter()


@router.get(
    "/packages",
    response_model=list[Package],
    summary="List hosting packages",
)
def list_packages(
    service: Annotated[OrderService, Depends(get_order_service)],
):
    """Returns the configured package catalog as-is."""
    return service.list_packages()
