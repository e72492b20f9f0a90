from fastapi import APIRouter, Depends, HTTPException, status

from app.api import deps
from app.schemas.erp import ListResponse, OrderStatus
from app.services.erp.gateway import ErpGateway

router = APIRouter()


@router.get("", response_model=ListResponse[OrderStatus])
async def list_order_statuses(gateway: ErpGateway = Depends(deps.get_gateway)) -> ListResponse[OrderStatus]:
    statuses = deps.require_data(await gateway.fetch_order_statuses(), "order status")
    return ListResponse[OrderStatus].of(statuses)


@router.get("/{status_id}", response_model=OrderStatus)
async def get_order_status(status_id: str, gateway: ErpGateway = Depends(deps.get_gateway)) -> OrderStatus:
    order_status = await gateway.get_order_status(status_id)
    if not order_status:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order status not found")
    return order_status
