from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api import deps
from app.schemas.erp import Driver, ListResponse
from app.services.erp.gateway import ErpGateway

router = APIRouter()


@router.get("", response_model=ListResponse[Driver])
async def list_drivers(
    company_id: Optional[str] = Query(default=None),
    gateway: ErpGateway = Depends(deps.get_gateway),
) -> ListResponse[Driver]:
    drivers = deps.require_data(await gateway.fetch_drivers(company_id), "driver")
    return ListResponse[Driver].of(drivers)
