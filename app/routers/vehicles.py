from fastapi import APIRouter, Depends, Query

from app.api import deps
from app.schemas.erp import ListResponse, Vehicle, VehicleDriver
from app.services.erp.gateway import ErpGateway

router = APIRouter()


@router.get("/company/{company_id}", response_model=ListResponse[Vehicle])
async def list_company_vehicles(company_id: str, gateway: ErpGateway = Depends(deps.get_gateway)) -> ListResponse[Vehicle]:
    # A company without plated drivers has no vehicles, so no 503 here
    return ListResponse[Vehicle].of(await gateway.fetch_vehicles(company_id))


@router.get("/{vehicle_plate}/drivers", response_model=ListResponse[VehicleDriver])
async def list_vehicle_drivers(
    vehicle_plate: str,
    company_id: str = Query(..., min_length=1),
    gateway: ErpGateway = Depends(deps.get_gateway),
) -> ListResponse[VehicleDriver]:
    return ListResponse[VehicleDriver].of(await gateway.fetch_vehicle_drivers(vehicle_plate, company_id))
