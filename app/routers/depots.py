from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api import deps
from app.schemas.erp import Depot, DepotFilters, DepotStatistics, ListResponse
from app.services.erp.gateway import ErpGateway

router = APIRouter()


@router.get("", response_model=ListResponse[Depot])
async def list_depots(
    filters: DepotFilters = Depends(),
    gateway: ErpGateway = Depends(deps.get_gateway),
) -> ListResponse[Depot]:
    depots = deps.require_data(await gateway.fetch_depots(), "depot")
    return ListResponse[Depot].of(filters.apply(depots))


@router.get("/provinces", response_model=List[str])
async def list_provinces(gateway: ErpGateway = Depends(deps.get_gateway)) -> List[str]:
    return await gateway.depots.get_provinces()


@router.get("/statistics", response_model=DepotStatistics)
async def depot_statistics(gateway: ErpGateway = Depends(deps.get_gateway)) -> DepotStatistics:
    return await gateway.depots.get_statistics()


@router.get("/search", response_model=ListResponse[Depot])
async def search_depots(
    q: str = Query(..., min_length=1),
    gateway: ErpGateway = Depends(deps.get_gateway),
) -> ListResponse[Depot]:
    return ListResponse[Depot].of(await gateway.depots.search_depots(q))


@router.get("/{depot_id}", response_model=Depot)
async def get_depot(depot_id: str, gateway: ErpGateway = Depends(deps.get_gateway)) -> Depot:
    depot = await gateway.depots.get_by_id(depot_id)
    if not depot:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Depot not found")
    return depot
