from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api import deps
from app.schemas.erp import CollectionStatistics, ContainerType, ContainerTypeFilters, ListResponse
from app.services.erp.gateway import ErpGateway

router = APIRouter()


@router.get("", response_model=ListResponse[ContainerType])
async def list_container_types(
    filters: ContainerTypeFilters = Depends(),
    gateway: ErpGateway = Depends(deps.get_gateway),
) -> ListResponse[ContainerType]:
    types = deps.require_data(await gateway.fetch_container_types(), "container type")
    return ListResponse[ContainerType].of(filters.apply(types))


@router.get("/statistics", response_model=CollectionStatistics)
async def container_type_statistics(gateway: ErpGateway = Depends(deps.get_gateway)) -> CollectionStatistics:
    return await gateway.container_types.get_statistics()


@router.get("/active", response_model=ListResponse[ContainerType])
async def list_active_container_types(gateway: ErpGateway = Depends(deps.get_gateway)) -> ListResponse[ContainerType]:
    return ListResponse[ContainerType].of(await gateway.container_types.get_active())


@router.get("/search", response_model=ListResponse[ContainerType])
async def search_container_types(
    q: str = Query(..., min_length=1),
    gateway: ErpGateway = Depends(deps.get_gateway),
) -> ListResponse[ContainerType]:
    return ListResponse[ContainerType].of(await gateway.container_types.search_container_types(q))


@router.get("/code/{code}", response_model=ContainerType)
async def get_container_type_by_code(code: str, gateway: ErpGateway = Depends(deps.get_gateway)) -> ContainerType:
    container_type = await gateway.container_types.get_by_code(code)
    if not container_type:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Container type not found")
    return container_type


@router.get("/{type_id}", response_model=ContainerType)
async def get_container_type(type_id: str, gateway: ErpGateway = Depends(deps.get_gateway)) -> ContainerType:
    container_type = await gateway.container_types.get_by_id(type_id)
    if not container_type:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Container type not found")
    return container_type
