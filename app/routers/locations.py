from fastapi import APIRouter, Depends

from app.api import deps
from app.schemas.erp import ListResponse, Location
from app.services.erp.gateway import ErpGateway

router = APIRouter()


@router.get("", response_model=ListResponse[Location])
async def list_locations(gateway: ErpGateway = Depends(deps.get_gateway)) -> ListResponse[Location]:
    locations = deps.require_data(await gateway.fetch_locations(), "location")
    return ListResponse[Location].of(locations)


@router.get("/{code}", response_model=Location)
async def get_location(code: str, gateway: ErpGateway = Depends(deps.get_gateway)) -> Location:
    """Unknown codes resolve to the fallback province name rather than 404."""
    return await gateway.get_location(code)
