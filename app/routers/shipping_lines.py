from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api import deps
from app.schemas.erp import CollectionStatistics, ListResponse, ShippingLine, ShippingLineFilters
from app.services.erp.gateway import ErpGateway

router = APIRouter()


@router.get("", response_model=ListResponse[ShippingLine])
async def list_shipping_lines(
    filters: ShippingLineFilters = Depends(),
    gateway: ErpGateway = Depends(deps.get_gateway),
) -> ListResponse[ShippingLine]:
    lines = deps.require_data(await gateway.fetch_shipping_lines(), "shipping line")
    return ListResponse[ShippingLine].of(filters.apply(lines))


@router.get("/countries", response_model=List[str])
async def list_countries(gateway: ErpGateway = Depends(deps.get_gateway)) -> List[str]:
    return await gateway.shipping_lines.get_countries()


@router.get("/statistics", response_model=CollectionStatistics)
async def shipping_line_statistics(gateway: ErpGateway = Depends(deps.get_gateway)) -> CollectionStatistics:
    return await gateway.shipping_lines.get_statistics()


@router.get("/search", response_model=ListResponse[ShippingLine])
async def search_shipping_lines(
    q: str = Query(..., min_length=1),
    gateway: ErpGateway = Depends(deps.get_gateway),
) -> ListResponse[ShippingLine]:
    return ListResponse[ShippingLine].of(await gateway.shipping_lines.search_shipping_lines(q))


@router.get("/code/{code}", response_model=ShippingLine)
async def get_shipping_line_by_code(code: str, gateway: ErpGateway = Depends(deps.get_gateway)) -> ShippingLine:
    line = await gateway.shipping_lines.get_by_code(code)
    if not line:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Shipping line not found")
    return line


@router.get("/{line_id}", response_model=ShippingLine)
async def get_shipping_line(line_id: str, gateway: ErpGateway = Depends(deps.get_gateway)) -> ShippingLine:
    line = await gateway.shipping_lines.get_by_id(line_id)
    if not line:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Shipping line not found")
    return line
