from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api import deps
from app.schemas.erp import CollectionStatistics, Goods, GoodsFilters, ListResponse
from app.services.erp.gateway import ErpGateway

router = APIRouter()


@router.get("", response_model=ListResponse[Goods])
async def list_goods(
    filters: GoodsFilters = Depends(),
    gateway: ErpGateway = Depends(deps.get_gateway),
) -> ListResponse[Goods]:
    goods = deps.require_data(await gateway.fetch_goods(), "goods")
    return ListResponse[Goods].of(filters.apply(goods))


@router.get("/statistics", response_model=CollectionStatistics)
async def goods_statistics(gateway: ErpGateway = Depends(deps.get_gateway)) -> CollectionStatistics:
    return await gateway.goods.get_statistics()


@router.get("/active", response_model=ListResponse[Goods])
async def list_active_goods(gateway: ErpGateway = Depends(deps.get_gateway)) -> ListResponse[Goods]:
    return ListResponse[Goods].of(await gateway.goods.get_active())


@router.get("/search", response_model=ListResponse[Goods])
async def search_goods(
    q: str = Query(..., min_length=1),
    gateway: ErpGateway = Depends(deps.get_gateway),
) -> ListResponse[Goods]:
    return ListResponse[Goods].of(await gateway.goods.search_goods(q))


@router.get("/code/{code}", response_model=Goods)
async def get_goods_by_code(code: str, gateway: ErpGateway = Depends(deps.get_gateway)) -> Goods:
    goods = await gateway.goods.get_by_code(code)
    if not goods:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Goods not found")
    return goods


@router.get("/{goods_id}", response_model=Goods)
async def get_goods(goods_id: str, gateway: ErpGateway = Depends(deps.get_gateway)) -> Goods:
    goods = await gateway.goods.get_by_id(goods_id)
    if not goods:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Goods not found")
    return goods
