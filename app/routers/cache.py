from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api import deps
from app.schemas.erp import CacheEntryStats, CacheRefreshResponse
from app.services.erp.gateway import ErpGateway

router = APIRouter()


@router.post("/refresh", response_model=CacheRefreshResponse)
async def refresh_cache(
    entity: Optional[str] = Query(default=None, description="Collection to refresh; all when omitted"),
    gateway: ErpGateway = Depends(deps.get_gateway),
) -> CacheRefreshResponse:
    refreshed = await gateway.refresh_cache(entity)
    if entity is not None and not refreshed:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown collection: {entity}")
    return CacheRefreshResponse(refreshed=refreshed)


@router.get("/stats", response_model=List[CacheEntryStats])
async def cache_stats(gateway: ErpGateway = Depends(deps.get_gateway)) -> List[CacheEntryStats]:
    return [CacheEntryStats(**entry) for entry in gateway.cache_stats()]
