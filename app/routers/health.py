from fastapi import APIRouter

from app.core.config import get_settings

router = APIRouter()


@router.get("/healthz", summary="Health check")
async def health_check() -> dict[str, str]:
    settings = get_settings()
    return {"status": "ok", "environment": settings.environment, "erp_api_url": settings.erp_api_url}
