import logging

from fastapi import HTTPException, Request, status

from app.services.erp.gateway import ErpGateway

logger = logging.getLogger(__name__)


async def get_gateway(request: Request) -> ErpGateway:
    """FastAPI dependency returning the ERP gateway built in the app lifespan."""
    gateway = getattr(request.app.state, "erp_gateway", None)
    if gateway is None:
        logger.error("ERP gateway requested before application startup completed")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Service is starting up")
    return gateway


def require_data(items: list, what: str) -> list:
    """Listing routes answer 503 when the upstream gave nothing, not even stale data."""
    if not items:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Unable to fetch {what} data from external API",
        )
    return items
