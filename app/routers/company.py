from fastapi import APIRouter, Depends, HTTPException, status

from app.api import deps
from app.schemas.erp import Company
from app.services.erp.gateway import ErpGateway

router = APIRouter()


@router.get("/by-user/{user_id}", response_model=Company)
async def get_company_by_user(user_id: str, gateway: ErpGateway = Depends(deps.get_gateway)) -> Company:
    """Transport company of a dashboard user, from the account profile or the driver list."""
    company = await gateway.fetch_company_by_user_id(user_id)
    if not company:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No company found for user {user_id}")
    return company
