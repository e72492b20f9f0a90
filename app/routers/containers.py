import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse

from app.api import deps
from app.schemas.erp import (
    Container,
    ContainerFilters,
    GateOutResponse,
    ListResponse,
    RegisteredContainer,
    RegisteredOrder,
)
from app.services.erp.gateway import ErpGateway
from app.services.erp.registration_store import RegistrationStoreError

logger = logging.getLogger(__name__)

router = APIRouter()


def gate_out_status(response: GateOutResponse) -> int:
    if response.success:
        return status.HTTP_201_CREATED
    if response.failure_kind == "network":
        return status.HTTP_502_BAD_GATEWAY
    if response.status_code and response.status_code >= 400:
        return response.status_code
    return status.HTTP_400_BAD_REQUEST


@router.get("", response_model=ListResponse[Container])
async def list_containers(
    filters: ContainerFilters = Depends(),
    gateway: ErpGateway = Depends(deps.get_gateway),
) -> ListResponse[Container]:
    containers = deps.require_data(await gateway.fetch_containers(), "container")
    return ListResponse[Container].of(filters.apply(containers))


@router.post("/gate-out", response_model=GateOutResponse, status_code=status.HTTP_201_CREATED)
async def create_gate_out(
    payload: Dict[str, Any] = Body(...),
    gateway: ErpGateway = Depends(deps.get_gateway),
) -> JSONResponse:
    """Register a gate-out with the ERP.

    201 on success, 400 for local validation and upstream business errors,
    the upstream HTTP status when it answered with one.
    """
    result = await gateway.create_gate_out(payload)
    code = gate_out_status(result)
    if not result.success:
        logger.warning(f"Gate-out request failed with {code}: {result.error}")
    return JSONResponse(status_code=code, content=result.model_dump(mode="json", by_alias=True, exclude_none=True))


@router.get("/registered", response_model=ListResponse[RegisteredOrder])
async def list_registered_orders(
    company_id: Optional[str] = Query(default=None),
    gateway: ErpGateway = Depends(deps.get_gateway),
) -> ListResponse[RegisteredOrder]:
    # No registered orders is a normal answer for a company, so no 503 here
    return ListResponse[RegisteredOrder].of(await gateway.fetch_registered_orders(company_id))


@router.get("/registered/local/{user_id}", response_model=List[RegisteredContainer])
async def list_local_registrations(
    user_id: int,
    gateway: ErpGateway = Depends(deps.get_gateway),
) -> List[RegisteredContainer]:
    try:
        return await gateway.list_registered_containers(user_id)
    except RegistrationStoreError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


@router.get("/{container_id}", response_model=Container)
async def get_container(container_id: str, gateway: ErpGateway = Depends(deps.get_gateway)) -> Container:
    container = await gateway.containers.get_by_id(container_id)
    if not container:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Container not found")
    return container
