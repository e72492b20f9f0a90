from fastapi import APIRouter

from app.routers import (
    cache,
    company,
    container_types,
    containers,
    depots,
    drivers,
    goods,
    health,
    locations,
    order_statuses,
    shipping_lines,
    vehicles,
)

api_router = APIRouter()

api_router.include_router(health.router, tags=["Health"])
api_router.include_router(depots.router, prefix="/depots", tags=["Depots"])
api_router.include_router(containers.router, prefix="/containers", tags=["Containers"])
api_router.include_router(shipping_lines.router, prefix="/shipping-lines", tags=["Shipping Lines"])
api_router.include_router(goods.router, prefix="/goods", tags=["Goods"])
api_router.include_router(container_types.router, prefix="/container-types", tags=["Container Types"])
api_router.include_router(company.router, prefix="/companies", tags=["Companies"])
api_router.include_router(drivers.router, prefix="/drivers", tags=["Drivers"])
api_router.include_router(vehicles.router, prefix="/vehicles", tags=["Vehicles"])
api_router.include_router(locations.router, prefix="/locations", tags=["Locations"])
api_router.include_router(order_statuses.router, prefix="/order-statuses", tags=["Order Statuses"])
api_router.include_router(cache.router, prefix="/cache", tags=["Cache"])
