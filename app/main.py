from contextlib import asynccontextmanager
import logging

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.router import api_router
from app.core.config import get_settings
from app.services.erp.gateway import build_gateway

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"[LIFESPAN] Starting {settings.project_name} against {settings.erp_api_url}")
    async with httpx.AsyncClient(headers={"Content-Type": "application/json"}) as http_client:
        app.state.erp_gateway = build_gateway(settings, http_client)
        logger.info("[LIFESPAN] ERP gateway ready")

        yield

        logger.info("[LIFESPAN] Shutting down...")
        app.state.erp_gateway = None
    logger.info("[LIFESPAN] Shutdown complete")


app = FastAPI(
    title=settings.project_name,
    debug=settings.debug,
    lifespan=lifespan,
)

logger.info(f"[CORS] Configured origins: {settings.backend_cors_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.backend_cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept", "Origin", "X-Requested-With"],
)

app.include_router(api_router, prefix="/api")


@app.get("/", tags=["Health"])
async def root() -> dict[str, str]:
    return {"status": "ok", "environment": settings.environment}
