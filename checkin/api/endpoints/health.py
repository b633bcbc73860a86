"""
Health Check Endpoints

- /health       - App status plus eSupervision API and Redis reachability
- /health/ping  - Liveness (app is running)
- /info         - Build information
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from checkin.core.config import settings
from checkin.core.logging_config import logger
from checkin.core.redis_client import redis_client
from checkin.services import get_esupervision_service
from checkin.services.esupervision_service import EsupervisionService


router = APIRouter(tags=["Health Checks"])


async def check_esupervision_api(esupervision_service: EsupervisionService) -> Dict[str, Any]:
    start = time.time()
    healthy = await esupervision_service.ping()
    latency = (time.time() - start) * 1000

    if not healthy:
        logger.error("[HealthCheck] eSupervision API ping failed")

    return {
        "status": "UP" if healthy else "DOWN",
        "latency_ms": round(latency, 2),
    }


async def check_redis() -> Dict[str, Any]:
    """Check the session store"""
    start = time.time()
    healthy = await redis_client.ping()
    latency = (time.time() - start) * 1000

    if not healthy:
        logger.error("[HealthCheck] Redis ping failed, sessions cannot be read")

    return {
        "status": "UP" if healthy else "DOWN",
        "latency_ms": round(latency, 2),
    }


@router.get("/health")
async def health(esupervision_service: EsupervisionService = Depends(get_esupervision_service)):
    """App status. Returns 503 when the eSupervision API or Redis cannot be reached."""
    api, session_store = await asyncio.gather(
        check_esupervision_api(esupervision_service),
        check_redis(),
    )
    components = {"esupervisionApi": api, "sessionStore": session_store}
    status = "UP" if all(c["status"] == "UP" for c in components.values()) else "DOWN"

    return JSONResponse(
        {
            "status": status,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": settings.APP_VERSION,
            "components": components,
        },
        status_code=200 if status == "UP" else 503,
    )


@router.get("/health/ping")
async def ping():
    return {"status": "UP"}


@router.get("/info")
async def info():
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "environmentName": settings.ENVIRONMENT_NAME,
    }
