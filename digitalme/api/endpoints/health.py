from fastapi import APIRouter
from fastapi.responses import JSONResponse

from digitalme.core.version import __version__
from digitalme.services.redis_service import redis_service

router = APIRouter(tags=["health"])


@router.get("/health", summary="Simple liveness probe")
async def health_check() -> dict[str, str]:
    return {"status": "ok", "version": __version__}


@router.get("/health/ready", summary="Readiness probe including profile storage")
async def readiness_check() -> JSONResponse:
    if await redis_service.ping():
        return JSONResponse(content={"status": "ready", "storage": "ok"})
    return JSONResponse(status_code=503, content={"status": "degraded", "storage": "unavailable"})
