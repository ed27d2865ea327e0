from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from overlay_relay.api.deps import CapabilityServiceDep

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(capabilities: CapabilityServiceDep) -> JSONResponse:
    if not capabilities.ready:
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "errors": ["generation backend not ready"]},
        )
    return JSONResponse(content={"status": "ready"})
