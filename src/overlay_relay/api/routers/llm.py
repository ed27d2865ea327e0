from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from overlay_relay.api.deps import CapabilityServiceDep
from overlay_relay.api.schemas.capability import ModelActionRequest
from overlay_relay.api.schemas.common import OkResponse

router = APIRouter(prefix="/llm", tags=["llm"])


@router.get("/status")
async def get_status(capabilities: CapabilityServiceDep) -> dict[str, Any]:
    return capabilities.status()


@router.get("/models")
async def list_models(capabilities: CapabilityServiceDep) -> dict[str, dict[str, Any]]:
    return await capabilities.list_models()


@router.post("/download", response_model=OkResponse)
async def download_model(body: ModelActionRequest, capabilities: CapabilityServiceDep) -> OkResponse:
    await capabilities.request_download(body.model_name)
    return OkResponse()


@router.post("/load", response_model=OkResponse)
async def load_model(body: ModelActionRequest, capabilities: CapabilityServiceDep) -> OkResponse:
    await capabilities.request_load(body.model_name)
    return OkResponse()


@router.post("/unload", response_model=OkResponse)
async def unload_model(capabilities: CapabilityServiceDep) -> OkResponse:
    await capabilities.request_unload()
    return OkResponse()
