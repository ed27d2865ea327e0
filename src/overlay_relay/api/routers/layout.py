from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Body

from overlay_relay.api.deps import LayoutServiceDep
from overlay_relay.api.schemas.layout import LayoutPatch, LayoutUpdateResponse
from overlay_relay.domain.entities.layout import LayoutPreferences

router = APIRouter(prefix="/layout", tags=["layout"])


@router.get("")
async def get_layout(layout: LayoutServiceDep) -> LayoutPreferences:
    return layout.get()


@router.post("", response_model=LayoutUpdateResponse)
async def update_layout(body: Annotated[LayoutPatch, Body()], layout: LayoutServiceDep) -> LayoutUpdateResponse:
    merged = await layout.update(body)
    return LayoutUpdateResponse(layout=merged)
