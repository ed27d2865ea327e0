"""FastAPI dependency injection helpers.

All long-lived services are built once in the application lifespan and kept
on ``app.state``; these helpers hand them to the routers.
"""
from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from overlay_relay.services.capability_service import CapabilityService
from overlay_relay.services.layout_service import LayoutService


def get_capability_service(request: Request) -> CapabilityService:
    return request.app.state.capabilities


def get_layout_service(request: Request) -> LayoutService:
    return request.app.state.layout


CapabilityServiceDep = Annotated[CapabilityService, Depends(get_capability_service)]
LayoutServiceDep = Annotated[LayoutService, Depends(get_layout_service)]
