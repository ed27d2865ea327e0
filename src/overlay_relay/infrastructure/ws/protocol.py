"""WebSocket message envelope models."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from overlay_relay.domain.entities.event import Event
from overlay_relay.domain.value_objects.enums import EventKind, Role


class WsInbound(BaseModel):
    """Producer → Server."""

    model_config = ConfigDict(extra="ignore")

    type: str  # text | image | link | url | system
    payload: Any = None
    role: str | None = None


class WsOutbound(BaseModel):
    """Server → Display."""

    type: str  # inbound kinds | typing | llm-progress | layout-update
    payload: Any = None
    role: str | None = None


def decode_event(raw: str) -> Event:
    """Parse an inbound frame, falling back to a plain text event.

    Anything that is not a ``{type, payload}`` object is relayed as text with
    the raw frame as its payload rather than dropped.
    """
    try:
        msg = WsInbound.model_validate_json(raw)
    except PydanticValidationError:
        return Event(kind=EventKind.TEXT, payload=raw)

    role = Role(msg.role) if msg.role in list(Role) else None
    return Event(kind=msg.type, payload=msg.payload, role=role)


def encode_event(event: Event) -> str:
    fields: dict[str, Any] = {"type": event.kind, "payload": event.payload}
    if event.role is not None:
        fields["role"] = event.role
    return WsOutbound(**fields).model_dump_json(exclude_unset=True)
