from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from overlay_relay.infrastructure.ws.manager import ConnectionRegistry
from overlay_relay.services.layout_service import LayoutService
from overlay_relay.services.relay_service import RelayService

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])


@router.websocket("/")
async def ws_overlay(websocket: WebSocket) -> None:
    """Shared channel for displays and producers.

    Displays receive every broadcast; anything a client sends is relayed.
    """
    registry: ConnectionRegistry = websocket.app.state.registry
    relay: RelayService = websocket.app.state.relay
    layout: LayoutService = websocket.app.state.layout

    conn = await registry.connect(websocket)
    registry.send(conn, layout.snapshot_event())
    try:
        await _read_loop(websocket, relay)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WS error for %s", conn.id)
    finally:
        registry.unregister(conn)


async def _read_loop(ws: WebSocket, relay: RelayService) -> None:
    while True:
        message = await ws.receive()
        if message["type"] == "websocket.disconnect":
            raise WebSocketDisconnect(message.get("code", 1000))

        raw = message.get("text")
        if raw is None:
            data = message.get("bytes") or b""
            raw = data.decode("utf-8", errors="replace")
        logger.debug("Inbound frame (%d chars)", len(raw))
        await relay.handle_inbound(raw)
