"""In-process registry of overlay display connections."""
from __future__ import annotations

import asyncio
import logging
import uuid

from fastapi import WebSocket

from overlay_relay.domain.entities.event import Event
from overlay_relay.domain.value_objects.enums import ConnectionState
from overlay_relay.infrastructure.ws.protocol import encode_event

logger = logging.getLogger(__name__)


class Connection:
    """One display socket with its own outbound FIFO.

    Frames are queued synchronously and written by a dedicated sender task,
    so a slow display never holds up a broadcast to the others.
    """

    def __init__(self, ws: WebSocket) -> None:
        self.ws = ws
        self.id = uuid.uuid4().hex[:12]
        self.state = ConnectionState.OPEN
        self._queue: asyncio.Queue[str] = asyncio.Queue()
        self._sender: asyncio.Task[None] | None = None

    def start(self) -> None:
        if self._sender is None:
            self._sender = asyncio.create_task(self._send_loop(), name=f"ws-sender-{self.id}")

    def enqueue(self, raw: str) -> bool:
        if self.state != ConnectionState.OPEN:
            return False
        self._queue.put_nowait(raw)
        return True

    async def flush(self) -> None:
        """Wait until every queued frame has been handed to the socket."""
        await self._queue.join()

    def close(self) -> None:
        self.state = ConnectionState.CLOSED
        if self._sender is not None:
            self._sender.cancel()
        self._discard_pending()

    async def wait_closed(self) -> None:
        if self._sender is not None:
            await asyncio.gather(self._sender, return_exceptions=True)

    async def _send_loop(self) -> None:
        while True:
            raw = await self._queue.get()
            try:
                await self.ws.send_text(raw)
            except Exception:
                logger.debug("WS send failed for %s, waiting for close", self.id, exc_info=True)
                if self.state == ConnectionState.OPEN:
                    self.state = ConnectionState.CLOSING
                self._discard_pending()
                return
            finally:
                self._queue.task_done()

    def _discard_pending(self) -> None:
        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()


class ConnectionRegistry:
    """Tracks open display connections and fans events out to them."""

    def __init__(self) -> None:
        self._connections: dict[str, Connection] = {}

    def __len__(self) -> int:
        return len(self._connections)

    async def connect(self, ws: WebSocket) -> Connection:
        await ws.accept()
        return self.register(Connection(ws))

    def register(self, conn: Connection) -> Connection:
        conn.start()
        self._connections[conn.id] = conn
        logger.debug("WS connected: %s (total=%d)", conn.id, len(self._connections))
        return conn

    def unregister(self, conn: Connection) -> None:
        if self._connections.pop(conn.id, None) is None:
            return
        conn.close()
        logger.debug("WS disconnected: %s (total=%d)", conn.id, len(self._connections))

    def broadcast_all(self, event: Event) -> int:
        """Queue ``event`` for every open connection; returns how many took it."""
        raw = encode_event(event)
        delivered = 0
        for conn in list(self._connections.values()):
            if conn.enqueue(raw):
                delivered += 1
        return delivered

    def send(self, conn: Connection, event: Event) -> bool:
        return conn.enqueue(encode_event(event))

    async def flush(self) -> None:
        await asyncio.gather(*(conn.flush() for conn in list(self._connections.values())))

    async def close_all(self) -> None:
        conns = list(self._connections.values())
        for conn in conns:
            self.unregister(conn)
        await asyncio.gather(*(conn.wait_closed() for conn in conns))
