from __future__ import annotations

from typing import Protocol

from overlay_relay.domain.entities.event import Event


class Broadcaster(Protocol):
    def broadcast_all(self, event: Event) -> int: ...
