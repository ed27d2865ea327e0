from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping

from overlay_relay.application.exceptions import ValidationError
from overlay_relay.application.ports.bus import Broadcaster
from overlay_relay.application.ports.layout_store import LayoutStore
from overlay_relay.domain.entities.event import Event
from overlay_relay.domain.entities.layout import (
    LayoutPreferences,
    LayoutValue,
    invalid_layout_keys,
    merge_layout,
)

logger = logging.getLogger(__name__)


class LayoutService:
    """Owns the display layout preferences.

    Storage is read once by ``load`` at startup; afterwards the in-memory
    value is authoritative and every ``update`` is written through.
    """

    def __init__(
        self,
        store: LayoutStore,
        broadcaster: Broadcaster,
        defaults: Mapping[str, LayoutValue],
    ) -> None:
        self._store = store
        self._broadcaster = broadcaster
        self._value: LayoutPreferences = dict(defaults)
        self._lock = asyncio.Lock()

    async def load(self) -> None:
        try:
            stored = await self._store.load()
        except Exception:
            logger.exception("Failed to load layout preferences, using defaults")
            return
        if not stored:
            return
        bad = invalid_layout_keys(stored)
        if bad:
            logger.warning("Ignoring invalid stored layout keys: %s", ", ".join(map(str, bad)))
        self._value = merge_layout(
            self._value,
            {k: v for k, v in stored.items() if k not in bad},
        )
        logger.info("Layout preferences loaded: %s", self._value)

    def get(self) -> LayoutPreferences:
        return dict(self._value)

    def snapshot_event(self) -> Event:
        return Event.layout_update(self._value)

    async def update(self, partial: Mapping[str, Any]) -> LayoutPreferences:
        """Merge ``partial`` over the current value, persist and broadcast it."""
        bad = invalid_layout_keys(partial)
        if bad:
            raise ValidationError(f"Invalid layout values for: {', '.join(map(str, bad))}")

        async with self._lock:
            merged = merge_layout(self._value, partial)
            self._value = merged
            try:
                await self._store.save(merged)
            except Exception:
                logger.exception("Failed to persist layout preferences")
            self._broadcaster.broadcast_all(Event.layout_update(merged))
            return dict(merged)
