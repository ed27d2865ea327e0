"""Redis-backed layout storage: one key holding a JSON document."""
from __future__ import annotations

import json
from typing import Any

import redis.asyncio as aioredis


class RedisLayoutStore:
    """Implements application.ports.layout_store.LayoutStore."""

    def __init__(self, redis: aioredis.Redis, key: str) -> None:
        self._redis = redis
        self._key = key

    async def load(self) -> dict[str, Any] | None:
        raw = await self._redis.get(self._key)
        if raw is None:
            return None
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError(f"Redis key {self._key} does not hold a JSON object")
        return data

    async def save(self, layout: dict[str, Any]) -> None:
        await self._redis.set(self._key, json.dumps(layout))
