"""Capability lifecycle actions exposed to the transport boundary."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Coroutine

from overlay_relay.application.exceptions import (
    CapabilityUnavailableError,
    ConflictError,
    ValidationError,
)
from overlay_relay.application.ports.capability import GenerationCapability

logger = logging.getLogger(__name__)


class CapabilityService:
    """Pass-through reads plus fire-and-forget download/load/unload.

    A request only fails when it can be rejected up front: no backend, a
    backend that has not initialized, a blank model name or a download that
    is already running. Whether a model exists is left to the backend, which
    reports it through the capability's progress notifications like every
    other outcome after acceptance.
    """

    def __init__(self, capability: GenerationCapability | None) -> None:
        self._capability = capability
        self._tasks: set[asyncio.Task[None]] = set()
        self._downloads: dict[str, asyncio.Task[None]] = {}

    @property
    def ready(self) -> bool:
        return self._capability is not None and self._capability.ready

    def status(self) -> dict[str, Any]:
        if self._capability is None:
            return {"initialized": False}
        return self._capability.status()

    async def list_models(self) -> dict[str, dict[str, Any]]:
        if not self.ready:
            return {}
        assert self._capability is not None
        return await self._capability.list_available()

    async def request_download(self, model_id: str) -> None:
        capability = self._require_ready()
        _require_model_name(model_id)
        running = self._downloads.get(model_id)
        if running is not None and not running.done():
            raise ConflictError(f"Download already running for {model_id}")
        task = self._spawn(capability.download(model_id), f"download:{model_id}")
        self._downloads[model_id] = task
        task.add_done_callback(lambda t: self._forget_download(model_id, t))

    async def request_load(self, model_id: str) -> None:
        capability = self._require_ready()
        _require_model_name(model_id)
        self._spawn(capability.load(model_id), f"load:{model_id}")

    async def request_unload(self) -> None:
        capability = self._require_ready()
        self._spawn(capability.unload(), "unload")

    async def aclose(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def _require_ready(self) -> GenerationCapability:
        if self._capability is None:
            raise CapabilityUnavailableError("Generation backend is not configured")
        if not self._capability.ready:
            raise CapabilityUnavailableError("Generation backend is not initialized yet")
        return self._capability

    def _forget_download(self, model_id: str, task: asyncio.Task[None]) -> None:
        # a newer download for the same model may already own the slot
        if self._downloads.get(model_id) is task:
            del self._downloads[model_id]

    def _spawn(self, coro: Coroutine[Any, Any, None], name: str) -> asyncio.Task[None]:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        logger.info("Capability action accepted: %s", name)
        return task

    def _on_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Capability action %s failed: %s", task.get_name(), exc)
        else:
            logger.info("Capability action %s finished", task.get_name())


def _require_model_name(model_id: str) -> None:
    if not model_id or not model_id.strip():
        raise ValidationError("modelName is required")
