"""Shared test fixtures."""
from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any, Callable

import pytest

from overlay_relay.application.exceptions import CapabilityError
from overlay_relay.application.ports.capability import GenerationOptions, ProgressCallback
from overlay_relay.config import Settings
from overlay_relay.domain.entities.event import Event
from overlay_relay.infrastructure.ws.protocol import encode_event


@pytest.fixture
def relay_settings() -> Settings:
    return Settings(
        GENERATION_BACKEND="none",
        GENERATION_TIMEOUT_SECONDS=1.0,
        CAPABILITY_INIT_BASE_DELAY=0.0,
        CAPABILITY_INIT_MAX_DELAY=0.0,
    )


@dataclass
class FakeWebSocket:
    """Records frames passed to send_text; optionally fails every send."""

    sent: list[str] = field(default_factory=list)
    fail: bool = False
    accepted: bool = False

    async def accept(self) -> None:
        self.accepted = True

    async def send_text(self, data: str) -> None:
        if self.fail:
            raise RuntimeError("socket not ready")
        self.sent.append(data)

    @property
    def messages(self) -> list[dict[str, Any]]:
        return [json.loads(raw) for raw in self.sent]


@dataclass
class RecordingBroadcaster:
    """Broadcaster that keeps events in call order."""

    events: list[Event] = field(default_factory=list)

    def broadcast_all(self, event: Event) -> int:
        self.events.append(event)
        return 1


@dataclass
class FakeCapability:
    """In-memory GenerationCapability with scripted behaviour."""

    reply: str = "nice one"
    error: Exception | None = None
    delay: float = 0.0
    is_ready: bool = True
    models: dict[str, dict[str, Any]] = field(
        default_factory=lambda: {"tiny": {"downloaded": True, "loaded": False}},
    )
    init_failures: int = 0
    prompts: list[str] = field(default_factory=list)
    options: list[GenerationOptions] = field(default_factory=list)
    calls: list[tuple[str, str | None]] = field(default_factory=list)
    listeners: list[ProgressCallback] = field(default_factory=list)
    action_gate: asyncio.Event | None = None
    closed: bool = False

    @property
    def ready(self) -> bool:
        return self.is_ready

    async def initialize(self) -> None:
        self.calls.append(("initialize", None))
        if self.init_failures > 0:
            self.init_failures -= 1
            raise CapabilityError("backend down")
        self.is_ready = True

    async def generate(self, prompt: str, options: GenerationOptions) -> str:
        self.prompts.append(prompt)
        self.options.append(options)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply

    def status(self) -> dict[str, Any]:
        return {"initialized": self.is_ready, "backend": "fake"}

    async def list_available(self) -> dict[str, dict[str, Any]]:
        return self.models

    async def download(self, model_id: str) -> None:
        self.calls.append(("download", model_id))
        if self.action_gate is not None:
            await self.action_gate.wait()
        self.emit("download-complete", 100.0, model_id, None)

    async def load(self, model_id: str) -> None:
        self.calls.append(("load", model_id))
        self.emit("load-complete", 100.0, model_id, None)

    async def unload(self) -> None:
        self.calls.append(("unload", None))

    def on_progress(self, callback: ProgressCallback) -> Callable[[], None]:
        self.listeners.append(callback)
        return lambda: self.listeners.remove(callback)

    async def aclose(self) -> None:
        self.closed = True

    def emit(self, kind: str, progress: float | None, model_id: str | None, error: str | None) -> None:
        for listener in list(self.listeners):
            listener(kind, progress, model_id, error)


@dataclass
class InMemoryLayoutStore:
    stored: dict[str, Any] | None = None
    saves: list[dict[str, Any]] = field(default_factory=list)
    fail_load: bool = False
    fail_save: bool = False

    async def load(self) -> dict[str, Any] | None:
        if self.fail_load:
            raise OSError("disk unreadable")
        return self.stored

    async def save(self, layout: dict[str, Any]) -> None:
        if self.fail_save:
            raise OSError("disk full")
        self.saves.append(dict(layout))
        self.stored = dict(layout)


def wire(event: Event) -> dict[str, Any]:
    """The JSON object a display would receive for ``event``."""
    return json.loads(encode_event(event))
