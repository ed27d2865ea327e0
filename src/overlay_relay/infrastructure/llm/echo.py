from __future__ import annotations

import logging
from typing import Any, Callable

from overlay_relay.application.ports.capability import GenerationOptions, ProgressCallback
from overlay_relay.domain.value_objects.enums import ProgressKind

logger = logging.getLogger(__name__)

ECHO_MODEL = "echo"


class EchoCapability:
    """Returns the prompt text as-is. No network calls.

    Lets the relay, typing indicator and progress channel be exercised
    end-to-end without a model server. Exposes a single always-downloaded
    model named ``echo``.
    """

    def __init__(self) -> None:
        self._ready = False
        self._loaded = False
        self._listeners: list[ProgressCallback] = []

    @property
    def ready(self) -> bool:
        return self._ready

    async def initialize(self) -> None:
        self._ready = True

    async def generate(self, prompt: str, options: GenerationOptions) -> str:
        logger.debug("EchoCapability prompt_len=%d", len(prompt))
        return prompt

    def status(self) -> dict[str, Any]:
        return {
            "initialized": self._ready,
            "backend": "echo",
            "loadedModel": ECHO_MODEL if self._loaded else None,
        }

    async def list_available(self) -> dict[str, dict[str, Any]]:
        return {ECHO_MODEL: {"downloaded": True, "loaded": self._loaded}}

    async def download(self, model_id: str) -> None:
        self._emit(ProgressKind.DOWNLOAD_COMPLETE, 100.0, model_id)

    async def load(self, model_id: str) -> None:
        self._loaded = True
        self._emit(ProgressKind.LOAD_COMPLETE, 100.0, model_id)

    async def unload(self) -> None:
        self._loaded = False
        self._emit(ProgressKind.UNLOAD, None, ECHO_MODEL)

    def on_progress(self, callback: ProgressCallback) -> Callable[[], None]:
        self._listeners.append(callback)
        return lambda: self._listeners.remove(callback)

    async def aclose(self) -> None:
        self._listeners.clear()

    def _emit(self, kind: str, progress: float | None, model_id: str) -> None:
        for listener in list(self._listeners):
            listener(kind, progress, model_id, None)
