from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Protocol

# (kind, progress, model_id, error)
ProgressCallback = Callable[[str, float | None, str | None, str | None], None]


@dataclass(frozen=True, slots=True)
class GenerationOptions:
    max_tokens: int
    temperature: float


class GenerationCapability(Protocol):
    """Boundary to a local text-generation backend.

    ``ready`` turns true once ``initialize`` has completed and never turns
    back. Lifecycle calls (``download``, ``load``, ``unload``) report their
    progress through the ``on_progress`` subscription.
    """

    @property
    def ready(self) -> bool: ...

    async def initialize(self) -> None: ...

    async def generate(self, prompt: str, options: GenerationOptions) -> str: ...

    def status(self) -> dict[str, Any]: ...

    async def list_available(self) -> dict[str, dict[str, Any]]: ...

    async def download(self, model_id: str) -> None: ...

    async def load(self, model_id: str) -> None: ...

    async def unload(self) -> None: ...

    def on_progress(self, callback: ProgressCallback) -> Callable[[], None]: ...

    async def aclose(self) -> None: ...
