from __future__ import annotations

from typing import Any, Protocol


class LayoutStore(Protocol):
    async def load(self) -> dict[str, Any] | None: ...

    async def save(self, layout: dict[str, Any]) -> None: ...
