from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class JsonFileLayoutStore:
    """Implements application.ports.layout_store.LayoutStore on a JSON file."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    async def load(self) -> dict[str, Any] | None:
        return await asyncio.to_thread(self._read)

    async def save(self, layout: dict[str, Any]) -> None:
        await asyncio.to_thread(self._write, layout)

    def _read(self) -> dict[str, Any] | None:
        if not self._path.exists():
            return None
        data = json.loads(self._path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"{self._path} does not contain a JSON object")
        return data

    def _write(self, layout: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_name(self._path.name + ".tmp")
        tmp.write_text(json.dumps(layout, indent=2), encoding="utf-8")
        os.replace(tmp, self._path)
        logger.debug("Layout written to %s", self._path)
