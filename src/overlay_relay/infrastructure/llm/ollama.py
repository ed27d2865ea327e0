"""Generation capability backed by a local Ollama server.

Endpoints used:

    GET  /api/version   reachability check during ``initialize``
    GET  /api/tags      models present on disk
    POST /api/pull      streamed NDJSON download progress
    POST /api/generate  load (empty prompt), unload (keep_alive=0), generate

Every transport or protocol failure is raised as ``CapabilityError``.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Callable

import httpx

from overlay_relay.application.exceptions import CapabilityError, CapabilityUnavailableError
from overlay_relay.application.ports.capability import GenerationOptions, ProgressCallback
from overlay_relay.domain.value_objects.enums import ProgressKind

logger = logging.getLogger(__name__)


def _normalize(model_id: str) -> str:
    return model_id if ":" in model_id else f"{model_id}:latest"


class OllamaCapability:
    def __init__(
        self,
        base_url: str,
        catalog: list[str] | None = None,
        keep_alive: str = "30m",
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._catalog = [_normalize(m) for m in catalog or []]
        self._keep_alive = keep_alive
        self._timeout = timeout
        self._client = httpx.AsyncClient(base_url=self._base_url, timeout=timeout, transport=transport)
        self._ready = False
        self._version: str | None = None
        self._loaded_model: str | None = None
        self._downloads: dict[str, float] = {}
        self._listeners: list[ProgressCallback] = []

    @property
    def ready(self) -> bool:
        return self._ready

    async def initialize(self) -> None:
        data = await self._request("GET", "/api/version")
        self._version = data.get("version")
        self._ready = True
        logger.info("Ollama %s reachable at %s", self._version or "?", self._base_url)

    def status(self) -> dict[str, Any]:
        return {
            "initialized": self._ready,
            "backend": "ollama",
            "version": self._version,
            "loadedModel": self._loaded_model,
            "downloading": dict(self._downloads),
        }

    async def list_available(self) -> dict[str, dict[str, Any]]:
        data = await self._request("GET", "/api/tags")
        local = {_normalize(m["name"]): m for m in data.get("models", []) if m.get("name")}

        models: dict[str, dict[str, Any]] = {}
        for model_id in [*self._catalog, *local]:
            if model_id in models:
                continue
            info = local.get(model_id) or {}
            models[model_id] = {
                "downloaded": model_id in local,
                "loaded": model_id == self._loaded_model,
                "downloading": model_id in self._downloads,
                "progress": self._downloads.get(model_id),
                "size": info.get("size"),
            }
        return models

    async def generate(self, prompt: str, options: GenerationOptions) -> str:
        if not self._ready:
            raise CapabilityUnavailableError("Ollama is not initialized")
        if self._loaded_model is None:
            raise CapabilityError("No model loaded")

        body = {
            "model": self._loaded_model,
            "prompt": prompt,
            "stream": False,
            "keep_alive": self._keep_alive,
            "options": {
                "num_predict": options.max_tokens,
                "temperature": options.temperature,
            },
        }
        logger.debug("ollama generate model=%s prompt_len=%d", self._loaded_model, len(prompt))
        data = await self._request("POST", "/api/generate", json=body)
        text = data.get("response")
        if not isinstance(text, str):
            raise CapabilityError("Unexpected response format from Ollama")
        return text

    async def download(self, model_id: str) -> None:
        model_id = _normalize(model_id)
        self._downloads[model_id] = 0.0
        self._emit(ProgressKind.DOWNLOAD, 0.0, model_id, None)
        try:
            await self._pull(model_id)
        except CapabilityError as exc:
            self._emit(ProgressKind.ERROR, None, model_id, exc.detail)
            raise
        finally:
            self._downloads.pop(model_id, None)
        self._emit(ProgressKind.DOWNLOAD_COMPLETE, 100.0, model_id, None)

    async def load(self, model_id: str) -> None:
        model_id = _normalize(model_id)
        self._emit(ProgressKind.LOAD, 0.0, model_id, None)
        try:
            await self._request(
                "POST",
                "/api/generate",
                json={"model": model_id, "prompt": "", "keep_alive": self._keep_alive},
            )
        except CapabilityError as exc:
            self._emit(ProgressKind.ERROR, None, model_id, exc.detail)
            raise
        self._loaded_model = model_id
        self._emit(ProgressKind.LOAD_COMPLETE, 100.0, model_id, None)
        logger.info("Model loaded: %s", model_id)

    async def unload(self) -> None:
        model_id = self._loaded_model
        if model_id is None:
            return
        self._loaded_model = None
        try:
            await self._request(
                "POST",
                "/api/generate",
                json={"model": model_id, "prompt": "", "keep_alive": 0},
            )
        except CapabilityError as exc:
            self._emit(ProgressKind.ERROR, None, model_id, exc.detail)
            raise
        self._emit(ProgressKind.UNLOAD, None, model_id, None)
        logger.info("Model unloaded: %s", model_id)

    def on_progress(self, callback: ProgressCallback) -> Callable[[], None]:
        self._listeners.append(callback)

        def _unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return _unsubscribe

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _pull(self, model_id: str) -> None:
        last_pct: int | None = None
        try:
            async with self._client.stream(
                "POST", "/api/pull", json={"model": model_id, "stream": True}, timeout=None,
            ) as resp:
                resp.raise_for_status()
                async for line in resp.aiter_lines():
                    if not line.strip():
                        continue
                    data = json.loads(line)
                    if "error" in data:
                        raise CapabilityError(str(data["error"]))
                    total, completed = data.get("total"), data.get("completed")
                    if not total or completed is None:
                        continue
                    pct = round(completed * 100 / total, 1)
                    self._downloads[model_id] = pct
                    # Ollama reports per chunk; one notification per whole percent is enough.
                    if int(pct) != last_pct:
                        last_pct = int(pct)
                        self._emit(ProgressKind.DOWNLOAD, pct, model_id, None)
        except httpx.HTTPStatusError as e:
            raise CapabilityError(f"Ollama returned HTTP {e.response.status_code} for pull") from e
        except httpx.HTTPError as e:
            raise CapabilityError(f"Pull of {model_id} failed: {e}") from e
        except json.JSONDecodeError as e:
            raise CapabilityError("Malformed pull progress from Ollama") from e

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            resp = await self._client.request(method, path, **kwargs)
            resp.raise_for_status()
        except httpx.ConnectError as e:
            raise CapabilityError(f"Cannot connect to Ollama at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            raise CapabilityError(f"Ollama returned HTTP {e.response.status_code}") from e
        except httpx.TimeoutException as e:
            raise CapabilityError(f"Ollama timed out after {self._timeout}s") from e
        except httpx.HTTPError as e:
            raise CapabilityError(f"Ollama request failed: {e}") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise CapabilityError("Ollama returned a non-JSON body") from e
        if not isinstance(data, dict):
            raise CapabilityError("Unexpected response format from Ollama")
        return data

    def _emit(self, kind: str, progress: float | None, model_id: str | None, error: str | None) -> None:
        for listener in list(self._listeners):
            try:
                listener(kind, progress, model_id, error)
            except Exception:
                logger.exception("Progress listener failed")
