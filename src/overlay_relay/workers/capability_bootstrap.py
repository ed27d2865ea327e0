"""Capability bootstrap: brings the generation backend up in the background."""
from __future__ import annotations

import asyncio
import logging

from overlay_relay.application.ports.capability import GenerationCapability
from overlay_relay.config import Settings

logger = logging.getLogger(__name__)


def _calc_backoff(attempts: int, base: float, maximum: float) -> float:
    return min(base * (2 ** attempts), maximum)


async def bootstrap_capability(capability: GenerationCapability, settings: Settings) -> None:
    """Initialize the backend, retrying until it answers, then auto-load a model.

    The relay keeps serving in relay-only/not-ready mode the whole time.
    """
    attempts = 0
    while True:
        try:
            await capability.initialize()
            break
        except Exception as exc:
            delay = _calc_backoff(
                attempts,
                settings.CAPABILITY_INIT_BASE_DELAY,
                settings.CAPABILITY_INIT_MAX_DELAY,
            )
            logger.warning(
                "Generation backend not available (attempt %d): %s; retrying in %.1fs",
                attempts + 1,
                exc,
                delay,
            )
            attempts += 1
            await asyncio.sleep(delay)

    logger.info("Generation backend initialized")
    if not settings.AUTO_LOAD_MODEL:
        return

    try:
        await _auto_load(capability)
    except Exception:
        logger.exception("Auto-load of a downloaded model failed")


async def _auto_load(capability: GenerationCapability) -> None:
    models = await capability.list_available()
    for model_id, info in models.items():
        if info.get("downloaded"):
            logger.info("Found downloaded model, auto-loading %s", model_id)
            await capability.load(model_id)
            logger.info("Local model ready: %s", model_id)
            return
    logger.warning("No models downloaded yet; download one via POST /llm/download")
