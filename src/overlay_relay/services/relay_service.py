"""Relay core: rebroadcasts producer events and drives generated reactions."""
from __future__ import annotations

import asyncio
import logging

from overlay_relay.application.exceptions import CapabilityError
from overlay_relay.application.ports.bus import Broadcaster
from overlay_relay.application.ports.capability import GenerationCapability, GenerationOptions
from overlay_relay.config import Settings
from overlay_relay.domain.entities.event import Event
from overlay_relay.infrastructure.ws.protocol import decode_event

logger = logging.getLogger(__name__)


class RelayService:
    """Sole arbiter of what enters the broadcast channel.

    Every inbound frame is relayed to all displays first. Eligible content
    then gets a reaction from the generation capability in a separate task,
    so a slow or failing backend never delays the raw relay of later frames.
    """

    def __init__(
        self,
        broadcaster: Broadcaster,
        capability: GenerationCapability | None,
        settings: Settings,
    ) -> None:
        self._broadcaster = broadcaster
        self._capability = capability
        self._prompt_template = settings.REACTION_PROMPT
        self._options = GenerationOptions(
            max_tokens=settings.GENERATION_MAX_TOKENS,
            temperature=settings.GENERATION_TEMPERATURE,
        )
        self._timeout = settings.GENERATION_TIMEOUT_SECONDS
        self._fallback_reply = settings.FALLBACK_REPLY
        self._not_ready_reply = settings.NOT_READY_REPLY
        self._tasks: set[asyncio.Task[None]] = set()

    async def handle_inbound(self, raw: str) -> asyncio.Task[None] | None:
        """Relay one inbound frame; returns the reaction task if one was spawned."""
        event = decode_event(raw)
        self._broadcaster.broadcast_all(event)

        if self._capability is None or not event.is_augmentable:
            return None

        if not self._capability.ready:
            self._broadcaster.broadcast_all(Event.assistant_text(self._not_ready_reply))
            return None

        task = asyncio.create_task(self._react(event), name=f"react-{event.kind}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def forward_progress(
        self,
        kind: str,
        progress: float | None,
        model_id: str | None,
        error: str | None,
    ) -> None:
        self._broadcaster.broadcast_all(Event.progress(kind, progress, model_id, error))

    async def aclose(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def _react(self, event: Event) -> None:
        assert self._capability is not None
        self._broadcaster.broadcast_all(Event.typing(True))
        try:
            prompt = self._prompt_template.format(content=event.payload)
            reply = await asyncio.wait_for(
                self._capability.generate(prompt, self._options),
                timeout=self._timeout,
            )
            reply = reply.strip()
            if not reply:
                raise CapabilityError("Empty generation")
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.warning("Generation failed for %s event", event.kind, exc_info=True)
            reply = self._fallback_reply

        self._broadcaster.broadcast_all(Event.typing(False))
        self._broadcaster.broadcast_all(Event.assistant_text(reply))
