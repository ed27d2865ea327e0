from __future__ import annotations

import pytest

from overlay_relay.application.ports.capability import GenerationOptions
from overlay_relay.infrastructure.llm.echo import ECHO_MODEL, EchoCapability


@pytest.mark.asyncio
async def test_echo_returns_prompt_after_initialize():
    capability = EchoCapability()
    assert capability.ready is False

    await capability.initialize()

    assert capability.ready is True
    assert await capability.generate("say hi", GenerationOptions(max_tokens=5, temperature=0.0)) == "say hi"


@pytest.mark.asyncio
async def test_echo_lifecycle_emits_progress():
    capability = EchoCapability()
    events = []
    unsubscribe = capability.on_progress(lambda *args: events.append(args))
    await capability.initialize()

    await capability.load(ECHO_MODEL)
    assert (await capability.list_available())[ECHO_MODEL]["loaded"] is True
    assert capability.status()["loadedModel"] == ECHO_MODEL
    await capability.unload()
    unsubscribe()
    await capability.download(ECHO_MODEL)

    assert events == [
        ("load-complete", 100.0, ECHO_MODEL, None),
        ("unload", None, ECHO_MODEL, None),
    ]
