from __future__ import annotations

import asyncio

import pytest

from overlay_relay.application.exceptions import ValidationError
from overlay_relay.services.layout_service import LayoutService
from tests.conftest import InMemoryLayoutStore, RecordingBroadcaster, wire

DEFAULTS = {"showFaceCam": True, "showHandCam": True, "showRoomCam": True}


def _service(store: InMemoryLayoutStore | None = None) -> tuple[LayoutService, InMemoryLayoutStore, RecordingBroadcaster]:
    store = store or InMemoryLayoutStore()
    broadcaster = RecordingBroadcaster()
    return LayoutService(store, broadcaster, DEFAULTS), store, broadcaster


@pytest.mark.asyncio
async def test_update_merges_persists_and_broadcasts():
    service, store, broadcaster = _service()

    merged = await service.update({"showFaceCam": False})

    expected = {"showFaceCam": False, "showHandCam": True, "showRoomCam": True}
    assert merged == expected
    assert store.saves == [expected]
    assert [wire(e) for e in broadcaster.events] == [{"type": "layout-update", "payload": expected}]
    assert service.get() == expected


@pytest.mark.asyncio
async def test_disjoint_updates_are_order_independent():
    first, _, _ = _service()
    second, _, _ = _service()

    await first.update({"showFaceCam": False})
    await first.update({"showRoomCam": False})
    await second.update({"showRoomCam": False})
    await second.update({"showFaceCam": False})

    assert first.get() == second.get() == {
        "showFaceCam": False,
        "showHandCam": True,
        "showRoomCam": False,
    }


@pytest.mark.asyncio
async def test_concurrent_updates_do_not_lose_keys():
    service, store, _ = _service()

    await asyncio.gather(
        service.update({"showFaceCam": False}),
        service.update({"showHandCam": False}),
        service.update({"theme": "dark"}),
    )

    assert service.get() == {
        "showFaceCam": False,
        "showHandCam": False,
        "showRoomCam": True,
        "theme": "dark",
    }
    assert store.stored == service.get()


@pytest.mark.asyncio
async def test_get_returns_copy():
    service, _, _ = _service()

    value = service.get()
    value["showFaceCam"] = False

    assert service.get()["showFaceCam"] is True


@pytest.mark.asyncio
async def test_load_merges_stored_over_defaults():
    service, _, _ = _service(InMemoryLayoutStore(stored={"showHandCam": False}))

    await service.load()

    assert service.get() == {"showFaceCam": True, "showHandCam": False, "showRoomCam": True}


@pytest.mark.asyncio
async def test_load_ignores_invalid_stored_values():
    service, _, _ = _service(InMemoryLayoutStore(stored={"showHandCam": False, "bad": [1, 2]}))

    await service.load()

    assert "bad" not in service.get()
    assert service.get()["showHandCam"] is False


@pytest.mark.asyncio
async def test_load_failure_keeps_defaults():
    service, _, _ = _service(InMemoryLayoutStore(fail_load=True))

    await service.load()

    assert service.get() == DEFAULTS


@pytest.mark.asyncio
async def test_save_failure_keeps_in_memory_value():
    service, _, broadcaster = _service(InMemoryLayoutStore(fail_save=True))

    merged = await service.update({"showRoomCam": False})

    assert merged["showRoomCam"] is False
    assert service.get()["showRoomCam"] is False
    assert len(broadcaster.events) == 1


@pytest.mark.asyncio
async def test_update_rejects_non_scalar_values():
    service, store, broadcaster = _service()

    with pytest.raises(ValidationError):
        await service.update({"showFaceCam": {"nested": True}})

    assert service.get() == DEFAULTS
    assert store.saves == []
    assert broadcaster.events == []


@pytest.mark.asyncio
async def test_snapshot_event_carries_full_value():
    service, _, _ = _service()

    assert wire(service.snapshot_event()) == {"type": "layout-update", "payload": DEFAULTS}
