from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from overlay_relay.domain.value_objects.enums import AUGMENTABLE_KINDS, EventKind, Role


@dataclass(frozen=True, slots=True)
class Event:
    kind: str
    payload: Any
    role: Role | None = None

    @property
    def is_augmentable(self) -> bool:
        """Producer content with something to react to.

        Control events, system notices and replies that are already
        assistant-authored never qualify.
        """
        if self.kind not in AUGMENTABLE_KINDS or self.role == Role.ASSISTANT:
            return False
        return isinstance(self.payload, str) and bool(self.payload.strip())

    @classmethod
    def typing(cls, active: bool) -> Event:
        return cls(kind=EventKind.TYPING, payload=active)

    @classmethod
    def assistant_text(cls, text: str) -> Event:
        return cls(kind=EventKind.TEXT, payload=text, role=Role.ASSISTANT)

    @classmethod
    def progress(
        cls,
        kind: str,
        progress: float | None,
        model_id: str | None,
        error: str | None,
    ) -> Event:
        return cls(
            kind=EventKind.GENERATION_PROGRESS,
            payload={"type": kind, "progress": progress, "modelName": model_id, "error": error},
        )

    @classmethod
    def layout_update(cls, layout: dict[str, Any]) -> Event:
        return cls(kind=EventKind.LAYOUT_UPDATE, payload=dict(layout))
