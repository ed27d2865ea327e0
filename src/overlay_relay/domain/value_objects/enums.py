from __future__ import annotations

from enum import StrEnum


class EventKind(StrEnum):
    TEXT = "text"
    IMAGE = "image"
    LINK = "link"
    URL = "url"
    SYSTEM = "system"
    TYPING = "typing"
    GENERATION_PROGRESS = "llm-progress"
    LAYOUT_UPDATE = "layout-update"


class Role(StrEnum):
    USER = "user"
    ASSISTANT = "ai"


class ConnectionState(StrEnum):
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


class ProgressKind(StrEnum):
    DOWNLOAD = "download"
    DOWNLOAD_COMPLETE = "download-complete"
    LOAD = "load"
    LOAD_COMPLETE = "load-complete"
    UNLOAD = "unload"
    ERROR = "error"


# Producer content that may receive a generated reaction.
AUGMENTABLE_KINDS = frozenset({EventKind.TEXT, EventKind.IMAGE, EventKind.LINK, EventKind.URL})
