from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

from overlay_relay.domain.entities.layout import LayoutPreferences

LayoutPatch = dict[str, bool | int | str]


class LayoutUpdateResponse(BaseModel):
    ok: Literal[True] = True
    layout: LayoutPreferences
