from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class OkResponse(BaseModel):
    ok: Literal[True] = True


class ErrorResponse(BaseModel):
    ok: Literal[False] = False
    error: str
