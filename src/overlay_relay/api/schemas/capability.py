from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ModelActionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    model_name: str = Field(alias="modelName", min_length=1)
