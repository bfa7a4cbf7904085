from __future__ import annotations

from pydantic import BaseModel, Field


class Item(BaseModel):
    id: str = Field(..., min_length=1, description="Caller-supplied unique key")
    name: str = Field("", description="Display name")


class ItemCreated(BaseModel):
    message: str = "Item created"


class HealthStatus(BaseModel):
    status: str
