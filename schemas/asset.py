from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import Field, field_validator

from models.asset import DEFAULT_ASSET_UNIT
from schemas.base import CamelModel, blank_to_none, required_name

AssetType = Literal["cash", "stock", "bond", "fund", "deposit", "other"]


class AssetCreate(CamelModel):
    name: str
    type: AssetType
    amount: float = Field(ge=0)
    unit: str = DEFAULT_ASSET_UNIT
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return required_name(value)

    @field_validator("unit", mode="before")
    @classmethod
    def default_unit(cls, value):
        return blank_to_none(value) or DEFAULT_ASSET_UNIT

    @field_validator("description", mode="before")
    @classmethod
    def empty_description(cls, value):
        return blank_to_none(value)


class AssetUpdate(AssetCreate):
    pass


class AssetOut(CamelModel):
    id: int
    name: str
    type: str
    amount: float
    unit: str
    description: Optional[str] = None
    company_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
