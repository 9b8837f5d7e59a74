from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from schemas.asset import AssetOut
from schemas.base import CamelModel, required_name
from schemas.pair import PairOut


class CompanyCreate(CamelModel):
    name: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return required_name(value)


class CompanyUpdate(CompanyCreate):
    pass


class CompanyOut(CamelModel):
    id: int
    name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CompanyWithPairsOut(CompanyOut):
    pairs: list[PairOut] = Field(default_factory=list)
    total_profit_loss: Optional[float] = None


class CompanyDetailOut(CompanyOut):
    pairs: list[PairOut] = Field(default_factory=list)
    assets: list[AssetOut] = Field(default_factory=list)


class PaginationInfo(CamelModel):
    current_page: int
    total_pages: int
    total_count: int
    limit: int
    has_next: bool
    has_prev: bool


class CompaniesPage(CamelModel):
    companies: list[CompanyWithPairsOut]
    pagination: PaginationInfo
