from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import field_validator

from schemas.base import CamelModel, blank_to_none, required_name


class PairCreate(CamelModel):
    name: str
    link: Optional[str] = None
    analysis_record: Optional[str] = None
    buy_shares: int
    sell_shares: int
    buy_price: float
    sell_price: float
    buy_stock_code: Optional[str] = None
    sell_stock_code: Optional[str] = None
    entry_date: Optional[datetime] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return required_name(value)

    @field_validator("link", "analysis_record", "buy_stock_code", "sell_stock_code", mode="before")
    @classmethod
    def empty_as_none(cls, value):
        return blank_to_none(value)

    @field_validator("buy_shares", "sell_shares", "buy_price", "sell_price")
    @classmethod
    def non_negative(cls, value):
        if value < 0:
            raise ValueError("shares and prices must not be negative")
        return value


class PairUpdate(PairCreate):
    # only honoured for settled pairs, where they replace live prices
    current_buy_price: Optional[float] = None
    current_sell_price: Optional[float] = None

    @field_validator("current_buy_price", "current_sell_price", mode="before")
    @classmethod
    def empty_price_as_none(cls, value):
        return blank_to_none(value)


class CompanyRef(CamelModel):
    id: int
    name: str


class PairOut(CamelModel):
    id: int
    name: str
    link: Optional[str] = None
    analysis_record: Optional[str] = None
    buy_shares: int
    sell_shares: int
    buy_price: float
    sell_price: float
    buy_stock_code: Optional[str] = None
    sell_stock_code: Optional[str] = None
    current_buy_price: Optional[float] = None
    current_sell_price: Optional[float] = None
    profit_loss: Optional[float] = None
    buy_profit_loss: Optional[float] = None
    sell_profit_loss: Optional[float] = None
    is_settled: bool = False
    settled_at: Optional[datetime] = None
    entry_date: Optional[datetime] = None
    company_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PairWithCompanyOut(PairOut):
    company: Optional[CompanyRef] = None
