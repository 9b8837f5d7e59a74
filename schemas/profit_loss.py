from __future__ import annotations

from typing import Optional

from pydantic import Field

from schemas.base import CamelModel
from schemas.pair import PairOut, PairWithCompanyOut


class CompanyProfitLoss(CamelModel):
    id: int
    name: str
    pairs: list[PairOut] = Field(default_factory=list)
    total_profit_loss: float = 0.0


class AllCompaniesProfitLoss(CamelModel):
    companies: list[CompanyProfitLoss] = Field(default_factory=list)


class PairRecalcResult(CamelModel):
    pair_id: int
    success: bool
    current_buy_price: Optional[float] = None
    current_sell_price: Optional[float] = None
    profit_loss: Optional[float] = None
    buy_profit_loss: Optional[float] = None
    sell_profit_loss: Optional[float] = None
    error: Optional[str] = None


class RecalcSummary(CamelModel):
    company_id: Optional[int] = None
    total_processed: int
    success_count: int
    error_count: int
    results: list[PairRecalcResult] = Field(default_factory=list)


class StockCodes(CamelModel):
    buy_stock_code: str
    sell_stock_code: str


class DuplicatePairGroup(CamelModel):
    stock_codes: StockCodes
    pairs: list[PairWithCompanyOut]
    total_profit_loss: float


class DuplicatePairsReport(CamelModel):
    duplicate_pair_groups: list[DuplicatePairGroup] = Field(default_factory=list)
    unique_pairs: list[PairWithCompanyOut] = Field(default_factory=list)
