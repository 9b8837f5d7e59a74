from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class StockPriceOut(BaseModel):
    code: str
    price: float
    date: Optional[str] = None
    open: Optional[float] = None
    high: Optional[float] = None
    low: Optional[float] = None
    volume: Optional[float] = None
