from fastapi import APIRouter, Depends, HTTPException, Query, Request

from config import settings
from middleware.rate_limit import QUOTE_RATE_LIMIT, limiter
from schemas.stock_price import StockPriceOut
from services.auth import get_current_user
from services.jquants.client import JQuantsClient, get_jquants_client
from services.stock_price_service import fetch_latest_quote
from utils.common_helpers import normalize_stock_code, safe_float

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("/stock-price", response_model=StockPriceOut)
@limiter.limit(QUOTE_RATE_LIMIT)
async def get_stock_price(
    request: Request,
    code: str | None = Query(None),
    jquants: JQuantsClient = Depends(get_jquants_client),
):
    stock_code = normalize_stock_code(code)
    if not stock_code:
        raise HTTPException(status_code=400, detail="Stock code is required")

    quote = await fetch_latest_quote(stock_code, settings.PRICE_LOOKBACK_DAYS, jquants)
    price = safe_float(quote.get("Close")) if quote else None
    if price is None:
        raise HTTPException(status_code=404, detail="No price found for this stock code")

    return StockPriceOut(
        code=stock_code,
        price=price,
        date=quote.get("Date"),
        open=safe_float(quote.get("Open")),
        high=safe_float(quote.get("High")),
        low=safe_float(quote.get("Low")),
        volume=safe_float(quote.get("Volume")),
    )
