# services/stock_price_service.py
"""
Current-price lookup on top of the J-Quants daily quotes.

Which close is "current" depends on the market wall clock:
  - from 15:00: that day's afternoon close (the day's final close)
  - 11:30-14:59: the morning-session close
  - before 11:30: the latest full-day close (normally the previous day's)

Every failure degrades to None so callers can report P/L as unavailable.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple
from zoneinfo import ZoneInfo

from config import settings
from services.jquants.client import JQuantsClient, get_jquants_client
from utils.common_helpers import safe_float

logger = logging.getLogger(__name__)

MORNING_CLOSE_HHMM = 1130
AFTERNOON_CLOSE_HHMM = 1500


def format_date(d: date) -> str:
    return d.strftime("%Y-%m-%d")


def market_now() -> datetime:
    return datetime.now(ZoneInfo(settings.MARKET_TIMEZONE))


def get_date_range(days_before: int = 7, today: Optional[date] = None) -> Tuple[str, str]:
    """Return (from, to) covering the trailing window that ends today."""
    end = today or market_now().date()
    start = end - timedelta(days=days_before)
    return format_date(start), format_date(end)


def select_price(quote: Dict[str, Any], now: datetime) -> Tuple[Optional[float], str]:
    """Pick the close matching the time of day. Returns (price, close_type)."""
    hhmm = now.hour * 100 + now.minute
    close = safe_float(quote.get("Close"))

    if hhmm >= AFTERNOON_CLOSE_HHMM:
        return (safe_float(quote.get("AfternoonClose")) or close), "afternoon_close"
    if hhmm >= MORNING_CLOSE_HHMM:
        return (safe_float(quote.get("MorningClose")) or close), "morning_close"
    return close, "previous_close"


async def fetch_latest_quote(
    code: str,
    days_before: int = 7,
    jquants: Optional[JQuantsClient] = None,
) -> Optional[Dict[str, Any]]:
    jquants = jquants or get_jquants_client()
    date_from, date_to = get_date_range(days_before)
    try:
        quotes = await jquants.get_daily_quotes(code, date_from, date_to)
    except Exception:
        logger.exception("Quote lookup failed code=%s", code, extra={"stock_code": code})
        return None

    if not quotes:
        logger.warning("No quotes code=%s range=%s..%s", code, date_from, date_to)
        return None
    return quotes[-1]


async def fetch_stock_price(
    code: str,
    days_before: int = 7,
    jquants: Optional[JQuantsClient] = None,
    now: Optional[datetime] = None,
) -> Optional[float]:
    quote = await fetch_latest_quote(code, days_before, jquants)
    if quote is None:
        return None

    price, close_type = select_price(quote, now or market_now())
    logger.info(
        "Price resolved code=%s price=%s type=%s date=%s",
        code, price, close_type, quote.get("Date") or "unknown",
    )
    return price


def extract_unique_stock_codes(pairs: Iterable[Any]) -> List[str]:
    codes = set()
    for pair in pairs:
        for code in (pair.buy_stock_code, pair.sell_stock_code):
            if code:
                codes.add(code)
    return sorted(codes)


async def fetch_stock_prices_in_batches(
    codes: Iterable[str],
    batch_size: int = 10,
    jquants: Optional[JQuantsClient] = None,
    days_before: int = 7,
) -> Dict[str, Optional[float]]:
    """Fetch prices concurrently, at most batch_size in flight; each batch finishes before the next starts."""
    jquants = jquants or get_jquants_client()
    batch_size = max(1, int(batch_size))
    unique = list(dict.fromkeys(c for c in codes if c))
    prices: Dict[str, Optional[float]] = {}

    for i in range(0, len(unique), batch_size):
        batch = unique[i : i + batch_size]
        results = await asyncio.gather(
            *(fetch_stock_price(code, days_before, jquants) for code in batch)
        )
        prices.update(zip(batch, results))

    resolved = sum(1 for p in prices.values() if p is not None)
    logger.info("Fetched prices for %d/%d codes", resolved, len(prices))
    return prices
