# services/profit_loss_service.py
"""
Bulk re-pricing of open pairs.

Prices are fetched once per unique stock code (in bounded batches) and then
applied to every pair that references the code. Settled pairs are excluded:
their snapshot is final.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from config import settings
from models.company import Company
from models.pair import Pair
from services.company_service import get_company
from services.jquants.client import JQuantsClient
from services.pair_service import save_profit_loss
from services.profit_loss import calculate_pair_profit_loss
from services.stock_price_service import extract_unique_stock_codes, fetch_stock_prices_in_batches

logger = logging.getLogger(__name__)

PRICE_UNAVAILABLE = "Failed to fetch stock price"
PROCESSING_FAILED = "Failed to process pair"


def open_priceable_pairs(db: Session, company_id: Optional[int] = None) -> List[Pair]:
    query = db.query(Pair).filter(
        Pair.is_settled.is_(False),
        or_(Pair.buy_stock_code.isnot(None), Pair.sell_stock_code.isnot(None)),
    )
    if company_id is not None:
        query = query.filter(Pair.company_id == company_id)
    return query.order_by(Pair.company_id.asc(), Pair.id.asc()).all()


async def _fetch_prices(pairs: List[Pair], jquants: Optional[JQuantsClient]) -> Dict[str, Optional[float]]:
    codes = extract_unique_stock_codes(pairs)
    logger.info("Fetching prices for %d unique codes across %d pairs", len(codes), len(pairs))
    return await fetch_stock_prices_in_batches(
        codes,
        batch_size=settings.PRICE_FETCH_BATCH_SIZE,
        jquants=jquants,
        days_before=settings.PRICE_LOOKBACK_DAYS,
    )


def _stored_snapshot(pair: Pair) -> Dict[str, Optional[float]]:
    return {
        "current_buy_price": pair.current_buy_price,
        "current_sell_price": pair.current_sell_price,
        "buy_profit_loss": pair.buy_profit_loss,
        "sell_profit_loss": pair.sell_profit_loss,
        "profit_loss": pair.profit_loss,
    }


async def compute_all_profit_loss(db: Session, jquants: Optional[JQuantsClient] = None) -> Dict[str, Any]:
    """Re-price every open pair, persist the results and group them per company."""
    pairs = open_priceable_pairs(db)
    prices = await _fetch_prices(pairs, jquants)

    by_company: Dict[int, Dict[str, Any]] = {}
    for pair in pairs:
        result = calculate_pair_profit_loss(pair, prices)
        if result is None:
            continue
        save_profit_loss(db, pair, result)

        entry = by_company.get(pair.company_id)
        if entry is None:
            company = db.get(Company, pair.company_id)
            entry = {"id": company.id, "name": company.name, "pairs": [], "total_profit_loss": 0.0}
            by_company[pair.company_id] = entry
        entry["pairs"].append(pair)
        if pair.profit_loss is not None:
            entry["total_profit_loss"] += pair.profit_loss

    return {"companies": list(by_company.values())}


async def compute_company_profit_loss(
    db: Session,
    company_id: int,
    jquants: Optional[JQuantsClient] = None,
) -> Dict[str, Any]:
    company = get_company(db, company_id)
    pairs = open_priceable_pairs(db, company_id)
    logger.info("Computing P/L company_id=%s pairs=%d", company_id, len(pairs))
    prices = await _fetch_prices(pairs, jquants)

    out: Dict[str, Any] = {"id": company.id, "name": company.name, "pairs": [], "total_profit_loss": 0.0}
    for pair in pairs:
        result = calculate_pair_profit_loss(pair, prices)
        if result is None:
            continue
        save_profit_loss(db, pair, result)
        out["pairs"].append(pair)
        if pair.profit_loss is not None:
            out["total_profit_loss"] += pair.profit_loss
    return out


async def recalculate_profit_loss(
    db: Session,
    company_id: Optional[int] = None,
    jquants: Optional[JQuantsClient] = None,
) -> Dict[str, Any]:
    """
    Re-price and persist open pairs, reporting per-pair outcomes.
    A failure on one pair is recorded and does not stop the run.
    """
    pairs = open_priceable_pairs(db, company_id)
    prices = await _fetch_prices(pairs, jquants)

    results: List[Dict[str, Any]] = []
    success_count = 0
    error_count = 0

    for pair in pairs:
        try:
            result = calculate_pair_profit_loss(pair, prices)
            if result is None:
                results.append({"pair_id": pair.id, "success": False, "error": PRICE_UNAVAILABLE})
                error_count += 1
                continue

            save_profit_loss(db, pair, result)
            results.append({"pair_id": pair.id, "success": True, **_stored_snapshot(pair)})
            success_count += 1
        except Exception:
            logger.exception("P/L recalculation failed pair_id=%s", pair.id, extra={"pair_id": pair.id})
            db.rollback()
            results.append({"pair_id": pair.id, "success": False, "error": PROCESSING_FAILED})
            error_count += 1

    logger.info(
        "P/L recalculation finished company_id=%s processed=%d success=%d errors=%d",
        company_id, len(pairs), success_count, error_count,
    )
    return {
        "company_id": company_id,
        "total_processed": len(pairs),
        "success_count": success_count,
        "error_count": error_count,
        "results": results,
    }
