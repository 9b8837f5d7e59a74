# services/duplicate_pair_service.py
"""
Groups pairs that trade the same two securities, regardless of which one is
the long leg. Persisted P/L is reused; pairs without one get an on-the-fly
pair-trade P/L from fresh prices, which is reported but not saved.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session, joinedload

from config import settings
from models.pair import Pair
from services.jquants.client import JQuantsClient
from services.profit_loss import calculate_pair_trade_profit_loss_with_prices
from services.stock_price_service import extract_unique_stock_codes, fetch_stock_prices_in_batches

logger = logging.getLogger(__name__)


def group_key(buy_stock_code: str, sell_stock_code: str) -> str:
    first, second = sorted((buy_stock_code, sell_stock_code))
    return f"{first}-{second}"


def group_pairs(pairs: Iterable[Any]) -> Dict[str, List[Any]]:
    """Insertion-ordered mapping of group key -> pairs; pairs missing a code are skipped."""
    groups: Dict[str, List[Any]] = {}
    for pair in pairs:
        if not pair.buy_stock_code or not pair.sell_stock_code:
            continue
        groups.setdefault(group_key(pair.buy_stock_code, pair.sell_stock_code), []).append(pair)
    return groups


def _pair_view(pair: Pair) -> Dict[str, Any]:
    return {
        "id": pair.id,
        "name": pair.name,
        "link": pair.link,
        "analysis_record": pair.analysis_record,
        "buy_shares": pair.buy_shares,
        "sell_shares": pair.sell_shares,
        "buy_price": pair.buy_price,
        "sell_price": pair.sell_price,
        "buy_stock_code": pair.buy_stock_code,
        "sell_stock_code": pair.sell_stock_code,
        "current_buy_price": pair.current_buy_price,
        "current_sell_price": pair.current_sell_price,
        "profit_loss": pair.profit_loss,
        "buy_profit_loss": pair.buy_profit_loss,
        "sell_profit_loss": pair.sell_profit_loss,
        "is_settled": pair.is_settled,
        "settled_at": pair.settled_at,
        "entry_date": pair.entry_date,
        "company_id": pair.company_id,
        "created_at": pair.created_at,
        "updated_at": pair.updated_at,
        "company": {"id": pair.company.id, "name": pair.company.name} if pair.company else None,
    }


async def build_duplicate_pair_report(
    db: Session,
    jquants: Optional[JQuantsClient] = None,
) -> Dict[str, Any]:
    pairs = (
        db.query(Pair)
        .options(joinedload(Pair.company))
        .filter(Pair.buy_stock_code.isnot(None), Pair.sell_stock_code.isnot(None))
        .order_by(Pair.id.asc())
        .all()
    )
    groups = group_pairs(pairs)

    missing = [p for p in pairs if p.profit_loss is None]
    prices: Dict[str, Optional[float]] = {}
    if missing:
        prices = await fetch_stock_prices_in_batches(
            extract_unique_stock_codes(missing),
            batch_size=settings.PRICE_FETCH_BATCH_SIZE,
            jquants=jquants,
            days_before=settings.PRICE_LOOKBACK_DAYS,
        )

    duplicate_groups: List[Dict[str, Any]] = []
    unique_pairs: List[Dict[str, Any]] = []

    for key, group in groups.items():
        views: List[Dict[str, Any]] = []
        total = 0.0
        for pair in group:
            # plain dicts so on-the-fly values never reach the ORM session
            view = _pair_view(pair)
            if view["profit_loss"] is None:
                computed = calculate_pair_trade_profit_loss_with_prices(pair, prices)
                if computed is not None:
                    view["current_buy_price"] = computed.current_buy_price
                    view["current_sell_price"] = computed.current_sell_price
                    view["profit_loss"] = computed.profit_loss
            if view["profit_loss"] is not None:
                total += view["profit_loss"]
            views.append(view)

        if len(group) > 1:
            first = group[0]
            duplicate_groups.append({
                "stock_codes": {
                    "buy_stock_code": first.buy_stock_code,
                    "sell_stock_code": first.sell_stock_code,
                },
                "pairs": views,
                "total_profit_loss": total,
            })
        elif views[0]["profit_loss"] is not None:
            unique_pairs.append(views[0])

    logger.info(
        "Duplicate pair report: groups=%d duplicate_groups=%d unique=%d",
        len(groups), len(duplicate_groups), len(unique_pairs),
    )
    return {"duplicate_pair_groups": duplicate_groups, "unique_pairs": unique_pairs}
