# services/pair_service.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional

from sqlalchemy.orm import Session, joinedload

from models.pair import Pair
from services.company_service import get_company
from services.errors import NotFoundError, PairAlreadySettledError, ValidationError
from services.profit_loss import PairProfitLoss, calculate_from_prices, calculate_total_profit_loss

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "name",
    "link",
    "analysis_record",
    "buy_shares",
    "sell_shares",
    "buy_price",
    "sell_price",
    "buy_stock_code",
    "sell_stock_code",
    "entry_date",
)

HISTORY_STATUSES = ("all", "active", "settled")


def _apply_fields(pair: Pair, values: Mapping[str, Any]) -> None:
    for field in EDITABLE_FIELDS:
        if field in values:
            setattr(pair, field, values[field])


def list_pairs(db: Session, company_id: int) -> List[Pair]:
    get_company(db, company_id)
    return db.query(Pair).filter(Pair.company_id == company_id).order_by(Pair.id.asc()).all()


def get_pair(db: Session, pair_id: int, *, with_company: bool = False) -> Pair:
    query = db.query(Pair)
    if with_company:
        query = query.options(joinedload(Pair.company))
    pair = query.filter(Pair.id == pair_id).first()
    if not pair:
        raise NotFoundError("Pair")
    return pair


def create_pair(db: Session, company_id: int, values: Mapping[str, Any]) -> Pair:
    get_company(db, company_id)
    pair = Pair(company_id=company_id, is_settled=False)
    _apply_fields(pair, values)
    db.add(pair)
    db.commit()
    db.refresh(pair)
    logger.info("Pair created pair_id=%s company_id=%s", pair.id, company_id)
    return pair


def update_pair(
    db: Session,
    pair_id: int,
    values: Mapping[str, Any],
    *,
    current_buy_price: Optional[float] = None,
    current_sell_price: Optional[float] = None,
) -> Pair:
    """
    Update the editable fields of a pair.

    Settled pairs are never re-priced from the market, so their P/L is
    recomputed here from the current prices the user supplies (falling back
    to the stored snapshot for a leg left blank). For open pairs the current
    price arguments are ignored.
    """
    pair = get_pair(db, pair_id)
    _apply_fields(pair, values)

    if pair.is_settled:
        buy = current_buy_price if current_buy_price is not None else pair.current_buy_price
        sell = current_sell_price if current_sell_price is not None else pair.current_sell_price
        result = calculate_from_prices(pair, buy, sell)
        pair.current_buy_price = buy
        pair.current_sell_price = sell
        pair.buy_profit_loss = result.buy_profit_loss if result else None
        pair.sell_profit_loss = result.sell_profit_loss if result else None
        pair.profit_loss = result.profit_loss if result else None

    db.commit()
    db.refresh(pair)
    return pair


def delete_pair(db: Session, pair_id: int) -> None:
    pair = get_pair(db, pair_id)
    db.delete(pair)
    db.commit()


def settle_pair(db: Session, pair_id: int, now: Optional[datetime] = None) -> Pair:
    pair = get_pair(db, pair_id)
    if pair.is_settled:
        raise PairAlreadySettledError(pair_id)

    pair.is_settled = True
    pair.settled_at = now or datetime.now(timezone.utc)
    db.commit()
    db.refresh(pair)
    logger.info(
        "Pair settled pair_id=%s profit_loss=%s", pair.id, pair.profit_loss,
        extra={"pair_id": pair.id, "company_id": pair.company_id},
    )
    return pair


def list_trading_history(
    db: Session,
    *,
    company_id: Optional[int] = None,
    status: str = "all",
) -> List[Pair]:
    if status not in HISTORY_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(HISTORY_STATUSES)}")

    query = db.query(Pair).options(joinedload(Pair.company))
    if company_id is not None:
        query = query.filter(Pair.company_id == company_id)
    if status == "active":
        query = query.filter(Pair.is_settled.is_(False))
    elif status == "settled":
        query = query.filter(Pair.is_settled.is_(True))

    return query.order_by(Pair.settled_at.desc().nullslast(), Pair.id.desc()).all()


def save_profit_loss(db: Session, pair: Pair, result: PairProfitLoss) -> bool:
    """
    Persist a freshly computed P/L snapshot. Only resolved values are written,
    so a leg whose price could not be fetched keeps its previous snapshot, and
    the combined P/L is then rebuilt from both stored legs.
    Settled pairs are left untouched; returns False in that case.
    """
    if pair.is_settled:
        logger.warning("Skipping P/L save for settled pair pair_id=%s", pair.id)
        return False

    for field, value in result.to_dict().items():
        if value is not None:
            setattr(pair, field, value)
    pair.profit_loss = calculate_total_profit_loss(pair.buy_profit_loss, pair.sell_profit_loss)
    db.commit()
    logger.debug("Saved P/L pair_id=%s", pair.id)
    return True
