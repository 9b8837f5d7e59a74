# services/profit_loss.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional


def calculate_buy_profit_loss(buy_shares: float, buy_price: float, current_buy_price: float) -> float:
    return (buy_shares * current_buy_price) - (buy_shares * buy_price)


def calculate_sell_profit_loss(sell_shares: float, sell_price: float, current_sell_price: float) -> float:
    return (sell_shares * sell_price) - (sell_shares * current_sell_price)


def calculate_total_profit_loss(
    buy_profit_loss: Optional[float],
    sell_profit_loss: Optional[float],
) -> Optional[float]:
    if buy_profit_loss is not None and sell_profit_loss is not None:
        return buy_profit_loss + sell_profit_loss
    if buy_profit_loss is not None:
        return buy_profit_loss
    if sell_profit_loss is not None:
        return sell_profit_loss
    return None


def calculate_pair_trade_profit_loss(
    buy_shares: float,
    buy_price: float,
    current_buy_price: float,
    sell_shares: float,
    sell_price: float,
    current_sell_price: float,
) -> float:
    """
    P/L used when comparing pairs on the same two codes.

    Both legs are measured as entry minus current, and the smaller leg (by
    magnitude) is subtracted from the larger one. Ties go to the buy leg.
    """
    buy_position_pl = (buy_shares * buy_price) - (buy_shares * current_buy_price)
    sell_position_pl = (sell_shares * sell_price) - (sell_shares * current_sell_price)

    if abs(buy_position_pl) >= abs(sell_position_pl):
        return buy_position_pl - sell_position_pl
    return sell_position_pl - buy_position_pl


@dataclass(frozen=True)
class PairProfitLoss:
    current_buy_price: Optional[float] = None
    current_sell_price: Optional[float] = None
    buy_profit_loss: Optional[float] = None
    sell_profit_loss: Optional[float] = None
    profit_loss: Optional[float] = None

    def to_dict(self) -> Dict[str, Optional[float]]:
        return {
            "current_buy_price": self.current_buy_price,
            "current_sell_price": self.current_sell_price,
            "buy_profit_loss": self.buy_profit_loss,
            "sell_profit_loss": self.sell_profit_loss,
            "profit_loss": self.profit_loss,
        }


def calculate_from_prices(
    pair: Any,
    current_buy_price: Optional[float],
    current_sell_price: Optional[float],
) -> Optional[PairProfitLoss]:
    """Leg and combined P/L for whichever legs have a price; None when neither does."""
    buy_pl = None
    sell_pl = None
    if current_buy_price is not None:
        buy_pl = calculate_buy_profit_loss(pair.buy_shares, pair.buy_price, current_buy_price)
    if current_sell_price is not None:
        sell_pl = calculate_sell_profit_loss(pair.sell_shares, pair.sell_price, current_sell_price)

    if buy_pl is None and sell_pl is None:
        return None

    return PairProfitLoss(
        current_buy_price=current_buy_price,
        current_sell_price=current_sell_price,
        buy_profit_loss=buy_pl,
        sell_profit_loss=sell_pl,
        profit_loss=calculate_total_profit_loss(buy_pl, sell_pl),
    )


def calculate_pair_profit_loss(
    pair: Any,
    prices: Mapping[str, Optional[float]],
) -> Optional[PairProfitLoss]:
    """Same as calculate_from_prices, looking each leg's code up in a fetched price map."""
    current_buy = prices.get(pair.buy_stock_code) if pair.buy_stock_code else None
    current_sell = prices.get(pair.sell_stock_code) if pair.sell_stock_code else None
    return calculate_from_prices(pair, current_buy, current_sell)


def calculate_pair_trade_profit_loss_with_prices(
    pair: Any,
    prices: Mapping[str, Optional[float]],
) -> Optional[PairProfitLoss]:
    if not pair.buy_stock_code or not pair.sell_stock_code:
        return None

    current_buy = prices.get(pair.buy_stock_code)
    current_sell = prices.get(pair.sell_stock_code)
    if current_buy is None or current_sell is None:
        return None

    return PairProfitLoss(
        current_buy_price=current_buy,
        current_sell_price=current_sell,
        profit_loss=calculate_pair_trade_profit_loss(
            pair.buy_shares,
            pair.buy_price,
            current_buy,
            pair.sell_shares,
            pair.sell_price,
            current_sell,
        ),
    )
