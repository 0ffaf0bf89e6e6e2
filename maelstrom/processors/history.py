"""
Historical views built from trade and liquidity events: price chart series,
price statistics and the account activity feed.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, localcontext
from typing import Dict, Iterable, List, Optional, Union

from ..core.units import format_units
from ..fetchers import EventLogAggregator, EventTimeline, HistoryCursor
from ..models import BuyTrade, Deposit, EventKind, LedgerEvent, SellTrade, Token, Withdraw

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PricePoint:
    """Buy and sell price in effect after a trade at ``timestamp`` (ms)."""

    timestamp: int
    buy_price: int
    sell_price: int


@dataclass(frozen=True)
class Activity:
    kind: str
    token: Token
    amount: str
    timestamp: int
    transaction_hash: str


def build_price_series(
    trades: Iterable[LedgerEvent], current_buy_price: int, current_sell_price: int
) -> List[PricePoint]:
    """
    Turn buy and sell trades into chart points.

    A buy sets the buy price and carries the last known sell price forward,
    and a sell does the reverse. Carried prices start at the pool's current
    prices. Points sharing a timestamp collapse to the last one, and the
    result is strictly ascending by timestamp.
    """
    relevant = sorted(
        (t for t in trades if isinstance(t, (BuyTrade, SellTrade))),
        key=lambda t: (t.position.timestamp, t.position.block_number, t.position.log_index),
    )
    last_buy, last_sell = current_buy_price, current_sell_price
    points: Dict[int, PricePoint] = {}
    for trade in relevant:
        if isinstance(trade, BuyTrade):
            if trade.buy_price > 0:
                last_buy = trade.buy_price
            point = PricePoint(trade.position.timestamp, trade.buy_price, last_sell)
        else:
            if trade.sell_price > 0:
                last_sell = trade.sell_price
            point = PricePoint(trade.position.timestamp, last_buy, trade.sell_price)
        points[point.timestamp] = point
    return [points[ts] for ts in sorted(points)]


def price_statistics(points: List[PricePoint]) -> Dict[str, Decimal]:
    """Average buy and sell price across a series."""
    if not points:
        return {"avg_buy_price": Decimal(0), "avg_sell_price": Decimal(0)}
    with localcontext(prec=80):
        count = Decimal(len(points))
        return {
            "avg_buy_price": Decimal(sum(p.buy_price for p in points)) / count,
            "avg_sell_price": Decimal(sum(p.sell_price for p in points)) / count,
        }


def build_activity_feed(
    events: Iterable[Union[Deposit, Withdraw]], native_symbol: str = "ETH"
) -> List[Activity]:
    """Deposits and withdrawals, newest first, with a readable amount."""
    feed = []
    for event in sorted(events, key=lambda e: e.position.timestamp, reverse=True):
        if isinstance(event, Deposit):
            kind = "Deposit"
        elif isinstance(event, Withdraw):
            kind = "Withdraw"
        else:
            continue
        amount = (
            f"{format_units(event.base_amount, 18)} {native_symbol} + "
            f"{format_units(event.token_amount, event.token.decimals)} {event.token.symbol}"
        )
        feed.append(Activity(kind, event.token, amount, event.position.timestamp, event.position.transaction_hash))
    return feed


class PriceChartLoader:
    """
    Incrementally loads trade history for one token, newest window first.

    Each ``load_more`` fetches one more window backwards from the head and
    returns the full rebuilt series.
    """

    def __init__(self, aggregator: EventLogAggregator, token: Token, current_buy_price: int, current_sell_price: int):
        self.token = token
        self.current_buy_price = current_buy_price
        self.current_sell_price = current_sell_price
        self.timeline = EventTimeline()
        self.cursor = HistoryCursor(aggregator, (EventKind.BUY, EventKind.SELL), token=token, timeline=self.timeline)
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def has_more(self) -> bool:
        return self.cursor.has_more

    async def load_more(self) -> List[PricePoint]:
        events = await self.cursor.load_more()
        self.logger.debug(f"Loaded {len(events)} trades for {self.token.symbol}, {len(self.timeline)} total")
        return self.series()

    def series(self, now: Optional[int] = None) -> List[PricePoint]:
        """Current series; with no trades yet and ``now`` given, a single point at current prices."""
        points = build_price_series(self.timeline.events, self.current_buy_price, self.current_sell_price)
        if not points and now is not None:
            return [PricePoint(now, self.current_buy_price, self.current_sell_price)]
        return points
