"""
Pool state snapshots and list projections.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from .tokens import NATIVE_TOKEN, LiquidityPoolToken, Token

PRICE_SCALE = 10 ** 18


@dataclass(frozen=True)
class Reserve:
    """Raw pool balances in minimal denomination."""

    base_reserve: int
    token_reserve: int


@dataclass(frozen=True)
class PoolState:
    """Decoded ``pools(token)`` auction tuple. Timestamps are seconds as stored on-chain."""

    last_buy_price: int
    last_sell_price: int
    last_exchange_timestamp: int
    initial_sell_price: int
    initial_buy_price: int
    final_buy_price: int
    final_sell_price: int
    last_buy_timestamp: int
    last_sell_timestamp: int
    decayed_buy_time: int
    decayed_sell_time: int
    decayed_buy_volume: int
    decayed_sell_volume: int

    @classmethod
    def from_tuple(cls, values) -> "PoolState":
        return cls(*(int(v) for v in values))


@dataclass(frozen=True)
class PoolFeesEvent:
    """One fee accrual sample, timestamp in milliseconds."""

    timestamp: int
    fee: int


@dataclass
class Pool:
    """Fully assembled view of one pool."""

    token: Token
    reserve: Reserve
    lp_token: LiquidityPoolToken
    buy_price: int
    sell_price: int
    avg_price: Decimal
    token_ratio: int
    volume_24h: int
    total_liquidity: int
    apr: Decimal
    last_exchange_timestamp: int
    last_updated: int

    @property
    def is_price_inverted(self) -> bool:
        """Buy below sell means stale or suspicious data."""
        return self.buy_price < self.sell_price


@dataclass
class RowPool:
    """Lightweight projection used by pool lists."""

    token: Token
    buy_price: int
    sell_price: int
    total_liquidity: int
    lp_token: Optional[LiquidityPoolToken] = None


NATIVE_ROW_POOL = RowPool(
    token=NATIVE_TOKEN,
    buy_price=PRICE_SCALE,
    sell_price=PRICE_SCALE,
    total_liquidity=0,
)


@dataclass
class PageLoadResult:
    """Outcome of loading pool pages; failed pages are reported, not dropped."""

    pools: list = field(default_factory=list)
    failed_pages: list = field(default_factory=list)
    total: int = 0

    @property
    def complete(self) -> bool:
        return not self.failed_pages
