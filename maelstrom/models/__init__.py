"""
Domain models shared by the reader, analytics and trading layers.
"""

from .events import (
    BuyTrade,
    Deposit,
    EventKind,
    EventPosition,
    LedgerEvent,
    SellTrade,
    SwapTrade,
    TradeEvent,
    Withdraw,
    event_key,
    sort_key,
)
from .pools import (
    NATIVE_ROW_POOL,
    PRICE_SCALE,
    PageLoadResult,
    Pool,
    PoolFeesEvent,
    PoolState,
    Reserve,
    RowPool,
)
from .requests import (
    BuyRequest,
    DepositRequest,
    InitPoolRequest,
    SellRequest,
    SwapRequest,
    TradeAction,
    TradeRequest,
    TransactionResult,
    WithdrawRequest,
)
from .tokens import NATIVE_TOKEN, ZERO_ADDRESS, LiquidityPoolToken, Token, native_token_for

__all__ = [
    "BuyTrade",
    "Deposit",
    "EventKind",
    "EventPosition",
    "LedgerEvent",
    "SellTrade",
    "SwapTrade",
    "TradeEvent",
    "Withdraw",
    "event_key",
    "sort_key",
    "NATIVE_ROW_POOL",
    "PRICE_SCALE",
    "PageLoadResult",
    "Pool",
    "PoolFeesEvent",
    "PoolState",
    "Reserve",
    "RowPool",
    "BuyRequest",
    "DepositRequest",
    "InitPoolRequest",
    "SellRequest",
    "SwapRequest",
    "TradeAction",
    "TradeRequest",
    "TransactionResult",
    "WithdrawRequest",
    "NATIVE_TOKEN",
    "ZERO_ADDRESS",
    "LiquidityPoolToken",
    "Token",
    "native_token_for",
]
