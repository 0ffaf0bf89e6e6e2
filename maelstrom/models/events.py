"""
Ledger event records.

``LedgerEvent`` is a closed union; code that branches on it should end with
``assert_never`` so a new event kind shows up in type checking.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union

from .tokens import Token


class EventKind(str, Enum):
    BUY = "BuyTrade"
    SELL = "SellTrade"
    SWAP = "SwapTrade"
    DEPOSIT = "Deposit"
    WITHDRAW = "Withdraw"


@dataclass(frozen=True)
class EventPosition:
    """Where an event sits in the ledger; timestamp in milliseconds."""

    timestamp: int
    block_number: int
    transaction_hash: str
    log_index: int


@dataclass(frozen=True)
class BuyTrade:
    position: EventPosition
    token: Token
    trader: str
    base_amount: int
    token_amount: int
    buy_price: int
    updated_buy_price: int
    sell_price: int
    kind: EventKind = EventKind.BUY


@dataclass(frozen=True)
class SellTrade:
    position: EventPosition
    token: Token
    trader: str
    token_amount: int
    base_amount: int
    sell_price: int
    updated_sell_price: int
    buy_price: int
    kind: EventKind = EventKind.SELL


@dataclass(frozen=True)
class SwapTrade:
    position: EventPosition
    token_in: Token
    token_out: Token
    trader: str
    amount_in: int
    amount_out: int
    sell_price: int
    updated_sell_price: int
    buy_price: int
    updated_buy_price: int
    kind: EventKind = EventKind.SWAP


@dataclass(frozen=True)
class Deposit:
    position: EventPosition
    token: Token
    user: str
    base_amount: int
    token_amount: int
    lp_tokens_minted: int
    kind: EventKind = EventKind.DEPOSIT


@dataclass(frozen=True)
class Withdraw:
    position: EventPosition
    token: Token
    user: str
    base_amount: int
    token_amount: int
    lp_tokens_burned: int
    kind: EventKind = EventKind.WITHDRAW


LedgerEvent = Union[BuyTrade, SellTrade, SwapTrade, Deposit, Withdraw]
TradeEvent = Union[BuyTrade, SellTrade, SwapTrade]

EventKey = Tuple[int, str, str, int]


def event_key(event: LedgerEvent) -> EventKey:
    """Dedup key: resolved time first, then the log's identity within it."""
    pos = event.position
    return (pos.timestamp, event.kind.value, pos.transaction_hash, pos.log_index)


def sort_key(event: LedgerEvent) -> Tuple[int, int, int]:
    pos = event.position
    return (pos.timestamp, pos.block_number, pos.log_index)
