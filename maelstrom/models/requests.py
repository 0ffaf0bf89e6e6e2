"""
Mutating-action requests and their results.

All amounts are integers in minimal denomination; prices are 1e18-scaled.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .tokens import LiquidityPoolToken, Token


class TradeAction(str, Enum):
    INIT_POOL = "Pool initialization"
    DEPOSIT = "Deposit"
    WITHDRAW = "Withdraw"
    SWAP = "Swap"
    BUY = "Buy"
    SELL = "Sell"

    @property
    def error_prefix(self) -> str:
        return f"{self.value} failed"


@dataclass(frozen=True)
class InitPoolRequest:
    token: Token
    base_amount: int
    token_amount: int
    initial_buy_price: int
    initial_sell_price: int


@dataclass(frozen=True)
class DepositRequest:
    token: Token
    base_amount: int
    token_amount: int


@dataclass(frozen=True)
class WithdrawRequest:
    token: Token
    lp_token: LiquidityPoolToken
    lp_token_amount: int


@dataclass(frozen=True)
class SwapRequest:
    token_in: Token
    token_out: Token
    amount_in: int
    minimum_out: int


@dataclass(frozen=True)
class BuyRequest:
    """Pay ``amount_in`` of the base asset for at least ``minimum_out`` tokens."""

    token: Token
    amount_in: int
    minimum_out: int


@dataclass(frozen=True)
class SellRequest:
    """Sell ``amount_in`` tokens for at least ``minimum_out`` of the base asset."""

    token: Token
    amount_in: int
    minimum_out: int


TradeRequest = Union[InitPoolRequest, DepositRequest, WithdrawRequest, SwapRequest, BuyRequest, SellRequest]


@dataclass(frozen=True)
class TransactionResult:
    """Outcome of one submitted action; never partially populated."""

    action: TradeAction
    request: TradeRequest
    success: bool
    timestamp: int
    tx_hash: Optional[str] = None
    block_number: Optional[int] = None
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return not self.success
