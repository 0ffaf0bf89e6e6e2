"""
Trade previews and pre-trade validation.

``TradeValidator`` is pure: given prices and reserves it computes the
complementary amount, the slippage-protected minimum and every reserve leg
the trade would move. Any leg moving more than ``max_impact_pct`` of its
reserve makes the preview invalid with a message naming the largest input
that would pass. Problems are returned as ``issues``; ``require_valid``
turns them into a ``ValidationError`` for callers that want to raise.

``TradeBuilder`` gathers live prices and reserves through the reader and
forces a re-read when a needed price comes back as zero.

All amounts are integers in minimal denomination and prices are 1e18-scaled
base-asset wei per whole token.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from decimal import ROUND_FLOOR, Decimal, localcontext
from typing import List, Optional, Tuple

from ..core.units import format_units
from ..ledger import LedgerReader, ValidationError, checksum
from ..models import (
    NATIVE_TOKEN,
    BuyRequest,
    DepositRequest,
    InitPoolRequest,
    LiquidityPoolToken,
    Reserve,
    SellRequest,
    SwapRequest,
    Token,
    TradeAction,
    TradeRequest,
    WithdrawRequest,
)
from ..processors import economics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReserveLeg:
    """One reserve a trade touches and how much it moves."""

    pool: Token
    asset: Token
    moved: int
    reserve: int
    inbound: bool
    max_amount_in: int


@dataclass
class TradeQuote:
    action: TradeAction
    token_in: Token
    token_out: Token
    amount_in: int
    amount_out: int = 0
    minimum_out: int = 0
    slippage_pct: Decimal = Decimal(0)
    max_amount_in: Optional[int] = None
    legs: List[ReserveLeg] = field(default_factory=list)
    issues: List[str] = field(default_factory=list)
    request: Optional[TradeRequest] = None

    @property
    def valid(self) -> bool:
        return not self.issues

    @property
    def error(self) -> Optional[str]:
        return "; ".join(self.issues) if self.issues else None

    def require_valid(self) -> TradeRequest:
        if self.issues:
            raise ValidationError(self.error)
        return self.request


@dataclass
class LiquidityQuote:
    action: TradeAction
    token: Token
    base_amount: int
    token_amount: int
    lp_amount: int
    max_amount_in: Optional[int] = None
    max_lp_amount: Optional[int] = None
    legs: List[ReserveLeg] = field(default_factory=list)
    issues: List[str] = field(default_factory=list)
    request: Optional[TradeRequest] = None

    @property
    def valid(self) -> bool:
        return not self.issues

    @property
    def error(self) -> Optional[str]:
        return "; ".join(self.issues) if self.issues else None

    def require_valid(self) -> TradeRequest:
        if self.issues:
            raise ValidationError(self.error)
        return self.request


def tokens_for_base(base_amount: int, price: int, decimals: int) -> int:
    """Token units bought with ``base_amount`` wei at ``price``."""
    return base_amount * 10 ** decimals // price


def base_for_tokens(token_amount: int, price: int, decimals: int) -> int:
    """Base wei received for ``token_amount`` units at ``price``."""
    return token_amount * price // 10 ** decimals


class TradeValidator:
    """
    Pure trade quoting and validation.

    Args:
        max_impact_pct: Largest share of any reserve one trade may move
        zero_slippage_mode: Force slippage to 0 so the trade fills at the previewed price or reverts
        slippage_pct: Tolerance used when not in zero-slippage mode
        max_slippage_pct: Upper bound accepted for a caller-supplied tolerance
    """

    def __init__(
        self,
        max_impact_pct: int = 10,
        zero_slippage_mode: bool = True,
        slippage_pct: Decimal = Decimal("0.5"),
        max_slippage_pct: Decimal = Decimal("5"),
    ):
        if not 0 < max_impact_pct <= 100:
            raise ValueError(f"max_impact_pct must be in (0, 100], got: {max_impact_pct}")
        self.max_impact_pct = max_impact_pct
        self.zero_slippage_mode = zero_slippage_mode
        self.slippage_pct = Decimal(slippage_pct)
        self.max_slippage_pct = Decimal(max_slippage_pct)

    # Slippage

    def effective_slippage(self, slippage_pct: Optional[Decimal] = None) -> Decimal:
        if self.zero_slippage_mode:
            return Decimal(0)
        slippage = self.slippage_pct if slippage_pct is None else Decimal(slippage_pct)
        if not Decimal(0) <= slippage <= self.max_slippage_pct:
            raise ValueError(f"Slippage must be between 0 and {self.max_slippage_pct}%, got: {slippage}")
        return slippage

    @staticmethod
    def minimum_out(amount_out: int, slippage_pct: Decimal) -> int:
        """``amount_out * (100 - slippage) / 100``, rounded down."""
        with localcontext(prec=100):
            minimum = Decimal(amount_out) * (100 - Decimal(slippage_pct)) / 100
            return int(minimum.to_integral_value(rounding=ROUND_FLOOR))

    # Reserve legs

    def reserve_limit(self, reserve: int) -> int:
        """Largest movement allowed on ``reserve``."""
        return reserve * self.max_impact_pct // 100

    def within_limit(self, moved: int, reserve: int) -> bool:
        return moved * 100 <= reserve * self.max_impact_pct

    def _leg_issue(self, leg: ReserveLeg, token_in: Token) -> Optional[str]:
        if self.within_limit(leg.moved, leg.reserve):
            return None
        maximum = f"{format_units(leg.max_amount_in, token_in.decimals)} {token_in.symbol}"
        if leg.inbound and leg.asset == token_in:
            return f"Amount exceeds {self.max_impact_pct}% of reserve. Maximum: {maximum}"
        return f"Output exceeds {self.max_impact_pct}% of reserve. Maximum input: {maximum}"

    def _apply_legs(self, quote: TradeQuote) -> TradeQuote:
        for leg in quote.legs:
            issue = self._leg_issue(leg, quote.token_in)
            if issue:
                quote.issues.append(issue)
        if quote.legs:
            quote.max_amount_in = min(leg.max_amount_in for leg in quote.legs)
        return quote

    # Quotes

    def quote_buy(
        self,
        token: Token,
        amount_in: int,
        buy_price: int,
        reserve: Reserve,
        base_token: Token,
        slippage_pct: Optional[Decimal] = None,
    ) -> TradeQuote:
        """Pay ``amount_in`` base wei for ``token``."""
        quote = TradeQuote(TradeAction.BUY, base_token, token, amount_in)
        if not self._check_amount(quote, amount_in) or not self._check_price(quote, token, buy_price, "buy"):
            return quote

        quote.amount_out = tokens_for_base(amount_in, buy_price, token.decimals)
        token_limit = self.reserve_limit(reserve.token_reserve)
        quote.legs = [
            ReserveLeg(token, base_token, amount_in, reserve.base_reserve, True,
                       self.reserve_limit(reserve.base_reserve)),
            ReserveLeg(token, token, quote.amount_out, reserve.token_reserve, False,
                       base_for_tokens(token_limit, buy_price, token.decimals)),
        ]
        return self._finish(quote, slippage_pct, lambda minimum: BuyRequest(token, amount_in, minimum))

    def quote_sell(
        self,
        token: Token,
        amount_in: int,
        sell_price: int,
        reserve: Reserve,
        base_token: Token,
        slippage_pct: Optional[Decimal] = None,
    ) -> TradeQuote:
        """Sell ``amount_in`` token units for base wei."""
        quote = TradeQuote(TradeAction.SELL, token, base_token, amount_in)
        if not self._check_amount(quote, amount_in) or not self._check_price(quote, token, sell_price, "sell"):
            return quote

        quote.amount_out = base_for_tokens(amount_in, sell_price, token.decimals)
        base_limit = self.reserve_limit(reserve.base_reserve)
        quote.legs = [
            ReserveLeg(token, token, amount_in, reserve.token_reserve, True,
                       self.reserve_limit(reserve.token_reserve)),
            ReserveLeg(token, base_token, quote.amount_out, reserve.base_reserve, False,
                       tokens_for_base(base_limit, sell_price, token.decimals)),
        ]
        return self._finish(quote, slippage_pct, lambda minimum: SellRequest(token, amount_in, minimum))

    def quote_swap(
        self,
        token_in: Token,
        token_out: Token,
        amount_in: int,
        sell_price_in: int,
        reserve_in: Reserve,
        buy_price_out: int,
        reserve_out: Reserve,
        base_token: Token,
        slippage_pct: Optional[Decimal] = None,
    ) -> TradeQuote:
        """
        Token-to-token swap through the base asset.

        ``token_in`` is sold into its pool and the proceeds buy ``token_out``
        from its pool, so four reserve legs move.
        """
        quote = TradeQuote(TradeAction.SWAP, token_in, token_out, amount_in)
        if token_in == token_out:
            quote.issues.append("Cannot swap a token for itself")
            return quote
        if (
            not self._check_amount(quote, amount_in)
            or not self._check_price(quote, token_in, sell_price_in, "sell")
            or not self._check_price(quote, token_out, buy_price_out, "buy")
        ):
            return quote

        base_amount = base_for_tokens(amount_in, sell_price_in, token_in.decimals)
        quote.amount_out = tokens_for_base(base_amount, buy_price_out, token_out.decimals)

        def input_for_base(base_limit: int) -> int:
            return tokens_for_base(base_limit, sell_price_in, token_in.decimals)

        out_limit = self.reserve_limit(reserve_out.token_reserve)
        quote.legs = [
            ReserveLeg(token_in, token_in, amount_in, reserve_in.token_reserve, True,
                       self.reserve_limit(reserve_in.token_reserve)),
            ReserveLeg(token_in, base_token, base_amount, reserve_in.base_reserve, False,
                       input_for_base(self.reserve_limit(reserve_in.base_reserve))),
            ReserveLeg(token_out, base_token, base_amount, reserve_out.base_reserve, True,
                       input_for_base(self.reserve_limit(reserve_out.base_reserve))),
            ReserveLeg(token_out, token_out, quote.amount_out, reserve_out.token_reserve, False,
                       input_for_base(base_for_tokens(out_limit, buy_price_out, token_out.decimals))),
        ]
        return self._finish(
            quote, slippage_pct, lambda minimum: SwapRequest(token_in, token_out, amount_in, minimum)
        )

    def quote_deposit(
        self,
        token: Token,
        token_amount: int,
        reserve: Reserve,
        total_supply: int,
        base_token: Token = NATIVE_TOKEN,
    ) -> LiquidityQuote:
        """
        Pro-rata base amount and LP minted for adding ``token_amount``.

        Both reserves grow, so each is held to the impact cap. The base leg's
        limit is the largest token amount whose rounded-down base amount
        still fits.
        """
        quote = LiquidityQuote(TradeAction.DEPOSIT, token, 0, token_amount, 0)
        if token_amount <= 0:
            quote.issues.append("Amount must be greater than zero")
            return quote
        if reserve.token_reserve <= 0:
            quote.issues.append(f"Pool for {token.symbol} has no token reserve")
            return quote
        quote.base_amount, quote.lp_amount = economics.deposit_from_token(token_amount, reserve, total_supply)
        if quote.base_amount <= 0:
            quote.issues.append("Deposit is too small to require any base asset")
            return quote

        base_limit = (
            (self.reserve_limit(reserve.base_reserve) + 1) * reserve.token_reserve - 1
        ) // reserve.base_reserve
        quote.legs = [
            ReserveLeg(token, token, token_amount, reserve.token_reserve, True,
                       self.reserve_limit(reserve.token_reserve)),
            ReserveLeg(token, base_token, quote.base_amount, reserve.base_reserve, True, base_limit),
        ]
        quote.max_amount_in = min(leg.max_amount_in for leg in quote.legs)
        if not all(self.within_limit(leg.moved, leg.reserve) for leg in quote.legs):
            quote.issues.append(
                f"Amount exceeds {self.max_impact_pct}% of reserve. Maximum: "
                f"{format_units(quote.max_amount_in, token.decimals)} {token.symbol}"
            )
            return quote
        quote.request = DepositRequest(token, quote.base_amount, token_amount)
        return quote

    def quote_withdraw(
        self, token: Token, lp_token: LiquidityPoolToken, lp_amount: int, reserve: Reserve
    ) -> LiquidityQuote:
        """Reserves returned for burning ``lp_amount``; both outflows are impact-checked."""
        quote = LiquidityQuote(TradeAction.WITHDRAW, token, 0, 0, lp_amount)
        if lp_amount <= 0:
            quote.issues.append("Amount must be greater than zero")
            return quote
        if lp_amount > lp_token.balance:
            quote.issues.append(
                f"Amount exceeds LP balance of {format_units(lp_token.balance, lp_token.decimals)}"
            )
            return quote
        supply = lp_token.total_supply
        if supply <= 0:
            quote.issues.append(f"{lp_token.symbol} has no supply")
            return quote

        returned = economics.withdraw_amounts(lp_amount, reserve, supply)
        quote.base_amount, quote.token_amount = returned.base_reserve, returned.token_reserve
        quote.max_lp_amount = self.reserve_limit(supply)
        if not (self.within_limit(quote.base_amount, reserve.base_reserve)
                and self.within_limit(quote.token_amount, reserve.token_reserve)):
            quote.issues.append(
                f"Output exceeds {self.max_impact_pct}% of reserve. Maximum input: "
                f"{format_units(quote.max_lp_amount, lp_token.decimals)} {lp_token.symbol}"
            )
            return quote
        quote.request = WithdrawRequest(token, lp_token, lp_amount)
        return quote

    def validate_init_pool(self, request: InitPoolRequest) -> List[str]:
        issues = []
        if request.token.is_native:
            issues.append("Please enter a valid token address.")
        if request.base_amount <= 0 or request.token_amount <= 0:
            issues.append("Amounts must be greater than zero.")
        if request.initial_buy_price <= 0 or request.initial_sell_price <= 0:
            issues.append("Prices must be greater than zero.")
        elif request.initial_buy_price <= request.initial_sell_price:
            issues.append("Buy price must be higher than sell price.")
        return issues

    # Helpers

    @staticmethod
    def _check_amount(quote: TradeQuote, amount_in: int) -> bool:
        if amount_in <= 0:
            quote.issues.append("Amount must be greater than zero")
            return False
        return True

    @staticmethod
    def _check_price(quote: TradeQuote, token: Token, price: int, side: str) -> bool:
        if price <= 0:
            quote.issues.append(f"No {side} price available for {token.symbol}")
            return False
        return True

    def _finish(self, quote: TradeQuote, slippage_pct: Optional[Decimal], make_request) -> TradeQuote:
        self._apply_legs(quote)
        if quote.amount_out <= 0:
            quote.issues.append("Amount is too small to receive any output")
        try:
            quote.slippage_pct = self.effective_slippage(slippage_pct)
        except ValueError as e:
            quote.issues.append(str(e))
            return quote
        quote.minimum_out = self.minimum_out(quote.amount_out, quote.slippage_pct)
        if quote.valid:
            quote.request = make_request(quote.minimum_out)
        return quote


class TradeBuilder:
    """
    Builds validated requests from live pool state.

    Args:
        reader: Ledger reader
        validator: Pure validator holding impact and slippage settings
    """

    def __init__(self, reader: LedgerReader, validator: Optional[TradeValidator] = None):
        self.reader = reader
        self.validator = validator or TradeValidator()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def base_token(self) -> Token:
        return self.reader.native_token

    async def _prices(self, token: Token) -> Tuple[int, int]:
        buy_price, sell_price = await self.reader.get_prices(token)
        if buy_price == 0 or sell_price == 0:
            self.logger.info(f"Zero price for {token.symbol}, refreshing quote")
            buy_price, sell_price = await self.reader.get_prices(token)
        return buy_price, sell_price

    async def _pool_state(self, token: Token) -> Tuple[int, int, Reserve]:
        (buy_price, sell_price), reserve = await asyncio.gather(
            self._prices(token), self.reader.get_reserves(token)
        )
        return buy_price, sell_price, reserve

    async def preview_buy(self, token: Token, amount_in: int, slippage_pct: Optional[Decimal] = None) -> TradeQuote:
        buy_price, _, reserve = await self._pool_state(token)
        return self.validator.quote_buy(token, amount_in, buy_price, reserve, self.base_token, slippage_pct)

    async def preview_sell(self, token: Token, amount_in: int, slippage_pct: Optional[Decimal] = None) -> TradeQuote:
        _, sell_price, reserve = await self._pool_state(token)
        return self.validator.quote_sell(token, amount_in, sell_price, reserve, self.base_token, slippage_pct)

    async def preview_swap(
        self, token_in: Token, token_out: Token, amount_in: int, slippage_pct: Optional[Decimal] = None
    ) -> TradeQuote:
        """Route to buy when paying with the base asset, to sell when receiving it."""
        if token_in.is_native and token_out.is_native:
            quote = TradeQuote(TradeAction.SWAP, token_in, token_out, amount_in)
            quote.issues.append("Cannot swap a token for itself")
            return quote
        if token_in.is_native:
            return await self.preview_buy(token_out, amount_in, slippage_pct)
        if token_out.is_native:
            return await self.preview_sell(token_in, amount_in, slippage_pct)

        (_, sell_price_in, reserve_in), (buy_price_out, _, reserve_out) = await asyncio.gather(
            self._pool_state(token_in), self._pool_state(token_out)
        )
        return self.validator.quote_swap(
            token_in, token_out, amount_in, sell_price_in, reserve_in,
            buy_price_out, reserve_out, self.base_token, slippage_pct,
        )

    async def preview_deposit(self, token: Token, token_amount: int, user: str) -> LiquidityQuote:
        reserve, lp_token = await asyncio.gather(
            self.reader.get_reserves(token), self.reader.get_lp_token(token, user)
        )
        return self.validator.quote_deposit(
            token, token_amount, reserve, lp_token.total_supply, self.base_token
        )

    async def preview_withdraw(self, token: Token, lp_amount: int, user: str) -> LiquidityQuote:
        reserve, lp_token = await asyncio.gather(
            self.reader.get_reserves(token), self.reader.get_lp_token(token, user)
        )
        return self.validator.quote_withdraw(token, lp_token, lp_amount, reserve)

    async def prepare_init_pool(
        self,
        token_address: str,
        base_amount: int,
        token_amount: int,
        initial_buy_price: int,
        initial_sell_price: int,
    ) -> Tuple[Optional[InitPoolRequest], List[str]]:
        """Validate a new pool; returns the request or the reasons it cannot be created."""
        try:
            token_address = checksum(token_address)
        except ValueError:
            return None, ["Please enter a valid token address."]

        if await self.reader.is_pool_instantiated(token_address):
            return None, ["Pool already exists for this token."]
        token = await self.reader.get_token(token_address)
        request = InitPoolRequest(token, base_amount, token_amount, initial_buy_price, initial_sell_price)
        issues = self.validator.validate_init_pool(request)
        return (None, issues) if issues else (request, [])
