"""
Pure pool economics.

Ledger amounts stay ``int``; ratios are computed with ``Decimal`` under a
local high-precision context so results do not depend on the caller's
decimal context. Prices are base-asset wei per whole token, scaled by 1e18.
"""

from decimal import Decimal, localcontext
from typing import Dict, Iterable, Sequence, Tuple

from ..models import (
    PRICE_SCALE,
    BuyTrade,
    LedgerEvent,
    LiquidityPoolToken,
    PoolFeesEvent,
    Reserve,
    SellTrade,
    SwapTrade,
    Token,
)

PRECISION = 160
MS_PER_DAY = 24 * 60 * 60 * 1000
DAYS_PER_YEAR = 365


def _context():
    return localcontext(prec=PRECISION)


def average_price(buy_price: int, sell_price: int) -> Decimal:
    """Mean of buy and sell price; exact, since halving an integer needs one decimal place."""
    with _context():
        return Decimal(buy_price + sell_price) / 2


def total_liquidity(avg_price: Decimal, reserve: Reserve, decimals: int = 18) -> int:
    """
    Pool value in base-asset wei.

    The token reserve is taken out of its minimal denomination before being
    priced, so tokens with any number of decimals combine correctly with the
    18-decimal base reserve. The product is taken over the price's exact
    integer ratio, so full 256-bit reserves and prices do not lose digits.
    """
    numerator, denominator = Decimal(avg_price).as_integer_ratio()
    token_value = numerator * reserve.token_reserve // (denominator * 10 ** decimals)
    return token_value + reserve.base_reserve


def pool_yield(fee_events: Sequence[PoolFeesEvent], liquidity: int) -> Decimal:
    """
    Fees per day per unit of liquidity over the sampled window.

    Zero when fewer than two samples exist, no whole or partial day has
    elapsed between first and last sample, or the pool holds no liquidity.
    """
    if len(fee_events) < 2 or liquidity <= 0:
        return Decimal(0)
    elapsed_ms = fee_events[-1].timestamp - fee_events[0].timestamp
    if elapsed_ms <= 0:
        return Decimal(0)
    with _context():
        total_fees = Decimal(sum(event.fee for event in fee_events))
        days = Decimal(elapsed_ms) / MS_PER_DAY
        return total_fees / days / Decimal(liquidity)


def apr(daily_yield: Decimal) -> Decimal:
    """Annualised percentage rate from a per-day yield."""
    with _context():
        return Decimal(daily_yield) * DAYS_PER_YEAR * 100


def base_value(amount: int, price: int, decimals: int = 18) -> int:
    """Value of ``amount`` token units at ``price``, in base-asset wei."""
    return amount * price // (10 ** decimals)


def volume_in_base(events: Iterable[LedgerEvent], token: Token) -> int:
    """
    Traded volume of ``token`` in base-asset wei.

    Buys and sells contribute their base amount directly. A swap contributes
    the leg that involves ``token``, priced at that leg's trade price. Other
    events are ignored.
    """
    volume = 0
    for event in events:
        if isinstance(event, (BuyTrade, SellTrade)):
            if event.token == token:
                volume += event.base_amount
        elif isinstance(event, SwapTrade):
            if event.token_in == token:
                volume += base_value(event.amount_in, event.sell_price, token.decimals)
            if event.token_out == token:
                volume += base_value(event.amount_out, event.buy_price, token.decimals)
    return volume


def spread_pct(buy_price: int, sell_price: int) -> Decimal:
    """Buy/sell gap as a percentage of the average price."""
    if buy_price + sell_price == 0:
        return Decimal(0)
    with _context():
        return (Decimal(buy_price) - Decimal(sell_price)) / average_price(buy_price, sell_price) * 100


def initial_spread_pct(buy_price: int, sell_price: int) -> Decimal:
    """Buy/sell gap as a percentage of the buy price, as shown when creating a pool."""
    if buy_price == 0:
        return Decimal(0)
    with _context():
        return (Decimal(buy_price) - Decimal(sell_price)) / Decimal(buy_price) * 100


def reserve_composition(avg_price: Decimal, reserve: Reserve, decimals: int = 18) -> Dict[str, Decimal]:
    """Share of pool value held as base asset and as token, in percent."""
    liquidity = total_liquidity(avg_price, reserve, decimals)
    if liquidity == 0:
        return {"base_pct": Decimal(0), "token_pct": Decimal(0)}
    with _context():
        base_pct = Decimal(reserve.base_reserve) / Decimal(liquidity) * 100
        return {"base_pct": base_pct, "token_pct": 100 - base_pct}


def lp_share_value(lp_token: LiquidityPoolToken, liquidity: int) -> int:
    """Base-asset value of the holder's LP balance."""
    if lp_token.total_supply == 0:
        return 0
    return lp_token.balance * liquidity // lp_token.total_supply


def portfolio_value(positions: Iterable[Tuple[LiquidityPoolToken, int]]) -> int:
    """Sum of LP share values over ``(lp_token, total_liquidity)`` pairs."""
    return sum(lp_share_value(lp_token, liquidity) for lp_token, liquidity in positions)


def deposit_from_token(token_amount: int, reserve: Reserve, total_supply: int) -> Tuple[int, int]:
    """Base amount and LP tokens minted for depositing ``token_amount`` pro rata."""
    if reserve.token_reserve == 0:
        raise ValueError("Pool has no token reserve")
    base_amount = token_amount * reserve.base_reserve // reserve.token_reserve
    lp_amount = token_amount * total_supply // reserve.token_reserve
    return base_amount, lp_amount


def deposit_from_base(base_amount: int, reserve: Reserve, total_supply: int) -> Tuple[int, int]:
    """Token amount and LP tokens minted for depositing ``base_amount`` pro rata."""
    if reserve.base_reserve == 0:
        raise ValueError("Pool has no base reserve")
    token_amount = base_amount * reserve.token_reserve // reserve.base_reserve
    lp_amount = base_amount * total_supply // reserve.base_reserve
    return token_amount, lp_amount


def withdraw_amounts(lp_amount: int, reserve: Reserve, total_supply: int) -> Reserve:
    """Reserves returned for burning ``lp_amount`` LP tokens."""
    if total_supply == 0:
        raise ValueError("LP token has no supply")
    return Reserve(
        base_reserve=lp_amount * reserve.base_reserve // total_supply,
        token_reserve=lp_amount * reserve.token_reserve // total_supply,
    )


def price_to_decimal(price: int) -> Decimal:
    """1e18-scaled price as a plain ratio."""
    with _context():
        return Decimal(price) / PRICE_SCALE
