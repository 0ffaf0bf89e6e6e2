"""
Pool analytics service.

Combines the ledger reader, block-time locator and event aggregator into the
figures a pool page or pool list shows: 24h volume, APR, total liquidity,
paged pool lists and account views.
"""

import asyncio
import logging
from decimal import Decimal
from typing import List, Optional, Union

from ..fetchers import LIQUIDITY_KINDS, TRADE_KINDS, BlockTimeLocator, EventLogAggregator, now_ms, window_before
from ..ledger import LedgerReadError, LedgerReader, checksum
from ..models import (
    NATIVE_ROW_POOL,
    Deposit,
    PageLoadResult,
    Pool,
    PoolFeesEvent,
    RowPool,
    Token,
    Withdraw,
)
from . import economics

logger = logging.getLogger(__name__)

DAY_MS = 24 * 60 * 60 * 1000


class PoolAnalytics:
    """
    Derived pool metrics.

    Args:
        reader: Ledger reader
        aggregator: Event aggregator used for volume and activity
        locator: Block-time locator, built from the reader when omitted
        fee_sample_size: How many recent fee samples feed the yield estimate
        page_delay: Seconds between pool list pages
        page_size: Pools per page when a loader is not given one
    """

    def __init__(
        self,
        reader: LedgerReader,
        aggregator: EventLogAggregator,
        locator: Optional[BlockTimeLocator] = None,
        fee_sample_size: int = 10,
        page_delay: float = 0.0,
        volume_lookback_ms: int = DAY_MS,
        page_size: int = 10,
    ):
        self.reader = reader
        self.aggregator = aggregator
        self.locator = locator or BlockTimeLocator.for_reader(reader)
        self.fee_sample_size = fee_sample_size
        self.page_delay = page_delay
        self.volume_lookback_ms = volume_lookback_ms
        self.page_size = page_size
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    # Single pool

    async def volume_24h(self, token: Token, now: Optional[int] = None) -> int:
        """Base-asset volume of ``token`` trades since the block current 24h ago."""
        current_block = await self.reader.get_block_number()
        from_block = await self.locator.locate(self.volume_lookback_ms, now=now, current_block=current_block)
        events = await self.aggregator.scan(TRADE_KINDS, from_block, current_block, token=token)
        volume = economics.volume_in_base(events, token)
        self.logger.debug(f"{token.symbol} volume over blocks {from_block}-{current_block}: {volume}")
        return volume

    async def recent_fee_events(self, token: Token) -> List[PoolFeesEvent]:
        """The most recent ``fee_sample_size`` fee samples, oldest first."""
        count = await self.reader.get_pool_fee_events_count(token)
        if count == 0:
            return []
        start = max(count - self.fee_sample_size, 0)
        return await self.reader.get_pool_fee_events(token, start, count - 1, count=count)

    async def pool_apr(self, token: Token, liquidity: int) -> Decimal:
        fee_events = await self.recent_fee_events(token)
        return economics.apr(economics.pool_yield(fee_events, liquidity))

    async def get_pool(self, token: Token, user: str, now: Optional[int] = None) -> Pool:
        """Assemble every figure shown for one pool."""
        user = checksum(user)
        lp_token, reserve, (buy_price, sell_price), token_ratio, volume, last_exchange = await asyncio.gather(
            self.reader.get_lp_token(token, user),
            self.reader.get_reserves(token),
            self.reader.get_prices(token),
            self.reader.get_token_ratio(token),
            self.volume_24h(token, now=now),
            self.reader.get_last_exchange_timestamp(token),
        )
        avg_price = economics.average_price(buy_price, sell_price)
        liquidity = economics.total_liquidity(avg_price, reserve, token.decimals)
        apr = await self.pool_apr(token, liquidity)

        pool = Pool(
            token=token,
            reserve=reserve,
            lp_token=lp_token,
            buy_price=buy_price,
            sell_price=sell_price,
            avg_price=avg_price,
            token_ratio=token_ratio,
            volume_24h=volume,
            total_liquidity=liquidity,
            apr=apr,
            last_exchange_timestamp=last_exchange,
            last_updated=now if now is not None else now_ms(),
        )
        if pool.is_price_inverted:
            self.logger.warning(
                f"{token.symbol} buy price {buy_price} is below sell price {sell_price}; data may be stale"
            )
        return pool

    # Pool lists

    async def _row_pools(self, addresses: List[str], user: Optional[str] = None) -> List[RowPool]:
        tokens = await self.reader.get_tokens(addresses)
        prices, reserves = await asyncio.gather(
            asyncio.gather(*(self.reader.get_prices(token) for token in tokens)),
            asyncio.gather(*(self.reader.get_reserves(token) for token in tokens)),
        )
        lp_tokens = [None] * len(tokens)
        if user is not None:
            lp_tokens = await asyncio.gather(*(self.reader.get_lp_token(token, user) for token in tokens))

        rows = []
        for token, (buy_price, sell_price), reserve, lp_token in zip(tokens, prices, reserves, lp_tokens):
            avg_price = economics.average_price(buy_price, sell_price)
            rows.append(RowPool(
                token=token,
                buy_price=buy_price,
                sell_price=sell_price,
                total_liquidity=economics.total_liquidity(avg_price, reserve, token.decimals),
                lp_token=lp_token,
            ))
        return rows

    async def get_row_pools(self, start: int, end: int) -> List[RowPool]:
        """Pools at list indexes ``[start, end]``."""
        addresses = await self.reader.get_pool_addresses(start, end)
        return await self._row_pools(addresses)

    async def get_user_row_pools(self, user: str, start: int, end: int) -> List[RowPool]:
        """A user's pools at indexes ``[start, end]``, each with the user's LP position."""
        user = checksum(user)
        addresses = await self.reader.get_user_pool_addresses(user, start, end)
        return await self._row_pools(addresses, user=user)

    async def _load_pages(self, total: int, page_size: int, load_page) -> PageLoadResult:
        result = PageLoadResult(total=total)
        for index, start in enumerate(range(0, total, page_size)):
            end = min(start + page_size - 1, total - 1)
            if index and self.page_delay:
                await asyncio.sleep(self.page_delay)
            try:
                rows = await load_page(start, end)
            except LedgerReadError as e:
                self.logger.warning(f"Pool page [{start}-{end}] failed: {e}")
                result.failed_pages.append((start, end, str(e)))
                continue
            if not rows:
                break
            result.pools.extend(rows)
        return result

    def _resolve_page_size(self, page_size: Optional[int]) -> int:
        if page_size is None:
            page_size = self.page_size
        if page_size <= 0:
            raise ValueError(f"Page size must be positive, got: {page_size}")
        return page_size

    async def load_all_pools(self, page_size: Optional[int] = None, include_native: bool = True) -> PageLoadResult:
        """
        Page through every pool.

        A failing page is recorded in ``failed_pages`` and loading moves on;
        an empty page ends the listing. The native row comes first.
        """
        page_size = self._resolve_page_size(page_size)
        total = await self.reader.get_pool_count()
        result = await self._load_pages(total, page_size, self.get_row_pools)
        if include_native:
            result.pools.insert(0, NATIVE_ROW_POOL)
        self.logger.info(
            f"Loaded {len(result.pools)} pools of {total}, {len(result.failed_pages)} failed pages"
        )
        return result

    async def load_user_pools(self, user: str, page_size: Optional[int] = None) -> PageLoadResult:
        page_size = self._resolve_page_size(page_size)
        user = checksum(user)
        total = await self.reader.get_user_pool_count(user)

        async def load_page(start: int, end: int) -> List[RowPool]:
            return await self.get_user_row_pools(user, start, end)

        return await self._load_pages(total, page_size, load_page)

    # Account views

    async def portfolio_value(self, user: str, page_size: Optional[int] = None) -> int:
        """Base-asset value of all the user's LP positions."""
        result = await self.load_user_pools(user, page_size)
        if not result.complete:
            raise LedgerReadError(f"portfolio value: {len(result.failed_pages)} user pool pages failed")
        return economics.portfolio_value(
            (row.lp_token, row.total_liquidity) for row in result.pools if row.lp_token is not None
        )

    async def recent_account_activity(
        self, user: str, token: Optional[Token] = None, current_block: Optional[int] = None
    ) -> List[Union[Deposit, Withdraw]]:
        """A user's deposits and withdrawals in the latest window, newest first."""
        user = checksum(user)
        if current_block is None:
            current_block = await self.reader.get_block_number()
        window = window_before(current_block, self.aggregator.window_span)
        events = await self.aggregator.fetch_window(LIQUIDITY_KINDS, window, token=token, account=user)
        return sorted(events, key=lambda e: e.position.timestamp, reverse=True)
