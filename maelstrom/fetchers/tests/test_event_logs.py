"""
Tests for windowed event log aggregation.
"""

from unittest.mock import AsyncMock, patch

import pytest

from ...conftest import OTHER_TOKEN_ADDRESS, OTHER_USER, TOKEN_ADDRESS, USER, make_log, tx
from ...ledger import EventFetchError
from ...models import BuyTrade, EventKind, SellTrade, SwapTrade
from ..base import BlockWindow
from ..event_logs import (
    LIQUIDITY_KINDS,
    TRADE_KINDS,
    EventLogAggregator,
    EventTimeline,
    HistoryCursor,
    merge_events,
)

E18 = 10 ** 18


def buy_log(block, n, log_index=0, token=TOKEN_ADDRESS, trader=USER, base=E18, price=2 * E18):
    return make_log({
        "token": token, "trader": trader, "amountEther": base, "amountToken": base * E18 // price,
        "tradeBuyPrice": price, "updatedBuyPrice": price + 1, "sellPrice": E18,
    }, block, tx(n), log_index)


def sell_log(block, n, log_index=0, token=TOKEN_ADDRESS, trader=USER, amount=E18, price=E18):
    return make_log({
        "token": token, "trader": trader, "amountToken": amount, "amountEther": amount * price // E18,
        "tradeSellPrice": price, "updatedSellPrice": price - 1, "buyPrice": 2 * E18,
    }, block, tx(n), log_index)


def swap_log(block, n, sold, bought, trader=USER, log_index=0):
    return make_log({
        "tokenSold": sold, "tokenBought": bought, "trader": trader,
        "amountTokenSold": E18, "amountTokenBought": 2_000_000,
        "tradeSellPrice": E18, "updatedSellPrice": E18 - 1,
        "tradeBuyPrice": 5 * 10 ** 17, "updatedBuyPrice": 5 * 10 ** 17 + 1,
    }, block, tx(n), log_index)


def deposit_log(block, n, user=USER, token=TOKEN_ADDRESS):
    return make_log({
        "token": token, "user": user, "amountEther": E18, "amountToken": 2 * E18, "lpTokensMinted": E18,
    }, block, tx(n))


@pytest.fixture
def aggregator(chain, reader):
    chain.add_blocks(2500, seconds_per_block=12, start_time=1_000)
    return EventLogAggregator(reader, window_span=999)


class TestScan:
    """Full-range scans."""

    @pytest.mark.asyncio
    async def test_windows_respect_span(self, chain, aggregator, token):
        chain.set_logs("BuyTrade", [buy_log(10, 1), buy_log(1500, 2), buy_log(2400, 3)])

        events = await aggregator.scan([EventKind.BUY], 0, 2499, token=token)

        assert [e.position.block_number for e in events] == [10, 1500, 2400]
        calls = chain.get_logs_mock("BuyTrade").call_args_list
        assert [(c.kwargs["from_block"], c.kwargs["to_block"]) for c in calls] == [
            (0, 999), (1000, 1999), (2000, 2499)
        ]
        assert all(c.kwargs["argument_filters"] == {"token": TOKEN_ADDRESS} for c in calls)

    @pytest.mark.asyncio
    async def test_decodes_and_sorts_mixed_kinds(self, chain, aggregator, token):
        chain.set_logs("BuyTrade", [buy_log(20, 1, log_index=3)])
        chain.set_logs("SellTrade", [sell_log(20, 2, log_index=1), sell_log(5, 3)])

        events = await aggregator.scan(TRADE_KINDS, 0, 100, token=token)

        assert [type(e) for e in events] == [SellTrade, SellTrade, BuyTrade]
        assert [e.position.log_index for e in events] == [0, 1, 3]
        buy = events[-1]
        assert buy.token == token
        assert buy.trader == USER
        assert buy.base_amount == E18
        assert buy.buy_price == 2 * E18
        assert buy.position.timestamp == (1_000 + 20 * 12) * 1000
        assert buy.position.transaction_hash == tx(1)

    @pytest.mark.asyncio
    async def test_block_timestamps_fetched_once_per_block(self, chain, aggregator, token):
        chain.set_logs("BuyTrade", [buy_log(30, 1), buy_log(30, 2, log_index=1)])
        chain.set_logs("SellTrade", [sell_log(30, 3, log_index=2)])

        await aggregator.scan([EventKind.BUY, EventKind.SELL], 0, 100, token=token)

        block_calls = [c.args[0] for c in chain.web3.eth.get_block.call_args_list]
        assert block_calls.count(30) <= 2

    @pytest.mark.asyncio
    async def test_scan_is_idempotent(self, chain, aggregator, token):
        chain.set_logs("BuyTrade", [buy_log(10, 1), buy_log(1200, 2)])
        timeline = EventTimeline()

        assert timeline.merge(await aggregator.scan(TRADE_KINDS, 0, 2499, token=token)) == 2
        assert timeline.merge(await aggregator.scan(TRADE_KINDS, 0, 1500, token=token)) == 0
        assert len(timeline) == 2

    @pytest.mark.asyncio
    async def test_failed_window_abandons_scan(self, chain, aggregator, token, caplog):
        logs = [buy_log(10, 1)]

        async def flaky(argument_filters=None, from_block=0, to_block=0):
            if from_block >= 1000:
                raise ConnectionError("connection reset")
            return logs

        chain.get_logs_mock("BuyTrade").side_effect = flaky

        with pytest.raises(EventFetchError) as exc_info:
            await aggregator.scan([EventKind.BUY], 0, 2499, token=token)

        assert (exc_info.value.from_block, exc_info.value.to_block) == (1000, 1999)
        assert "fetch BuyTrade logs [1000-1999]" in str(exc_info.value)
        assert "connection reset" in caplog.text

    @pytest.mark.asyncio
    async def test_page_delay_between_windows(self, chain, reader, token):
        chain.add_blocks(3000)
        aggregator = EventLogAggregator(reader, window_span=999, page_delay=0.25)
        with patch("maelstrom.fetchers.event_logs.asyncio.sleep", new=AsyncMock()) as sleep:
            await aggregator.scan([EventKind.BUY], 0, 2999, token=token)
        assert sleep.await_count == 2
        sleep.assert_awaited_with(0.25)

    @pytest.mark.asyncio
    async def test_window_larger_than_span_rejected(self, aggregator):
        with pytest.raises(ValueError, match="exceeds span"):
            await aggregator.fetch_window([EventKind.BUY], BlockWindow(0, 1000))

    @pytest.mark.asyncio
    async def test_negative_start_rejected(self, aggregator):
        with pytest.raises(ValueError, match="Cannot scan before block 0"):
            await aggregator.scan([EventKind.BUY], -1, 10)


class TestFilters:
    """Token and account filtering."""

    @pytest.mark.asyncio
    async def test_swap_token_filter_merges_both_legs(self, chain, aggregator, token, other_token):
        chain.set_logs("SwapTrade", [
            swap_log(10, 1, TOKEN_ADDRESS, OTHER_TOKEN_ADDRESS),
            swap_log(11, 2, OTHER_TOKEN_ADDRESS, TOKEN_ADDRESS),
            swap_log(12, 3, OTHER_TOKEN_ADDRESS, OTHER_TOKEN_ADDRESS),
        ])

        events = await aggregator.scan([EventKind.SWAP], 0, 100, token=token)

        assert [e.position.transaction_hash for e in events] == [tx(1), tx(2)]
        assert isinstance(events[0], SwapTrade)
        assert events[0].token_in == token
        assert events[0].token_out == other_token
        assert events[0].token_out.decimals == 6
        filters = [c.kwargs["argument_filters"] for c in chain.get_logs_mock("SwapTrade").call_args_list]
        assert {"tokenSold": TOKEN_ADDRESS} in filters
        assert {"tokenBought": TOKEN_ADDRESS} in filters

    @pytest.mark.asyncio
    async def test_swap_matching_both_legs_counted_once(self, chain, aggregator, token):
        chain.set_logs("SwapTrade", [swap_log(10, 1, TOKEN_ADDRESS, TOKEN_ADDRESS)])
        events = await aggregator.scan([EventKind.SWAP], 0, 100, token=token)
        assert len(events) == 1

    @pytest.mark.asyncio
    async def test_swap_account_filter_single_query(self, chain, aggregator, token):
        chain.set_logs("SwapTrade", [
            swap_log(10, 1, TOKEN_ADDRESS, OTHER_TOKEN_ADDRESS, trader=USER),
            swap_log(11, 2, OTHER_TOKEN_ADDRESS, OTHER_TOKEN_ADDRESS, trader=USER),
            swap_log(12, 3, TOKEN_ADDRESS, OTHER_TOKEN_ADDRESS, trader=OTHER_USER),
        ])

        events = await aggregator.scan([EventKind.SWAP], 0, 100, token=token, account=USER)

        assert [e.position.transaction_hash for e in events] == [tx(1)]
        mock = chain.get_logs_mock("SwapTrade")
        assert mock.await_count == 1
        assert mock.call_args.kwargs["argument_filters"] == {"trader": USER}

    @pytest.mark.asyncio
    async def test_unfiltered_query_passes_no_filters(self, chain, aggregator):
        chain.set_logs("BuyTrade", [buy_log(10, 1)])
        events = await aggregator.scan([EventKind.BUY], 0, 100)
        assert len(events) == 1
        assert chain.get_logs_mock("BuyTrade").call_args.kwargs["argument_filters"] is None

    @pytest.mark.asyncio
    async def test_liquidity_account_filter(self, chain, aggregator, token):
        chain.set_logs("Deposit", [deposit_log(10, 1, user=USER), deposit_log(11, 2, user=OTHER_USER)])

        events = await aggregator.scan(LIQUIDITY_KINDS, 0, 100, account=USER.lower())

        assert [e.user for e in events] == [USER]
        assert chain.get_logs_mock("Deposit").call_args.kwargs["argument_filters"] == {"user": USER}
        assert chain.get_logs_mock("Withdraw").call_args.kwargs["argument_filters"] == {"user": USER}


class TestMergeAndCursor:
    """Timeline merging and backwards paging."""

    @pytest.mark.asyncio
    async def test_merge_events_dedupes(self, chain, aggregator, token):
        chain.set_logs("BuyTrade", [buy_log(10, 1), buy_log(20, 2)])
        first = await aggregator.scan([EventKind.BUY], 0, 15, token=token)
        second = await aggregator.scan([EventKind.BUY], 0, 100, token=token)

        merged = merge_events(first, second)

        assert [e.position.block_number for e in merged] == [10, 20]
        timestamps = [e.position.timestamp for e in merged]
        assert timestamps == sorted(timestamps)

    def test_timeline_of_kind(self):
        assert EventTimeline().of_kind(EventKind.BUY) == []

    @pytest.mark.asyncio
    async def test_cursor_pages_backwards(self, chain, aggregator, token):
        chain.set_logs("BuyTrade", [buy_log(100, 1), buy_log(2000, 2)])
        cursor = HistoryCursor(aggregator, [EventKind.BUY], token=token)

        first = await cursor.load_more()
        assert [e.position.block_number for e in first] == [2000]
        assert cursor.next_to_block == 1499

        assert await cursor.load_more() == []
        assert cursor.next_to_block == 499

        third = await cursor.load_more()
        assert [e.position.block_number for e in third] == [100]
        assert cursor.has_more is False
        assert await cursor.load_more() == []
        assert len(cursor.timeline) == 2

    @pytest.mark.asyncio
    async def test_cursor_failure_leaves_state(self, chain, aggregator, token):
        chain.get_logs_mock("BuyTrade").side_effect = TimeoutError("timed out")
        cursor = HistoryCursor(aggregator, [EventKind.BUY], token=token)

        with pytest.raises(EventFetchError):
            await cursor.load_more()

        assert len(cursor.timeline) == 0
        assert cursor.next_to_block == 2499
        assert cursor.has_more
