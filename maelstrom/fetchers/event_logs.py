"""
Windowed event log aggregation.

Providers cap how many blocks one ``eth_getLogs`` call may span, so long
ranges are split into fixed windows. Within a window every requested event
kind is queried concurrently; windows run one after another with a small
delay between them. Events accumulate in a mapping local to the call and are
returned deduplicated and sorted, so repeated or overlapping scans merge
cleanly into a shared ``EventTimeline``.
"""

import asyncio
import logging
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional, Sequence, Set, assert_never

from ..ledger import EventFetchError, LedgerReader, MaelstromError, checksum, to_hex_str
from ..models import (
    BuyTrade,
    Deposit,
    EventKind,
    EventPosition,
    LedgerEvent,
    SellTrade,
    SwapTrade,
    Token,
    Withdraw,
    event_key,
    sort_key,
)
from .base import DEFAULT_WINDOW_SPAN, BlockWindow, block_windows, window_before

logger = logging.getLogger(__name__)

TRADE_KINDS = (EventKind.BUY, EventKind.SELL, EventKind.SWAP)
LIQUIDITY_KINDS = (EventKind.DEPOSIT, EventKind.WITHDRAW)

# Name of the indexed account argument per event
ACCOUNT_ARGUMENT = {
    EventKind.BUY: "trader",
    EventKind.SELL: "trader",
    EventKind.SWAP: "trader",
    EventKind.DEPOSIT: "user",
    EventKind.WITHDRAW: "user",
}


def merge_events(*collections: Iterable[LedgerEvent]) -> List[LedgerEvent]:
    """Union of event collections, deduplicated and ascending by time."""
    merged: Dict[Any, LedgerEvent] = {}
    for collection in collections:
        for event in collection:
            merged[event_key(event)] = event
    return sorted(merged.values(), key=sort_key)


class EventTimeline:
    """
    Caller-owned accumulation of events across scans.

    ``merge`` swaps in a fully built mapping, so a scan that is abandoned
    part way never leaves partial results behind.
    """

    def __init__(self, events: Iterable[LedgerEvent] = ()):
        self._events: Dict[Any, LedgerEvent] = {event_key(e): e for e in events}

    def merge(self, events: Iterable[LedgerEvent]) -> int:
        """Add events, returning how many were new."""
        updated = dict(self._events)
        for event in events:
            updated[event_key(event)] = event
        added = len(updated) - len(self._events)
        self._events = updated
        return added

    @property
    def events(self) -> List[LedgerEvent]:
        return sorted(self._events.values(), key=sort_key)

    def of_kind(self, *kinds: EventKind) -> List[LedgerEvent]:
        return [event for event in self.events if event.kind in kinds]

    def __len__(self) -> int:
        return len(self._events)


class _ScanContext:
    """Per-call memo of block timestamps and token metadata."""

    def __init__(self, reader: LedgerReader, known_tokens: Sequence[Token] = ()):
        self.reader = reader
        self.timestamps: Dict[int, int] = {}
        self.tokens: Dict[str, Token] = {token.address: token for token in known_tokens}

    async def prefetch(self, logs: Sequence[Any], token_arguments: Sequence[str]):
        blocks = sorted({int(log["blockNumber"]) for log in logs} - set(self.timestamps))
        addresses: Set[str] = set()
        for log in logs:
            for argument in token_arguments:
                address = checksum(log["args"][argument])
                if address not in self.tokens:
                    addresses.add(address)
        addresses_list = sorted(addresses)

        timestamps, tokens = await asyncio.gather(
            asyncio.gather(*(self.reader.get_block_timestamp(block) for block in blocks)),
            asyncio.gather(*(self.reader.get_token(address) for address in addresses_list)),
        )
        self.timestamps.update(zip(blocks, timestamps))
        self.tokens.update(zip(addresses_list, tokens))

    def position(self, log: Any) -> EventPosition:
        block_number = int(log["blockNumber"])
        return EventPosition(
            timestamp=self.timestamps[block_number],
            block_number=block_number,
            transaction_hash=to_hex_str(log["transactionHash"]),
            log_index=int(log["logIndex"]),
        )

    def token(self, address: str) -> Token:
        return self.tokens[checksum(address)]


class EventLogAggregator:
    """
    Fetches pool events across arbitrarily long block ranges.

    Args:
        reader: Ledger reader providing the contract, timestamps and tokens
        window_span: Largest ``to - from`` for one log query
        page_delay: Seconds to wait between consecutive windows
    """

    def __init__(self, reader: LedgerReader, window_span: int = DEFAULT_WINDOW_SPAN, page_delay: float = 0.0):
        if window_span <= 0:
            raise ValueError(f"Window span must be positive, got: {window_span}")
        self.reader = reader
        self.window_span = window_span
        self.page_delay = page_delay
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    # Public API

    async def scan(
        self,
        kinds: Sequence[EventKind],
        from_block: int,
        to_block: int,
        token: Optional[Token] = None,
        account: Optional[str] = None,
    ) -> List[LedgerEvent]:
        """
        Collect every event of ``kinds`` in ``[from_block, to_block]``.

        Raises:
            EventFetchError: If any window fails; nothing partial is returned
        """
        collected: Dict[Any, LedgerEvent] = {}
        async for window_events in self.iter_scan(kinds, from_block, to_block, token, account):
            for event in window_events:
                collected[event_key(event)] = event
        events = sorted(collected.values(), key=sort_key)
        self.logger.info(
            f"Scanned blocks {from_block}-{to_block} for {[k.value for k in kinds]}: {len(events)} events"
        )
        return events

    async def iter_scan(
        self,
        kinds: Sequence[EventKind],
        from_block: int,
        to_block: int,
        token: Optional[Token] = None,
        account: Optional[str] = None,
    ) -> AsyncIterator[List[LedgerEvent]]:
        """Yield one window's events at a time, oldest window first."""
        context = self._context(token)
        for index, window in enumerate(block_windows(from_block, to_block, self.window_span)):
            if index and self.page_delay:
                await asyncio.sleep(self.page_delay)
            yield await self.fetch_window(kinds, window, token, account, context)

    async def fetch_window(
        self,
        kinds: Sequence[EventKind],
        window: BlockWindow,
        token: Optional[Token] = None,
        account: Optional[str] = None,
        context: Optional[_ScanContext] = None,
    ) -> List[LedgerEvent]:
        """Query all ``kinds`` for a single window concurrently."""
        if window.end - window.start > self.window_span:
            raise ValueError(f"Window {window.start}-{window.end} exceeds span {self.window_span}")
        account = checksum(account) if account is not None else None
        context = context or self._context(token)

        results = await asyncio.gather(
            *(self._fetch_kind(kind, window, token, account, context) for kind in kinds)
        )
        return merge_events(*results)

    # Per-kind fetching

    async def _fetch_kind(
        self,
        kind: EventKind,
        window: BlockWindow,
        token: Optional[Token],
        account: Optional[str],
        context: _ScanContext,
    ) -> List[LedgerEvent]:
        try:
            if kind is EventKind.SWAP:
                logs = await self._swap_logs(window, token, account)
                token_arguments = ("tokenSold", "tokenBought")
            else:
                filters = {}
                if token is not None:
                    filters["token"] = token.address
                if account is not None:
                    filters[ACCOUNT_ARGUMENT[kind]] = account
                logs = await self._get_logs(kind, window, filters)
                token_arguments = ("token",)

            await context.prefetch(logs, token_arguments)
            return [self._decode(kind, log, context) for log in logs]
        except EventFetchError:
            raise
        except Exception as e:
            if not isinstance(e, MaelstromError):
                self.reader.error_handler.log_error(
                    e, {"operation": f"fetch {kind.value} logs", "from_block": window.start, "to_block": window.end}
                )
            raise EventFetchError(f"fetch {kind.value} logs", window.start, window.end, e) from e

    async def _swap_logs(self, window: BlockWindow, token: Optional[Token], account: Optional[str]) -> List[Any]:
        """
        Swap logs touching ``token`` on either leg.

        With an account filter a single trader-indexed query is issued and
        narrowed to the token afterwards; otherwise the sold-side and
        bought-side queries are merged.
        """
        if account is not None:
            logs = await self._get_logs(EventKind.SWAP, window, {"trader": account})
            if token is None:
                return logs
            return [
                log for log in logs
                if token.address in (checksum(log["args"]["tokenSold"]), checksum(log["args"]["tokenBought"]))
            ]
        if token is None:
            return await self._get_logs(EventKind.SWAP, window, {})

        sold, bought = await asyncio.gather(
            self._get_logs(EventKind.SWAP, window, {"tokenSold": token.address}),
            self._get_logs(EventKind.SWAP, window, {"tokenBought": token.address}),
        )
        unique = {}
        for log in list(sold) + list(bought):
            unique[(to_hex_str(log["transactionHash"]), int(log["logIndex"]))] = log
        return list(unique.values())

    async def _get_logs(self, kind: EventKind, window: BlockWindow, filters: Dict[str, str]) -> List[Any]:
        event = getattr(self.reader.contract.events, kind.value)
        logs = await event.get_logs(
            argument_filters=filters or None,
            from_block=window.start,
            to_block=window.end,
        )
        return list(logs)

    def _decode(self, kind: EventKind, log: Any, context: _ScanContext) -> LedgerEvent:
        args = log["args"]
        position = context.position(log)
        match kind:
            case EventKind.BUY:
                return BuyTrade(
                    position=position,
                    token=context.token(args["token"]),
                    trader=checksum(args["trader"]),
                    base_amount=int(args["amountEther"]),
                    token_amount=int(args["amountToken"]),
                    buy_price=int(args["tradeBuyPrice"]),
                    updated_buy_price=int(args["updatedBuyPrice"]),
                    sell_price=int(args["sellPrice"]),
                )
            case EventKind.SELL:
                return SellTrade(
                    position=position,
                    token=context.token(args["token"]),
                    trader=checksum(args["trader"]),
                    token_amount=int(args["amountToken"]),
                    base_amount=int(args["amountEther"]),
                    sell_price=int(args["tradeSellPrice"]),
                    updated_sell_price=int(args["updatedSellPrice"]),
                    buy_price=int(args["buyPrice"]),
                )
            case EventKind.SWAP:
                return SwapTrade(
                    position=position,
                    token_in=context.token(args["tokenSold"]),
                    token_out=context.token(args["tokenBought"]),
                    trader=checksum(args["trader"]),
                    amount_in=int(args["amountTokenSold"]),
                    amount_out=int(args["amountTokenBought"]),
                    sell_price=int(args["tradeSellPrice"]),
                    updated_sell_price=int(args["updatedSellPrice"]),
                    buy_price=int(args["tradeBuyPrice"]),
                    updated_buy_price=int(args["updatedBuyPrice"]),
                )
            case EventKind.DEPOSIT:
                return Deposit(
                    position=position,
                    token=context.token(args["token"]),
                    user=checksum(args["user"]),
                    base_amount=int(args["amountEther"]),
                    token_amount=int(args["amountToken"]),
                    lp_tokens_minted=int(args["lpTokensMinted"]),
                )
            case EventKind.WITHDRAW:
                return Withdraw(
                    position=position,
                    token=context.token(args["token"]),
                    user=checksum(args["user"]),
                    base_amount=int(args["amountEther"]),
                    token_amount=int(args["amountToken"]),
                    lp_tokens_burned=int(args["lpTokensBurned"]),
                )
            case _:
                assert_never(kind)

    def _context(self, token: Optional[Token]) -> _ScanContext:
        return _ScanContext(self.reader, [token] if token is not None else [])


class HistoryCursor:
    """
    Pages backwards from the chain head one window per ``load_more`` call.

    Loaded events are merged into ``timeline`` only after a window has been
    fully fetched and decoded.
    """

    def __init__(
        self,
        aggregator: EventLogAggregator,
        kinds: Sequence[EventKind],
        token: Optional[Token] = None,
        account: Optional[str] = None,
        timeline: Optional[EventTimeline] = None,
    ):
        self.aggregator = aggregator
        self.kinds = tuple(kinds)
        self.token = token
        self.account = account
        self.timeline = timeline if timeline is not None else EventTimeline()
        self.next_to_block: Optional[int] = None
        self.has_more = True

    async def load_more(self) -> List[LedgerEvent]:
        """Fetch the next older window; returns that window's events."""
        if not self.has_more:
            return []
        if self.next_to_block is None:
            self.next_to_block = await self.aggregator.reader.get_block_number()

        window = window_before(self.next_to_block, self.aggregator.window_span)
        events = await self.aggregator.fetch_window(self.kinds, window, self.token, self.account)

        self.timeline.merge(events)
        self.next_to_block = window.start - 1
        self.has_more = window.start > 0
        return events
