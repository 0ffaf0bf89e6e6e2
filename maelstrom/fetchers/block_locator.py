"""
Map "N milliseconds ago" to a block number.

Block timestamps are non-decreasing in block number, so the boundary can be
found with a binary search over ``[0, head]`` instead of scanning.
"""

import logging
import time
from typing import Awaitable, Callable, Dict, Optional

logger = logging.getLogger(__name__)

TimestampOf = Callable[[int], Awaitable[int]]
HeadOf = Callable[[], Awaitable[int]]


def now_ms() -> int:
    return int(time.time() * 1000)


class BlockTimeLocator:
    """
    Binary search for the last block at or before a target time.

    Args:
        timestamp_of: Async block number -> timestamp in milliseconds
        head: Async current block number
    """

    def __init__(self, timestamp_of: TimestampOf, head: HeadOf):
        self.timestamp_of = timestamp_of
        self.head = head
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @classmethod
    def for_reader(cls, reader) -> "BlockTimeLocator":
        return cls(reader.get_block_timestamp, reader.get_block_number)

    async def locate(
        self,
        offset_ms: int,
        now: Optional[int] = None,
        current_block: Optional[int] = None,
    ) -> int:
        """
        Find the block that was current ``offset_ms`` before ``now``.

        Returns the largest block ``P`` with ``timestamp(P) <= now - offset_ms``,
        so ``now - offset_ms < timestamp(P + 1)``. Blocks sharing a timestamp
        resolve to the latest of them. Returns 0 when every block is newer
        than the target.

        Args:
            offset_ms: How far back to look
            now: Reference time in milliseconds, wall clock when omitted
            current_block: Upper bound of the search, chain head when omitted
        """
        if offset_ms < 0:
            raise ValueError(f"Offset must be non-negative, got: {offset_ms}")
        if current_block is None:
            current_block = await self.head()
        if now is None:
            now = now_ms()
        target = now - offset_ms

        cache: Dict[int, int] = {}

        async def timestamp(block: int) -> int:
            if block not in cache:
                cache[block] = await self.timestamp_of(block)
            return cache[block]

        if current_block <= 0 or await timestamp(0) > target:
            return 0
        if await timestamp(current_block) <= target:
            return current_block

        # timestamp(low) <= target < timestamp(high)
        low, high = 0, current_block
        while high - low > 1:
            mid = (low + high) // 2
            if await timestamp(mid) <= target:
                low = mid
            else:
                high = mid

        self.logger.debug(f"Located block {low} for target {target} after {len(cache)} lookups")
        return low
