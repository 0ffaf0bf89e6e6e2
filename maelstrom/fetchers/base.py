"""
Block-range helpers shared by the log fetchers.
"""

import logging
from dataclasses import dataclass
from typing import Iterator

logger = logging.getLogger(__name__)

# Most public RPC providers reject eth_getLogs spanning more than ~1000 blocks
DEFAULT_WINDOW_SPAN = 999


@dataclass(frozen=True)
class BlockWindow:
    """Inclusive block range queried in one request."""

    start: int
    end: int

    @property
    def size(self) -> int:
        return self.end - self.start + 1


def block_windows(from_block: int, to_block: int, span: int = DEFAULT_WINDOW_SPAN) -> Iterator[BlockWindow]:
    """
    Split ``[from_block, to_block]`` into consecutive windows.

    Each window covers at most ``span + 1`` blocks (``end - start <= span``);
    windows never overlap and together cover the whole range.
    """
    if span <= 0:
        raise ValueError(f"Window span must be positive, got: {span}")
    if from_block < 0:
        raise ValueError(f"Cannot scan before block 0, got: {from_block}")
    if to_block < from_block:
        return
    current = from_block
    while current <= to_block:
        end = min(current + span, to_block)
        yield BlockWindow(current, end)
        current = end + 1


def window_before(to_block: int, span: int = DEFAULT_WINDOW_SPAN) -> BlockWindow:
    """The window ending at ``to_block`` when paging backwards from the head."""
    if to_block < 0:
        raise ValueError(f"Cannot page before block 0, got: {to_block}")
    return BlockWindow(max(0, to_block - span), to_block)
