"""
Read-only access to pool state.

Every method is a pure query and may run concurrently with the others. A
failing read raises ``LedgerReadError`` naming the operation; nothing is
defaulted to zero.
"""

import asyncio
from typing import List, Optional

from ..models import (
    LiquidityPoolToken,
    PoolFeesEvent,
    PoolState,
    Reserve,
    Token,
    ZERO_ADDRESS,
)
from .base import LedgerClient, checksum, validate_range


class LedgerReader(LedgerClient):
    """Typed reads against the pool contract and the tokens it trades."""

    # Token metadata

    async def get_token(self, address: str) -> Token:
        """Fetch decimals, symbol and name concurrently; the zero address is the native token."""
        address = checksum(address)
        if address == ZERO_ADDRESS:
            return self.native_token

        async def fetch() -> Token:
            token_contract = self.erc20(address)
            decimals, symbol, name = await asyncio.gather(
                token_contract.functions.decimals().call(),
                token_contract.functions.symbol().call(),
                token_contract.functions.name().call(),
            )
            return Token(address=address, symbol=symbol, name=name, decimals=int(decimals))

        return await self._read(f"get token {address}", fetch(), token=address)

    async def get_tokens(self, addresses: List[str]) -> List[Token]:
        """Resolve many tokens at once, preserving input order."""
        return list(await asyncio.gather(*(self.get_token(address) for address in addresses)))

    async def get_lp_token(self, token: Token, user: str) -> LiquidityPoolToken:
        """Resolve the pool's LP token address, then its supply, the user's balance and metadata."""
        user = checksum(user)

        async def fetch() -> LiquidityPoolToken:
            lp_address = await self.contract.functions.poolToken(token.address).call()
            lp_contract = self.erc20(lp_address)
            total_supply, balance, metadata = await asyncio.gather(
                lp_contract.functions.totalSupply().call(),
                lp_contract.functions.balanceOf(user).call(),
                self.get_token(lp_address),
            )
            return LiquidityPoolToken(
                address=metadata.address,
                symbol=metadata.symbol,
                name=metadata.name,
                decimals=metadata.decimals,
                total_supply=int(total_supply),
                balance=int(balance),
            )

        return await self._read(f"get LP token for {token.symbol}", fetch(), token=token.address)

    # Pool state

    async def get_reserves(self, token: Token) -> Reserve:
        base_reserve, token_reserve = await self._read(
            f"get reserves for {token.symbol}",
            self.contract.functions.reserves(token.address).call(),
            token=token.address,
        )
        return Reserve(base_reserve=int(base_reserve), token_reserve=int(token_reserve))

    async def get_buy_price(self, token: Token) -> int:
        return int(await self._read(
            f"get buy price for {token.symbol}",
            self.contract.functions.priceBuy(token.address).call(),
            token=token.address,
        ))

    async def get_sell_price(self, token: Token) -> int:
        return int(await self._read(
            f"get sell price for {token.symbol}",
            self.contract.functions.priceSell(token.address).call(),
            token=token.address,
        ))

    async def get_prices(self, token: Token) -> tuple:
        """Buy and sell price read concurrently."""
        buy_price, sell_price = await asyncio.gather(self.get_buy_price(token), self.get_sell_price(token))
        return buy_price, sell_price

    async def get_token_ratio(self, token: Token) -> int:
        """Tokens per one unit of the base asset, as stored by the contract."""
        return int(await self._read(
            f"get token ratio for {token.symbol}",
            self.contract.functions.tokenPerETHRatio(token.address).call(),
            token=token.address,
        ))

    async def get_user_balance(self, token: Token, user: str) -> Reserve:
        """A user's claim on the pool; the contract returns (token, base)."""
        user = checksum(user)
        token_balance, base_balance = await self._read(
            f"get user balance for {token.symbol}",
            self.contract.functions.poolUserBalances(token.address, user).call(),
            token=token.address,
        )
        return Reserve(base_reserve=int(base_balance), token_reserve=int(token_balance))

    async def get_pool_state(self, token: Token) -> PoolState:
        values = await self._read(
            f"get pool state for {token.symbol}",
            self.contract.functions.pools(token.address).call(),
            token=token.address,
        )
        return PoolState.from_tuple(values)

    async def get_last_exchange_timestamp(self, token: Token) -> int:
        """Last trade time in milliseconds."""
        state = await self.get_pool_state(token)
        return state.last_exchange_timestamp * 1000

    async def is_pool_instantiated(self, token_address: str) -> bool:
        token_address = checksum(token_address)
        lp_address = await self._read(
            f"check pool for {token_address}",
            self.contract.functions.poolToken(token_address).call(),
            token=token_address,
        )
        return checksum(lp_address) != ZERO_ADDRESS

    # Fees

    async def get_total_fees(self) -> int:
        return int(await self._read("get total fees", self.contract.functions.totalFees().call()))

    async def get_total_pool_fee(self, token: Token) -> int:
        return int(await self._read(
            f"get total pool fee for {token.symbol}",
            self.contract.functions.totalPoolFees(token.address).call(),
            token=token.address,
        ))

    async def get_pool_fee_events_count(self, token: Token) -> int:
        return int(await self._read(
            f"get fee events count for {token.symbol}",
            self.contract.functions.getPoolFeeEventsCount(token.address).call(),
            token=token.address,
        ))

    async def get_pool_fee_events(
        self, token: Token, start: int, end: int, count: Optional[int] = None
    ) -> List[PoolFeesEvent]:
        """
        Fee samples with indexes in ``[start, end]``, timestamps in milliseconds.

        Args:
            token: Pool token
            start: First index, inclusive
            end: Last index, inclusive
            count: Known event count; read from the contract when omitted
        """
        if count is None:
            count = await self.get_pool_fee_events_count(token)
        validate_range(start, end, count)
        entries = await self._read(
            f"get fee events for {token.symbol}",
            self.contract.functions.getPoolFeeList(token.address, start, end).call(),
            token=token.address,
        )
        return [PoolFeesEvent(timestamp=int(timestamp) * 1000, fee=int(fee)) for fee, timestamp in entries]

    # Pool listing

    async def get_pool_count(self) -> int:
        return int(await self._read("get pool count", self.contract.functions.getTotalPools().call()))

    async def get_user_pool_count(self, user: str) -> int:
        user = checksum(user)
        return int(await self._read(
            "get user pool count", self.contract.functions.getUserTotalPools(user).call(), user=user
        ))

    async def get_pool_addresses(self, start: int, end: int, count: Optional[int] = None) -> List[str]:
        """Pool token addresses at indexes ``[start, end]``."""
        if count is None:
            count = await self.get_pool_count()
        validate_range(start, end, count)
        addresses = await self._read(
            f"get pool list [{start}-{end}]", self.contract.functions.getPoolList(start, end).call()
        )
        return self._validate_addresses(list(addresses))

    async def get_user_pool_addresses(
        self, user: str, start: int, end: int, count: Optional[int] = None
    ) -> List[str]:
        user = checksum(user)
        if count is None:
            count = await self.get_user_pool_count(user)
        validate_range(start, end, count)
        addresses = await self._read(
            f"get user pool list [{start}-{end}]",
            self.contract.functions.getUserPools(user, start, end).call(),
            user=user,
        )
        return self._validate_addresses(list(addresses))

    # Chain

    async def get_block_number(self) -> int:
        block = await self._read("get block number", self.web3.eth.get_block("latest"))
        return int(block["number"])

    async def get_block_timestamp(self, block_number: int) -> int:
        """Block time in milliseconds."""
        block = await self._read(f"get block {block_number}", self.web3.eth.get_block(block_number))
        return int(block["timestamp"]) * 1000
