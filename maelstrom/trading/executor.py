"""
Submits validated requests to the pool contract.

Every action that moves a token into the contract first approves exactly
that amount, waits for the approval to be mined, then sends the main call.
Buy pays with the base asset and needs no approval. Each submission yields
one ``TransactionResult``; failures are reported, never retried.
"""

import logging
from typing import Any, Dict, Optional, Tuple, assert_never

from web3 import AsyncWeb3

from ..fetchers import now_ms
from ..ledger import LedgerClient, TransactionError, checksum, to_hex_str
from ..models import (
    NATIVE_TOKEN,
    BuyRequest,
    DepositRequest,
    InitPoolRequest,
    SellRequest,
    SwapRequest,
    Token,
    TradeAction,
    TradeRequest,
    TransactionResult,
    WithdrawRequest,
)

logger = logging.getLogger(__name__)


class TransactionExecutor(LedgerClient):
    """
    Sends approvals and mutating calls from ``account``.

    Args:
        web3: Connected ``AsyncWeb3``; signing middleware must be installed
            when ``account`` is not managed by the node
        contract_address: Pool contract
        account: Sender address
        wait_for_receipt: Wait for the main call to be mined and check its status
        receipt_timeout: Seconds to wait for each receipt
    """

    def __init__(
        self,
        web3: AsyncWeb3,
        contract_address: str,
        account: str,
        native_token: Token = NATIVE_TOKEN,
        wait_for_receipt: bool = True,
        receipt_timeout: float = 120.0,
    ):
        super().__init__(web3, contract_address, native_token)
        self.account = checksum(account)
        self.wait_for_receipt = wait_for_receipt
        self.receipt_timeout = receipt_timeout

    # Actions

    async def initialize_pool(self, request: InitPoolRequest) -> TransactionResult:
        call = self.contract.functions.initializePool(
            request.token.address,
            request.token_amount,
            request.initial_buy_price,
            request.initial_sell_price,
        )
        return await self._execute(
            TradeAction.INIT_POOL, request, call,
            approval=(request.token.address, request.token_amount),
            value=request.base_amount,
        )

    async def deposit(self, request: DepositRequest) -> TransactionResult:
        call = self.contract.functions.deposit(request.token.address)
        return await self._execute(
            TradeAction.DEPOSIT, request, call,
            approval=(request.token.address, request.token_amount),
            value=request.base_amount,
        )

    async def withdraw(self, request: WithdrawRequest) -> TransactionResult:
        call = self.contract.functions.withdraw(request.token.address, request.lp_token_amount)
        return await self._execute(
            TradeAction.WITHDRAW, request, call,
            approval=(request.lp_token.address, request.lp_token_amount),
        )

    async def swap(self, request: SwapRequest) -> TransactionResult:
        call = self.contract.functions.swap(
            request.token_in.address, request.token_out.address, request.amount_in, request.minimum_out
        )
        return await self._execute(
            TradeAction.SWAP, request, call,
            approval=(request.token_in.address, request.amount_in),
        )

    async def buy(self, request: BuyRequest) -> TransactionResult:
        call = self.contract.functions.buy(request.token.address, request.minimum_out)
        return await self._execute(TradeAction.BUY, request, call, value=request.amount_in)

    async def sell(self, request: SellRequest) -> TransactionResult:
        call = self.contract.functions.sell(request.token.address, request.amount_in, request.minimum_out)
        return await self._execute(
            TradeAction.SELL, request, call,
            approval=(request.token.address, request.amount_in),
        )

    async def submit(self, request: TradeRequest) -> TransactionResult:
        """Dispatch any request to its action."""
        if isinstance(request, InitPoolRequest):
            return await self.initialize_pool(request)
        if isinstance(request, DepositRequest):
            return await self.deposit(request)
        if isinstance(request, WithdrawRequest):
            return await self.withdraw(request)
        if isinstance(request, SwapRequest):
            return await self.swap(request)
        if isinstance(request, BuyRequest):
            return await self.buy(request)
        if isinstance(request, SellRequest):
            return await self.sell(request)
        assert_never(request)

    # Internals

    async def _execute(
        self,
        action: TradeAction,
        request: TradeRequest,
        call: Any,
        approval: Optional[Tuple[str, int]] = None,
        value: int = 0,
    ) -> TransactionResult:
        timestamp = now_ms()
        try:
            if approval is not None:
                await self._approve(*approval)

            tx_params: Dict[str, Any] = {"from": self.account}
            if value:
                tx_params["value"] = value
            tx_hash = to_hex_str(await call.transact(tx_params))
            self.logger.info(f"{action.value} submitted: {tx_hash}")

            block_number = None
            if self.wait_for_receipt:
                receipt = await self._wait(tx_hash)
                block_number = receipt.get("blockNumber")
        except Exception as e:
            self.error_handler.log_error(e, {"operation": action.value, "account": self.account})
            return TransactionResult(
                action=action,
                request=request,
                success=False,
                timestamp=timestamp,
                error=f"{action.error_prefix}: {e}",
            )

        return TransactionResult(
            action=action,
            request=request,
            success=True,
            timestamp=timestamp,
            tx_hash=tx_hash,
            block_number=block_number,
        )

    async def _approve(self, token_address: str, amount: int) -> str:
        """Approve the pool contract to pull ``amount`` and wait for it to be mined."""
        try:
            approve_call = self.erc20(token_address).functions.approve(self.contract_address, amount)
            tx_hash = to_hex_str(await approve_call.transact({"from": self.account}))
            await self._wait(tx_hash)
        except Exception as e:
            raise TransactionError(f"Token approval failed: {e}") from e
        self.logger.debug(f"Approved {amount} of {token_address}: {tx_hash}")
        return tx_hash

    async def _wait(self, tx_hash: str) -> Dict[str, Any]:
        receipt = await self.web3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
        if receipt.get("status") != 1:
            raise TransactionError(f"Transaction {tx_hash} reverted", tx_hash=tx_hash)
        return receipt
