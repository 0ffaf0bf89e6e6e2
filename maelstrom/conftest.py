"""
Shared pytest fixtures: an in-memory chain behind a mocked AsyncWeb3.
"""

from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, Mock

import pytest
from hexbytes import HexBytes

from maelstrom.ledger import LedgerReader
from maelstrom.models import Token

POOL_ADDRESS = "0x897CeF988A12AB77A12fd8f2Ca74F0B978d302CF"
USER = "0x1111111111111111111111111111111111111111"
OTHER_USER = "0x4444444444444444444444444444444444444444"
TOKEN_ADDRESS = "0x2222222222222222222222222222222222222222"
OTHER_TOKEN_ADDRESS = "0x3333333333333333333333333333333333333333"
LP_ADDRESS = "0x5555555555555555555555555555555555555555"

EVENT_NAMES = ("BuyTrade", "SellTrade", "SwapTrade", "Deposit", "Withdraw")


def contract_call(return_value: Any = None, side_effect: Any = None) -> Mock:
    """Mock a contract function so ``fn(*args).call()`` resolves to ``return_value``."""
    fn = Mock()
    fn.return_value.call = AsyncMock(return_value=return_value, side_effect=side_effect)
    return fn


def make_log(args: Dict[str, Any], block: int, tx_hash: str, log_index: int = 0) -> Dict[str, Any]:
    return {
        "args": args,
        "blockNumber": block,
        "transactionHash": HexBytes(tx_hash),
        "logIndex": log_index,
    }


def tx(n: int) -> str:
    """Deterministic 32-byte transaction hash."""
    return "0x" + f"{n:064x}"


class FakeChain:
    """
    Pool contract, token contracts and blocks held in memory.

    Blocks store timestamps in seconds, as nodes return them. Log queries
    honour the block range and argument filters.
    """

    def __init__(self):
        self.pool_contract = Mock()
        self.token_contracts: Dict[str, Mock] = {}
        self.blocks: Dict[int, int] = {}
        self.head = 0
        self.logs: Dict[str, List[Dict[str, Any]]] = {}

        self.web3 = Mock()
        self.web3.eth.contract = Mock(side_effect=self._contract)
        self.web3.eth.get_block = AsyncMock(side_effect=self._get_block)
        self.web3.eth.wait_for_transaction_receipt = AsyncMock(return_value={"status": 1, "blockNumber": 42})

        for name in EVENT_NAMES:
            self.set_logs(name, [])

    def _contract(self, address: str, abi: Optional[list] = None) -> Mock:
        if address == POOL_ADDRESS:
            return self.pool_contract
        return self.token_contracts.setdefault(address, Mock())

    async def _get_block(self, identifier):
        number = self.head if identifier == "latest" else identifier
        if number not in self.blocks:
            raise ValueError(f"Block {number} not found")
        return {"number": number, "timestamp": self.blocks[number]}

    def add_blocks(self, count: int, seconds_per_block: int = 1, start_time: int = 0):
        for number in range(count):
            self.blocks[number] = start_time + number * seconds_per_block
        self.head = count - 1

    def add_token(self, token: Token) -> Mock:
        contract = self.token_contracts.setdefault(token.address, Mock())
        contract.functions.decimals = contract_call(token.decimals)
        contract.functions.symbol = contract_call(token.symbol)
        contract.functions.name = contract_call(token.name)
        return contract

    def set_logs(self, event_name: str, logs: List[Dict[str, Any]]):
        self.logs[event_name] = logs

        async def get_logs(argument_filters=None, from_block=0, to_block=0):
            return [
                log for log in self.logs[event_name]
                if from_block <= log["blockNumber"] <= to_block
                and all(log["args"].get(key) == value for key, value in (argument_filters or {}).items())
            ]

        getattr(self.pool_contract.events, event_name).get_logs = AsyncMock(side_effect=get_logs)

    def get_logs_mock(self, event_name: str) -> AsyncMock:
        return getattr(self.pool_contract.events, event_name).get_logs


@pytest.fixture
def chain():
    return FakeChain()


@pytest.fixture
def token():
    return Token(address=TOKEN_ADDRESS, symbol="TKN", name="Test Token", decimals=18)


@pytest.fixture
def other_token():
    return Token(address=OTHER_TOKEN_ADDRESS, symbol="USDX", name="Six Decimal Dollar", decimals=6)


@pytest.fixture
def reader(chain, token, other_token):
    chain.add_token(token)
    chain.add_token(other_token)
    return LedgerReader(chain.web3, POOL_ADDRESS)
