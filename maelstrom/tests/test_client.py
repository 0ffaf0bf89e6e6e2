"""
Tests for MaelstromClient wiring.
"""

from unittest.mock import AsyncMock

import pytest
from eth_account import Account

from ..client import MaelstromClient
from ..config import ConfigError, ConfigManager, EngineConfig, NetworkConfig
from ..conftest import POOL_ADDRESS, USER
from ..core import TokenListEntry
from ..ledger import MaelstromError
from ..models import SellRequest
from ..trading import TransactionExecutor

PRIVATE_KEY = "0x" + "11" * 32


@pytest.fixture
def engine():
    return EngineConfig(ENVIRONMENT="test", TOKEN_SEARCH_PAGE_SIZE=1, POOL_PAGE_SIZE=3)


@pytest.fixture
def etc_network():
    return NetworkConfig(ENVIRONMENT="test").get_network(61)


class TestWiring:

    def test_components_share_one_reader(self, chain, etc_network, engine):
        client = MaelstromClient(chain.web3, etc_network, engine)

        assert client.reader.contract_address == POOL_ADDRESS
        assert client.aggregator.reader is client.reader
        assert client.analytics.reader is client.reader
        assert client.builder.reader is client.reader
        assert client.analytics.page_size == 3
        assert client.native_token.symbol == "ETC"
        assert client.native_token.is_native
        assert client.read_only

    def test_account_enables_executor(self, chain, etc_network, engine):
        client = MaelstromClient(chain.web3, etc_network, engine, account=USER)

        assert isinstance(client.executor, TransactionExecutor)
        assert client.executor.account == USER
        assert not client.read_only

    @pytest.mark.asyncio
    async def test_read_only_submit(self, chain, etc_network, engine, token):
        client = MaelstromClient(chain.web3, etc_network, engine)
        with pytest.raises(MaelstromError, match="read-only"):
            await client.submit(SellRequest(token, 1, 1))


class TestFromConfig:

    def test_unsupported_chain(self):
        with pytest.raises(ConfigError, match="Unsupported chain id: 999"):
            MaelstromClient.from_config(chain_id=999, config=ConfigManager("test"))

    def test_private_key_sets_sender(self):
        client = MaelstromClient.from_config(
            chain_id=8453, private_key=PRIVATE_KEY, config=ConfigManager("test")
        )

        assert client.network.chain_id == 8453
        assert client.executor.account == Account.from_key(PRIVATE_KEY).address

    def test_without_account_is_read_only(self):
        client = MaelstromClient.from_config(
            chain_id=1, config=ConfigManager("test"), rpc_url="http://localhost:8545"
        )
        assert client.read_only


class TestTokenSearch:

    @pytest.mark.asyncio
    async def test_search_builds_index_once(self, chain, etc_network, engine):
        client = MaelstromClient(chain.web3, etc_network, engine)
        tokens = [
            TokenListEntry("0x00000000000000000000000000000000000000aa", "USDC", "USD Coin"),
            TokenListEntry("0x00000000000000000000000000000000000000bb", "USDT", "Tether"),
        ]
        client.token_lists.get = AsyncMock(return_value=tokens)

        page = await client.search_tokens("usd")
        assert [t.symbol for t in page.tokens] == ["USDC"]
        assert page.has_more

        page = await client.search_tokens("usd", page=2)
        assert len(page.tokens) == 2
        client.token_lists.get.assert_awaited_once_with(61)
