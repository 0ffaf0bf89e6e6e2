"""
Wires the reader, fetchers, analytics and trading layers for one network.

Example:
    client = MaelstromClient.from_config(chain_id=8453)
    pools = await client.analytics.load_all_pools()
"""

import logging
from typing import Optional

from eth_account import Account
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.middleware import SignAndSendRawMiddlewareBuilder

from .config import ConfigManager, EngineConfig, NetworkInfo, get_config
from .core import TokenListCache, TokenSearchIndex, TokenSearchPage
from .fetchers import BlockTimeLocator, EventLogAggregator
from .ledger import LedgerReader, MaelstromError, checksum
from .models import TradeRequest, TransactionResult, native_token_for
from .processors import PoolAnalytics
from .trading import TradeBuilder, TradeValidator, TransactionExecutor

logger = logging.getLogger(__name__)


class MaelstromClient:
    """
    All engine components bound to one network.

    Args:
        web3: Connected ``AsyncWeb3``
        network: Network the contract is deployed on
        engine: Scanning, paging and validation tunables
        account: Sender for transactions; read-only when omitted
    """

    def __init__(
        self,
        web3: AsyncWeb3,
        network: NetworkInfo,
        engine: EngineConfig,
        account: Optional[str] = None,
    ):
        self.web3 = web3
        self.network = network
        self.engine = engine
        self.native_token = native_token_for(network.native_symbol, network.native_name)

        self.reader = LedgerReader(web3, network.contract_address, self.native_token)
        self.aggregator = EventLogAggregator(
            self.reader, window_span=engine.LOG_WINDOW_SIZE, page_delay=engine.PAGE_DELAY_SECONDS
        )
        self.locator = BlockTimeLocator.for_reader(self.reader)
        self.analytics = PoolAnalytics(
            self.reader,
            self.aggregator,
            locator=self.locator,
            fee_sample_size=engine.FEE_SAMPLE_SIZE,
            page_delay=engine.PAGE_DELAY_SECONDS,
            volume_lookback_ms=engine.VOLUME_LOOKBACK_MS,
            page_size=engine.POOL_PAGE_SIZE,
        )
        self.validator = TradeValidator(
            max_impact_pct=engine.MAX_RESERVE_IMPACT_PCT,
            zero_slippage_mode=engine.ZERO_SLIPPAGE_MODE,
            slippage_pct=engine.DEFAULT_SLIPPAGE_PCT,
            max_slippage_pct=engine.MAX_SLIPPAGE_PCT,
        )
        self.builder = TradeBuilder(self.reader, self.validator)
        self.token_lists = TokenListCache(engine.TOKEN_LIST_BASE_URL, timeout=engine.HTTP_TIMEOUT_SECONDS)
        self._search_indexes = {}

        self.executor: Optional[TransactionExecutor] = None
        if account is not None:
            self.executor = TransactionExecutor(web3, network.contract_address, account, self.native_token)

        logger.info(
            f"Client ready for {network.name} ({network.chain_id}) at {network.contract_address}"
            f"{'' if account is None else f' as {checksum(account)}'}"
        )

    @classmethod
    def from_config(
        cls,
        chain_id: Optional[int] = None,
        private_key: Optional[str] = None,
        account: Optional[str] = None,
        config: Optional[ConfigManager] = None,
        rpc_url: Optional[str] = None,
    ) -> "MaelstromClient":
        """
        Build a client over HTTP for a configured network.

        A ``private_key`` installs local signing and sets the sender. Without
        one, ``account`` must be unlocked on the node to send transactions.

        Raises:
            ConfigError: If the chain is unsupported or has no RPC URL
        """
        config = config or get_config()
        network = config.networks.get_network(chain_id)
        rpc_url = rpc_url or config.networks.get_rpc_url(network.chain_id)

        web3 = AsyncWeb3(AsyncHTTPProvider(rpc_url))
        if private_key is not None:
            signer = Account.from_key(private_key)
            web3.middleware_onion.inject(SignAndSendRawMiddlewareBuilder.build(signer), layer=0)
            account = signer.address

        return cls(web3, network, config.engine, account=account)

    @property
    def read_only(self) -> bool:
        return self.executor is None

    async def submit(self, request: TradeRequest) -> TransactionResult:
        """
        Raises:
            MaelstromError: If the client has no sender account
        """
        if self.executor is None:
            raise MaelstromError("Client is read-only; configure an account to send transactions")
        return await self.executor.submit(request)

    async def search_tokens(self, query: str, page: int = 1) -> TokenSearchPage:
        """Search the network's community token list."""
        index = self._search_indexes.get(self.network.chain_id)
        if index is None:
            tokens = await self.token_lists.get(self.network.chain_id)
            index = TokenSearchIndex(tokens, page_size=self.engine.TOKEN_SEARCH_PAGE_SIZE)
            self._search_indexes[self.network.chain_id] = index
        return index.search(query, page)
