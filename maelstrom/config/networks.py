"""
Network configuration for maelstrom.

Maps chain ids to the deployed pool contract, the RPC endpoint and the
community token list slug for that chain.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from eth_utils import is_address, to_checksum_address

from .base import BaseConfig, ConfigError

MAINNET_CONTRACT = "0x897CeF988A12AB77A12fd8f2Ca74F0B978d302CF"

TESTNET_CHAIN_IDS = frozenset({63, 5115})

# Chains with a published token list, including ones without a deployment
TOKEN_LIST_SLUGS: Dict[int, str] = {
    1: "ethereum",
    61: "ethereum-classic",
    2001: "cardano's-milkomeda",
    137: "polygon-pos",
    56: "binance-smart-chain",
    8453: "base",
}


@dataclass(frozen=True)
class NetworkInfo:
    """Static description of one supported network."""

    chain_id: int
    name: str
    contract_address: str
    rpc_url: Optional[str]
    native_symbol: str = "ETH"
    native_name: str = "Ether"
    explorer_url: Optional[str] = None

    @property
    def is_testnet(self) -> bool:
        return self.chain_id in TESTNET_CHAIN_IDS

    @property
    def token_list_slug(self) -> Optional[str]:
        return TOKEN_LIST_SLUGS.get(self.chain_id)


@dataclass
class NetworkConfig(BaseConfig):
    """Per-chain deployment and RPC configuration."""

    DEFAULT_CHAIN_ID: int = BaseConfig.get_env_int("MAELSTROM_CHAIN_ID", 1)

    ETHEREUM_RPC_URL: str = BaseConfig.get_env("ETHEREUM_RPC_URL", "https://eth.llamarpc.com")
    ETHEREUM_CLASSIC_RPC_URL: str = BaseConfig.get_env("ETHEREUM_CLASSIC_RPC_URL", "https://etc.rivet.link")
    MORDOR_RPC_URL: str = BaseConfig.get_env("MORDOR_RPC_URL", "https://rpc.mordor.etccooperative.org")
    POLYGON_RPC_URL: str = BaseConfig.get_env("POLYGON_RPC_URL", "https://polygon-rpc.com")
    BSC_RPC_URL: str = BaseConfig.get_env("BSC_RPC_URL", "https://bsc-dataseed.binance.org")
    BASE_RPC_URL: str = BaseConfig.get_env("BASE_RPC_URL", "https://mainnet.base.org")
    CITREA_TESTNET_RPC_URL: str = BaseConfig.get_env("CITREA_TESTNET_RPC_URL", "https://rpc.testnet.citrea.xyz")

    @property
    def supported_networks(self) -> Dict[int, NetworkInfo]:
        """All networks with a deployed pool contract, keyed by chain id."""
        return {
            1: NetworkInfo(1, "ethereum", MAINNET_CONTRACT, self.ETHEREUM_RPC_URL,
                           explorer_url="https://etherscan.io"),
            61: NetworkInfo(61, "ethereum-classic", MAINNET_CONTRACT, self.ETHEREUM_CLASSIC_RPC_URL,
                            native_symbol="ETC", native_name="Ether Classic",
                            explorer_url="https://etc.blockscout.com"),
            63: NetworkInfo(63, "mordor", "0x39A04312F7640FA2B84833c96fC439D88207c9CD", self.MORDOR_RPC_URL,
                            native_symbol="METC", native_name="Mordor Ether",
                            explorer_url="https://etc-mordor.blockscout.com"),
            137: NetworkInfo(137, "polygon", MAINNET_CONTRACT, self.POLYGON_RPC_URL,
                             native_symbol="POL", native_name="Polygon",
                             explorer_url="https://polygonscan.com"),
            56: NetworkInfo(56, "bsc", MAINNET_CONTRACT, self.BSC_RPC_URL,
                            native_symbol="BNB", native_name="BNB",
                            explorer_url="https://bscscan.com"),
            8453: NetworkInfo(8453, "base", MAINNET_CONTRACT, self.BASE_RPC_URL,
                              explorer_url="https://basescan.org"),
            5115: NetworkInfo(5115, "citrea-testnet", "0x7B1E47C3C6b1eea13D06566f078DcBaEF5B63Ee5",
                              self.CITREA_TESTNET_RPC_URL, native_symbol="cBTC", native_name="Citrea Bitcoin",
                              explorer_url="https://explorer.testnet.citrea.xyz"),
        }

    def get_network(self, chain_id: Optional[int] = None) -> NetworkInfo:
        """
        Look up a network by chain id.

        Args:
            chain_id: Chain id, defaults to ``DEFAULT_CHAIN_ID``

        Raises:
            ConfigError: If no pool contract is deployed on the chain
        """
        chain_id = self.DEFAULT_CHAIN_ID if chain_id is None else chain_id
        network = self.supported_networks.get(chain_id)
        if network is None:
            raise ConfigError(f"Unsupported chain id: {chain_id}")
        return network

    def get_contract_address(self, chain_id: Optional[int] = None) -> str:
        address = self.get_network(chain_id).contract_address
        if not is_address(address):
            raise ConfigError(f"Malformed contract address for chain {chain_id}: {address}")
        return to_checksum_address(address)

    def get_rpc_url(self, chain_id: Optional[int] = None) -> str:
        network = self.get_network(chain_id)
        if not network.rpc_url:
            raise ConfigError(f"No RPC URL configured for {network.name}")
        return network.rpc_url
