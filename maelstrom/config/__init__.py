"""
Configuration management for maelstrom.

Example:
    from maelstrom.config import get_config

    config = get_config()

    contract = config.networks.get_contract_address(8453)
    window = config.engine.LOG_WINDOW_SIZE
"""

from .base import BaseConfig, ConfigError
from .engine import EngineConfig
from .manager import ConfigManager, get_config, reload_config
from .networks import NetworkConfig, NetworkInfo, TESTNET_CHAIN_IDS, TOKEN_LIST_SLUGS

__all__ = [
    "BaseConfig",
    "ConfigError",
    "EngineConfig",
    "NetworkConfig",
    "NetworkInfo",
    "TESTNET_CHAIN_IDS",
    "TOKEN_LIST_SLUGS",
    "ConfigManager",
    "get_config",
    "reload_config",
]
