"""
Configuration manager for maelstrom.

Combines the base, network and engine configuration into one object so the
rest of the package only ever asks ``get_config()``.
"""

import logging
from typing import Any, Dict, Optional

from .base import BaseConfig, ConfigError
from .engine import EngineConfig
from .networks import NetworkConfig

logger = logging.getLogger(__name__)


class ConfigManager:
    """Centralized access to every configuration section."""

    def __init__(self, environment: Optional[str] = None):
        """
        Args:
            environment: Override the environment (local, dev, test, staging, production)
        """
        self._environment = environment
        self._base_config = None
        self._network_config = None
        self._engine_config = None
        self._initialize_configs()

    def _initialize_configs(self):
        try:
            if self._environment:
                self._base_config = BaseConfig(ENVIRONMENT=self._environment)
                self._network_config = NetworkConfig(ENVIRONMENT=self._environment)
                self._engine_config = EngineConfig(ENVIRONMENT=self._environment)
            else:
                self._base_config = BaseConfig()
                self._network_config = NetworkConfig()
                self._engine_config = EngineConfig()

            logger.info(f"Configuration initialized for environment: {self.environment}")

        except ConfigError:
            raise
        except Exception as e:
            logger.error(f"Failed to initialize configuration: {e}")
            raise ConfigError(f"Configuration initialization failed: {e}") from e

    @property
    def environment(self) -> str:
        return self._base_config.ENVIRONMENT

    @property
    def base(self) -> BaseConfig:
        return self._base_config

    @property
    def networks(self) -> NetworkConfig:
        return self._network_config

    @property
    def engine(self) -> EngineConfig:
        return self._engine_config

    def get_network_summary(self, chain_id: Optional[int] = None) -> Dict[str, Any]:
        """
        Flatten what a client needs to connect to one network.

        Raises:
            ConfigError: If the chain is unsupported
        """
        network = self.networks.get_network(chain_id)
        return {
            "chain_id": network.chain_id,
            "name": network.name,
            "rpc_url": network.rpc_url,
            "contract_address": self.networks.get_contract_address(network.chain_id),
            "testnet": network.is_testnet,
            "token_list_slug": network.token_list_slug,
            "log_window_size": self.engine.LOG_WINDOW_SIZE,
        }


_config_manager: Optional[ConfigManager] = None


def get_config(environment: Optional[str] = None) -> ConfigManager:
    """Return the process-wide ConfigManager, creating it on first use."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager(environment)
    return _config_manager


def reload_config(environment: Optional[str] = None) -> ConfigManager:
    """Discard the cached ConfigManager and build a new one."""
    global _config_manager
    _config_manager = ConfigManager(environment)
    return _config_manager
