"""
Tests for configuration loading and validation.
"""

from decimal import Decimal

import pytest

from ..base import BaseConfig, ConfigError
from ..engine import EngineConfig
from ..manager import ConfigManager, get_config, reload_config
from ..networks import MAINNET_CONTRACT, NetworkConfig


class TestBaseConfig:
    """Environment helpers and base validation."""

    def test_get_env_int_reads_environment(self, monkeypatch):
        monkeypatch.setenv("MAELSTROM_TEST_INT", "42")
        assert BaseConfig.get_env_int("MAELSTROM_TEST_INT", 1) == 42

    def test_get_env_int_uses_default(self, monkeypatch):
        monkeypatch.delenv("MAELSTROM_TEST_INT", raising=False)
        assert BaseConfig.get_env_int("MAELSTROM_TEST_INT", 7) == 7

    def test_get_env_int_rejects_garbage(self, monkeypatch):
        monkeypatch.setenv("MAELSTROM_TEST_INT", "many")
        with pytest.raises(ConfigError, match="must be an integer"):
            BaseConfig.get_env_int("MAELSTROM_TEST_INT", 1)

    def test_get_env_decimal_keeps_precision(self, monkeypatch):
        monkeypatch.setenv("MAELSTROM_TEST_DEC", "0.1")
        assert BaseConfig.get_env_decimal("MAELSTROM_TEST_DEC", "0") == Decimal("0.1")

    def test_get_env_bool(self, monkeypatch):
        monkeypatch.setenv("MAELSTROM_TEST_BOOL", "yes")
        assert BaseConfig.get_env_bool("MAELSTROM_TEST_BOOL") is True
        monkeypatch.setenv("MAELSTROM_TEST_BOOL", "off")
        assert BaseConfig.get_env_bool("MAELSTROM_TEST_BOOL") is False

    def test_required_variable_missing(self, monkeypatch):
        monkeypatch.delenv("MAELSTROM_TEST_REQUIRED", raising=False)
        with pytest.raises(ConfigError, match="MAELSTROM_TEST_REQUIRED"):
            BaseConfig.get_env("MAELSTROM_TEST_REQUIRED", required=True)

    def test_invalid_environment(self):
        with pytest.raises(ConfigError, match="Invalid environment"):
            BaseConfig(ENVIRONMENT="moon")

    def test_invalid_log_level(self):
        with pytest.raises(ConfigError, match="Invalid log level"):
            BaseConfig(ENVIRONMENT="test", LOG_LEVEL="LOUD")

    def test_to_dict(self):
        config = BaseConfig(ENVIRONMENT="test", LOG_LEVEL="DEBUG")
        assert config.to_dict() == {"ENVIRONMENT": "test", "LOG_LEVEL": "DEBUG"}


class TestEngineConfig:
    """Engine tunables and their range checks."""

    def test_defaults(self):
        config = EngineConfig(ENVIRONMENT="test")
        assert config.LOG_WINDOW_SIZE > 0
        assert config.POOL_PAGE_SIZE > 0
        assert 0 < config.MAX_RESERVE_IMPACT_PCT <= 100
        assert config.DEFAULT_SLIPPAGE_PCT <= config.MAX_SLIPPAGE_PCT

    def test_rejects_zero_window(self):
        with pytest.raises(ConfigError, match="LOG_WINDOW_SIZE"):
            EngineConfig(ENVIRONMENT="test", LOG_WINDOW_SIZE=0)

    def test_rejects_impact_above_hundred(self):
        with pytest.raises(ConfigError, match="MAX_RESERVE_IMPACT_PCT"):
            EngineConfig(ENVIRONMENT="test", MAX_RESERVE_IMPACT_PCT=150)

    def test_rejects_slippage_above_maximum(self):
        with pytest.raises(ConfigError, match="DEFAULT_SLIPPAGE_PCT"):
            EngineConfig(
                ENVIRONMENT="test", DEFAULT_SLIPPAGE_PCT=Decimal("10"), MAX_SLIPPAGE_PCT=Decimal("5")
            )


class TestNetworkConfig:
    """Chain table lookups."""

    @pytest.fixture
    def networks(self):
        return NetworkConfig(ENVIRONMENT="test")

    def test_mainnets_share_contract(self, networks):
        for chain_id in (1, 61, 137, 56, 8453):
            assert networks.get_contract_address(chain_id) == MAINNET_CONTRACT

    def test_testnets_have_own_contracts(self, networks):
        assert networks.get_contract_address(63) == "0x39A04312F7640FA2B84833c96fC439D88207c9CD"
        assert networks.get_contract_address(5115) == "0x7B1E47C3C6b1eea13D06566f078DcBaEF5B63Ee5"
        assert networks.get_network(63).is_testnet
        assert networks.get_network(5115).is_testnet
        assert not networks.get_network(1).is_testnet

    def test_unsupported_chain(self, networks):
        with pytest.raises(ConfigError, match="Unsupported chain id: 999"):
            networks.get_network(999)

    def test_default_chain(self, networks):
        assert networks.get_network().chain_id == networks.DEFAULT_CHAIN_ID

    def test_token_list_slug(self, networks):
        assert networks.get_network(8453).token_list_slug == "base"
        assert networks.get_network(63).token_list_slug is None

    def test_missing_rpc_url(self):
        networks = NetworkConfig(ENVIRONMENT="test", BASE_RPC_URL="")
        with pytest.raises(ConfigError, match="No RPC URL"):
            networks.get_rpc_url(8453)


class TestConfigManager:
    """Aggregated configuration."""

    def test_sections(self):
        config = ConfigManager("test")
        assert config.environment == "test"
        assert isinstance(config.networks, NetworkConfig)
        assert isinstance(config.engine, EngineConfig)

    def test_network_summary(self):
        summary = ConfigManager("test").get_network_summary(8453)
        assert summary["chain_id"] == 8453
        assert summary["contract_address"] == MAINNET_CONTRACT
        assert summary["testnet"] is False
        assert summary["token_list_slug"] == "base"

    def test_invalid_environment_propagates(self):
        with pytest.raises(ConfigError):
            ConfigManager("moon")

    def test_singleton(self):
        first = reload_config("test")
        assert get_config() is first
        assert reload_config("test") is not first
