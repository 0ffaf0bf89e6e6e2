"""
Tunables for event scanning, pool paging and trade validation.
"""

from dataclasses import dataclass
from decimal import Decimal

from .base import BaseConfig, ConfigError


@dataclass
class EngineConfig(BaseConfig):
    """Engine-wide limits; all overridable through the environment."""

    # Block-range scanning
    LOG_WINDOW_SIZE: int = BaseConfig.get_env_int("LOG_WINDOW_SIZE", 999)
    PAGE_DELAY_SECONDS: float = BaseConfig.get_env_float("PAGE_DELAY_SECONDS", 0.1)
    VOLUME_LOOKBACK_MS: int = BaseConfig.get_env_int("VOLUME_LOOKBACK_MS", 24 * 60 * 60 * 1000)

    # Pool listing
    POOL_PAGE_SIZE: int = BaseConfig.get_env_int("POOL_PAGE_SIZE", 10)
    FEE_SAMPLE_SIZE: int = BaseConfig.get_env_int("FEE_SAMPLE_SIZE", 10)

    # Trade validation
    MAX_RESERVE_IMPACT_PCT: int = BaseConfig.get_env_int("MAX_RESERVE_IMPACT_PCT", 10)
    DEFAULT_SLIPPAGE_PCT: Decimal = BaseConfig.get_env_decimal("DEFAULT_SLIPPAGE_PCT", "0.5")
    MAX_SLIPPAGE_PCT: Decimal = BaseConfig.get_env_decimal("MAX_SLIPPAGE_PCT", "5")
    ZERO_SLIPPAGE_MODE: bool = BaseConfig.get_env_bool("ZERO_SLIPPAGE_MODE", True)

    # Token lists
    TOKEN_LIST_BASE_URL: str = BaseConfig.get_env(
        "TOKEN_LIST_BASE_URL", "https://raw.githubusercontent.com/StabilityNexus/TokenList/main"
    )
    HTTP_TIMEOUT_SECONDS: float = BaseConfig.get_env_float("HTTP_TIMEOUT_SECONDS", 10.0)
    TOKEN_SEARCH_PAGE_SIZE: int = BaseConfig.get_env_int("TOKEN_SEARCH_PAGE_SIZE", 50)

    def _validate_config(self):
        super()._validate_config()
        if self.LOG_WINDOW_SIZE <= 0:
            raise ConfigError(f"LOG_WINDOW_SIZE must be positive, got: {self.LOG_WINDOW_SIZE}")
        if self.POOL_PAGE_SIZE <= 0:
            raise ConfigError(f"POOL_PAGE_SIZE must be positive, got: {self.POOL_PAGE_SIZE}")
        if not 0 < self.MAX_RESERVE_IMPACT_PCT <= 100:
            raise ConfigError(
                f"MAX_RESERVE_IMPACT_PCT must be in (0, 100], got: {self.MAX_RESERVE_IMPACT_PCT}"
            )
        if not Decimal(0) <= self.DEFAULT_SLIPPAGE_PCT <= self.MAX_SLIPPAGE_PCT:
            raise ConfigError(
                f"DEFAULT_SLIPPAGE_PCT must be between 0 and {self.MAX_SLIPPAGE_PCT}, "
                f"got: {self.DEFAULT_SLIPPAGE_PCT}"
            )
