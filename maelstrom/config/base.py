"""
Base configuration management for maelstrom.

Every config class reads its values from the process environment (optionally
seeded from a ``.env`` file) at import time, so a fresh ``ConfigManager`` sees
whatever the environment held when the package was loaded.
"""

import os
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

VALID_ENVIRONMENTS = ("local", "dev", "test", "staging", "production")


class ConfigError(Exception):
    """Raised when configuration is missing, malformed or unsupported."""
    pass


@dataclass
class BaseConfig:
    """Base configuration class with environment variable helpers."""

    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "local")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    def __post_init__(self):
        self._setup_logging()
        self._validate_config()

    def _setup_logging(self):
        """Configure root logging once for the process."""
        level = getattr(logging, self.LOG_LEVEL.upper(), None)
        if not isinstance(level, int):
            raise ConfigError(f"Invalid log level: {self.LOG_LEVEL}")
        logging.basicConfig(
            level=level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    def _validate_config(self):
        if self.ENVIRONMENT not in VALID_ENVIRONMENTS:
            raise ConfigError(f"Invalid environment: {self.ENVIRONMENT}")

    @staticmethod
    def get_env(key: str, default: Optional[str] = None, required: bool = False) -> Optional[str]:
        """
        Read an environment variable.

        Args:
            key: Environment variable name
            default: Value used when the variable is unset
            required: Raise instead of returning None when unset

        Raises:
            ConfigError: If a required variable is missing
        """
        value = os.getenv(key, default)
        if required and value is None:
            raise ConfigError(f"Required environment variable '{key}' is not set")
        return value

    @staticmethod
    def get_env_int(key: str, default: Optional[int] = None, required: bool = False) -> int:
        value = BaseConfig.get_env(key, str(default) if default is not None else None, required)
        try:
            return int(value)
        except (ValueError, TypeError):
            raise ConfigError(f"Environment variable '{key}' must be an integer, got: {value}")

    @staticmethod
    def get_env_float(key: str, default: Optional[float] = None, required: bool = False) -> float:
        value = BaseConfig.get_env(key, str(default) if default is not None else None, required)
        try:
            return float(value)
        except (ValueError, TypeError):
            raise ConfigError(f"Environment variable '{key}' must be a float, got: {value}")

    @staticmethod
    def get_env_decimal(key: str, default: Optional[str] = None, required: bool = False) -> Decimal:
        """Read a percentage or ratio without going through float."""
        value = BaseConfig.get_env(key, default, required)
        try:
            return Decimal(value)
        except (InvalidOperation, TypeError):
            raise ConfigError(f"Environment variable '{key}' must be a decimal, got: {value}")

    @staticmethod
    def get_env_bool(key: str, default: bool = False) -> bool:
        value = BaseConfig.get_env(key, str(default))
        return value.lower() in ("true", "1", "yes", "on")

    def to_dict(self) -> Dict[str, Any]:
        return {
            field: getattr(self, field)
            for field in self.__dataclass_fields__
            if not field.startswith('_')
        }
