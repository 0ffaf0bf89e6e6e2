"""
Shared plumbing for talking to the pool contract and token contracts.

Loads ABIs from the ``contracts`` directory beside this module and wraps
every failing read with the name of the operation that issued it.
"""

import logging
import os
from functools import lru_cache
from typing import Any, Awaitable, Dict, List, Tuple

import ujson
from eth_utils import is_address, to_checksum_address
from hexbytes import HexBytes
from web3 import AsyncWeb3

from ..models import NATIVE_TOKEN, Token
from .errors import ErrorHandler, LedgerReadError, MaelstromError

logger = logging.getLogger(__name__)

CONTRACTS_DIR = os.path.join(os.path.dirname(__file__), "contracts")


@lru_cache(maxsize=None)
def load_contract_abi(contract_name: str) -> Tuple[Dict[str, Any], ...]:
    """
    Load a contract ABI shipped with the package.

    Args:
        contract_name: File stem under ``contracts/``, e.g. ``Maelstrom``

    Raises:
        MaelstromError: If the file is missing or malformed
    """
    contract_path = os.path.join(CONTRACTS_DIR, f"{contract_name}.json")
    try:
        with open(contract_path, "r") as f:
            contract_data = ujson.load(f)
        return tuple(contract_data["abi"])
    except (FileNotFoundError, KeyError, ValueError) as e:
        raise MaelstromError(f"Failed to load contract ABI {contract_name}: {e}") from e


def checksum(address: str) -> str:
    """Validate and checksum an address."""
    if not isinstance(address, str) or not is_address(address):
        raise ValueError(f"Invalid address: {address}")
    return to_checksum_address(address)


def to_hex_str(value: Any) -> str:
    """Normalise a hash (bytes, HexBytes or str) to a 0x-prefixed string."""
    hex_value = HexBytes(value).hex()
    return hex_value if hex_value.startswith("0x") else f"0x{hex_value}"


def validate_range(start: int, end: int, count: int) -> None:
    """Inclusive index range must satisfy ``0 <= start <= end < count``."""
    if start < 0 or end < start or end >= count:
        raise ValueError(f"Invalid range [{start}, {end}] for {count} entries")


class LedgerClient:
    """
    Base for components that hold a web3 connection and the pool contract.

    Args:
        web3: Connected ``AsyncWeb3`` instance
        contract_address: Deployed pool contract for the active network
        native_token: Descriptor used for the zero address
    """

    def __init__(self, web3: AsyncWeb3, contract_address: str, native_token: Token = NATIVE_TOKEN):
        self.web3 = web3
        self.contract_address = checksum(contract_address)
        self.native_token = native_token
        self.logger = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")
        self.error_handler = ErrorHandler(self.logger)
        self.contract = web3.eth.contract(address=self.contract_address, abi=list(load_contract_abi("Maelstrom")))
        self._erc20_contracts: Dict[str, Any] = {}

    def erc20(self, address: str):
        """Contract handle for a standard token, cached per address."""
        address = checksum(address)
        if address not in self._erc20_contracts:
            self._erc20_contracts[address] = self.web3.eth.contract(
                address=address, abi=list(load_contract_abi("ERC20"))
            )
        return self._erc20_contracts[address]

    async def _read(self, operation: str, awaitable: Awaitable[Any], **context) -> Any:
        """Await a read, wrapping transport or contract failures once."""
        try:
            return await awaitable
        except MaelstromError:
            raise
        except Exception as e:
            self.error_handler.log_error(e, {"operation": operation, **context})
            raise LedgerReadError(operation, e) from e

    def _validate_addresses(self, addresses: List[str]) -> List[str]:
        return [checksum(address) for address in addresses]
