"""
Token descriptors.
"""

from dataclasses import dataclass
from typing import Optional

from eth_utils import to_checksum_address

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


@dataclass(frozen=True)
class Token:
    """ERC-20 metadata; identity is the checksummed address."""

    address: str
    symbol: str
    name: str
    decimals: int

    def __post_init__(self):
        object.__setattr__(self, "address", to_checksum_address(self.address))

    @property
    def is_native(self) -> bool:
        return self.address == ZERO_ADDRESS

    @property
    def unit(self) -> int:
        """One whole token in minimal denomination."""
        return 10 ** self.decimals

    def __eq__(self, other) -> bool:
        if not isinstance(other, Token):
            return NotImplemented
        return self.address == other.address

    def __hash__(self) -> int:
        return hash(self.address)


@dataclass(frozen=True, eq=False)
class LiquidityPoolToken(Token):
    """Claim-share token of one pool plus the holder's balance."""

    total_supply: int = 0
    balance: int = 0


NATIVE_TOKEN = Token(address=ZERO_ADDRESS, symbol="ETH", name="Ether", decimals=18)


def native_token_for(symbol: Optional[str] = None, name: Optional[str] = None, decimals: int = 18) -> Token:
    """Native currency of a chain, represented at the zero address."""
    if symbol is None:
        return NATIVE_TOKEN
    return Token(address=ZERO_ADDRESS, symbol=symbol, name=name or symbol, decimals=decimals)
