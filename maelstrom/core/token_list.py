"""
Community token lists and token search.

Lists are fetched from the StabilityNexus TokenList repository once per
chain id and kept for the lifetime of the ``TokenListCache`` instance; the
upstream lists only ever grow, so entries are never invalidated.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

import aiohttp
import ujson

from ..config import TESTNET_CHAIN_IDS, TOKEN_LIST_SLUGS
from ..ledger import MaelstromError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://raw.githubusercontent.com/StabilityNexus/TokenList/main"


class TokenListError(MaelstromError):
    """The token list could not be fetched or parsed."""
    pass


class TokenListUnavailable(TokenListError):
    """No token list exists for the chain; tokens must be entered by address."""
    pass


@dataclass(frozen=True)
class TokenListEntry:
    contract_address: str
    symbol: str
    name: str
    image: Optional[str] = None
    id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenListEntry":
        return cls(
            contract_address=str(data["contract_address"]),
            symbol=str(data.get("symbol") or ""),
            name=str(data.get("name") or ""),
            image=data.get("image"),
            id=data.get("id"),
        )


class TokenListCache:
    """
    Write-once cache of token lists keyed by chain id.

    Concurrent first requests for the same chain share one fetch.

    Args:
        base_url: Repository root holding ``<slug>-tokens.json`` files
        timeout: Total HTTP timeout in seconds
        session: Optional shared ``aiohttp.ClientSession``
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session
        self._lists: Dict[int, List[TokenListEntry]] = {}
        self._locks: Dict[int, asyncio.Lock] = {}
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def url_for(self, chain_id: int) -> str:
        """
        Raises:
            TokenListUnavailable: For testnets and chains without a list
        """
        if chain_id in TESTNET_CHAIN_IDS:
            raise TokenListUnavailable("Please manually input the token's contract address instead.")
        slug = TOKEN_LIST_SLUGS.get(chain_id)
        if slug is None:
            raise TokenListUnavailable(f"Chain ID {chain_id} is not supported yet")
        return f"{self.base_url}/{slug}-tokens.json"

    def cached(self, chain_id: int) -> Optional[List[TokenListEntry]]:
        return self._lists.get(chain_id)

    async def get(self, chain_id: int) -> List[TokenListEntry]:
        """Return the chain's token list, fetching it on first use."""
        if chain_id in self._lists:
            return self._lists[chain_id]

        lock = self._locks.setdefault(chain_id, asyncio.Lock())
        async with lock:
            if chain_id in self._lists:
                return self._lists[chain_id]
            url = self.url_for(chain_id)
            entries = await self._fetch(url)
            self._lists[chain_id] = entries
            self.logger.info(f"Cached {len(entries)} tokens for chain {chain_id}")
            return entries

    async def _fetch(self, url: str) -> List[TokenListEntry]:
        try:
            if self.session is not None:
                text = await self._get_text(self.session, url)
            else:
                async with aiohttp.ClientSession() as session:
                    text = await self._get_text(session, url)
        except aiohttp.ClientError as e:
            raise TokenListError(f"Failed to fetch tokens: {e}") from e
        except asyncio.TimeoutError as e:
            raise TokenListError(f"Failed to fetch tokens: timed out after {self.timeout}s") from e

        # raw.githubusercontent.com serves text/plain, so parse the body directly
        try:
            data = ujson.loads(text)
            return [TokenListEntry.from_dict(item) for item in data]
        except (ValueError, TypeError, KeyError) as e:
            raise TokenListError(f"Malformed token list at {url}: {e}") from e

    async def _get_text(self, session: aiohttp.ClientSession, url: str) -> str:
        async with session.get(
            url,
            headers={"Accept": "application/json"},
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        ) as response:
            if response.status != 200:
                raise TokenListError(f"Failed to fetch tokens: HTTP {response.status} {response.reason}")
            return await response.text()


@dataclass(frozen=True)
class TokenSearchPage:
    tokens: List[TokenListEntry]
    page: int
    has_more: bool


class TokenSearchIndex:
    """
    Prefix search over a token list.

    Matches, in order: exact symbol, symbol prefix, name prefix, then
    address substring for queries of two or more characters. All matching
    is case-insensitive.
    """

    def __init__(self, tokens: Iterable[TokenListEntry], page_size: int = 50):
        if page_size <= 0:
            raise ValueError(f"Page size must be positive, got: {page_size}")
        self.tokens = list(tokens)
        self.page_size = page_size
        self.by_symbol: Dict[str, TokenListEntry] = {}
        self.by_symbol_prefix: Dict[str, List[TokenListEntry]] = {}
        self.by_name_prefix: Dict[str, List[TokenListEntry]] = {}
        self.by_address: Dict[str, TokenListEntry] = {}
        for token in self.tokens:
            self._index(token)

    def _index(self, token: TokenListEntry):
        symbol = token.symbol.lower()
        name = token.name.lower()
        self.by_symbol[symbol] = token
        for i in range(1, len(symbol) + 1):
            self.by_symbol_prefix.setdefault(symbol[:i], []).append(token)
        for i in range(1, len(name) + 1):
            self.by_name_prefix.setdefault(name[:i], []).append(token)
        self.by_address[token.contract_address.lower()] = token

    def matches(self, query: str) -> List[TokenListEntry]:
        query = query.strip().lower()
        if not query:
            return list(self.tokens)

        results: Dict[int, TokenListEntry] = {}

        def add(token: TokenListEntry):
            results.setdefault(id(token), token)

        exact = self.by_symbol.get(query)
        if exact is not None:
            add(exact)
        for token in self.by_symbol_prefix.get(query, []):
            add(token)
        for token in self.by_name_prefix.get(query, []):
            add(token)
        if len(query) >= 2:
            for address, token in self.by_address.items():
                if query in address:
                    add(token)
        return list(results.values())

    def search(self, query: str, page: int = 1) -> TokenSearchPage:
        """Matches for ``query`` up to and including ``page``."""
        if page < 1:
            raise ValueError(f"Page must be >= 1, got: {page}")
        matches = self.matches(query)
        limit = page * self.page_size
        return TokenSearchPage(tokens=matches[:limit], page=page, has_more=len(matches) > limit)
