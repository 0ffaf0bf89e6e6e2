"""
Pytest configuration for processor tests.
"""

from unittest.mock import AsyncMock, Mock

import pytest

from ...conftest import LP_ADDRESS, contract_call
from ...fetchers import EventLogAggregator
from ...models import Token
from ..pool_analytics import PoolAnalytics

E18 = 10 ** 18


def paged_call(pages):
    """Mock a contract function whose result depends on its (start, end) arguments."""
    def build(*args):
        call = Mock()
        result = pages[args[-2:]]
        if isinstance(result, Exception):
            call.call = AsyncMock(side_effect=result)
        else:
            call.call = AsyncMock(return_value=result)
        return call

    return Mock(side_effect=build)


@pytest.fixture
def pool_chain(chain, reader):
    """Chain with one reference pool: 100 base / 50 token, buy 2, sell 1."""
    chain.add_blocks(2000, seconds_per_block=60)
    functions = chain.pool_contract.functions
    functions.reserves = contract_call((100 * E18, 50 * E18))
    functions.priceBuy = contract_call(2 * E18)
    functions.priceSell = contract_call(1 * E18)
    functions.tokenPerETHRatio = contract_call(E18 // 2)
    functions.pools = contract_call((2 * E18, E18, 1_700_000_000) + (0,) * 10)
    functions.poolToken = contract_call(LP_ADDRESS)
    functions.getPoolFeeEventsCount = contract_call(2)
    functions.getPoolFeeList = contract_call([(10, 0), (20, 864_000)])

    lp_contract = chain.add_token(Token(LP_ADDRESS, "MLP", "Maelstrom LP", 18))
    lp_contract.functions.totalSupply = contract_call(1000)
    lp_contract.functions.balanceOf = contract_call(250)
    return chain


@pytest.fixture
def analytics(pool_chain, reader):
    return PoolAnalytics(reader, EventLogAggregator(reader, window_span=999))
