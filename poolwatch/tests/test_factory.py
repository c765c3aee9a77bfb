import pytest

from poolwatch.sources.pancakeswap_v3.factory import PoolAddressResolver, sort_tokens
from conftest import ALPHA, RANDO, USDT, WBNB

POOL = "0x2222222222222222222222222222222222222222"


@pytest.fixture
def resolver(rpc):
    return PoolAddressResolver(rpc)


def test_sort_tokens_orders_numerically():
    assert sort_tokens(USDT, WBNB) == (USDT, WBNB)
    assert sort_tokens(WBNB, USDT) == (USDT, WBNB)
    assert sort_tokens(USDT.upper().replace("0X", "0x"), RANDO) == (RANDO, USDT.upper().replace("0X", "0x"))


@pytest.mark.asyncio
async def test_resolves_same_pool_in_either_order(resolver, chain):
    chain.add_pool(POOL, ALPHA, USDT, 2500)

    forward = await resolver.get_pool_address(ALPHA, USDT, 2500)
    backward = await resolver.get_pool_address(USDT, ALPHA, 2500)

    assert forward is not None
    assert forward == backward
    assert forward.lower() == POOL


@pytest.mark.asyncio
async def test_zero_address_means_no_pool(resolver, chain):
    chain.add_pool(POOL, ALPHA, USDT, 2500)
    assert await resolver.get_pool_address(ALPHA, USDT, 500) is None


@pytest.mark.asyncio
async def test_rpc_failure_propagates_after_retries(resolver, chain):
    chain.failing.add(chain.factory)
    with pytest.raises(ValueError):
        await resolver.get_pool_address(ALPHA, USDT, 2500)
    assert len(chain.calls) == 3
