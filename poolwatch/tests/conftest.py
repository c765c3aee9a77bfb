from typing import Dict, Set, Tuple

import pytest
from eth_abi import decode, encode

from poolwatch.config.settings import ERC20_DEC_ABI, FACTORY_ABI, FACTORY_ADDRESS, POOL_ABI
from poolwatch.config.tokens import KnownTokens
from poolwatch.services import build_services
from poolwatch.sources.evm.client import RpcClientPool
from poolwatch.sources.evm.contract_calls import ZERO_ADDRESS, encode_call

USDT = "0x55d398326f99059ff775485246999027b3197955"
WBNB = "0xbb4cdb9cbd36b01bd1cbaebf2de08d9173bc095c"
ALPHA = "0xc71b5f631354be6853efe9c3ab6b9590f8302e81"
BETA = "0xa0c56a8c0692bd10b3fa8f8ba79cf5332b7107f9"
RANDO = "0x1111111111111111111111111111111111111111"

Q96 = 1 << 96


def _selectors() -> Dict[str, str]:
    out = {}
    for abi, names in (
        (FACTORY_ABI, ["getPool"]),
        (POOL_ABI, ["slot0", "token0", "token1", "fee", "liquidity"]),
        (ERC20_DEC_ABI, ["symbol", "decimals"]),
    ):
        for name in names:
            out[encode_call(abi, name, [ZERO_ADDRESS, ZERO_ADDRESS, 0] if name == "getPool" else [])[:10]] = name
    return out


SELECTORS = _selectors()


def slot0_bytes(sqrt_price_x96: int, tick: int) -> bytes:
    return encode(
        ["uint160", "int24", "uint16", "uint16", "uint16", "uint32", "bool"],
        [sqrt_price_x96, tick, 0, 1, 1, 0, True],
    )


class FakeChain:
    """
    Just enough of a BSC node for eth_call: one factory, V3 pools and ERC20s.

    The factory only knows pools under the sorted (token0 < token1) key, the
    same way pools are deployed.
    """

    def __init__(self, factory: str = FACTORY_ADDRESS):
        self.factory = factory.lower()
        self.pools: Dict[Tuple[str, str, int], str] = {}
        self.pool_state: Dict[str, dict] = {}
        self.tokens: Dict[str, Tuple[str, int]] = {}
        self.failing: Set[str] = set()                       # addresses whose calls always fail
        self.failing_calls: Set[Tuple[str, str]] = set()     # (address, fn name)
        self.down_endpoints: Set[str] = set()
        self.calls = []                                      # (endpoint, address, fn name)
        self.block = 1000

    def add_token(self, address: str, symbol: str, decimals: int = 18):
        self.tokens[address.lower()] = (symbol, decimals)

    def add_pool(self, pool: str, token_a: str, token_b: str, fee: int,
                 sqrt_price_x96: int = Q96, tick: int = 0, liquidity: int = 10 ** 18):
        token0, token1 = sorted([token_a.lower(), token_b.lower()], key=lambda a: int(a, 16))
        self.pools[(token0, token1, fee)] = pool
        self.pool_state[pool.lower()] = {
            "token0": token0,
            "token1": token1,
            "fee": fee,
            "slot0": slot0_bytes(sqrt_price_x96, tick),
            "liquidity": liquidity,
        }

    def client(self, endpoint: str) -> "FakeClient":
        return FakeClient(self, endpoint)

    def calls_to(self, address: str):
        return [name for _, to, name in self.calls if to == address.lower()]

    async def block_number(self, endpoint: str) -> int:
        if endpoint in self.down_endpoints:
            raise ConnectionError(f"{endpoint} is down")
        return self.block

    async def call(self, endpoint: str, tx: dict) -> bytes:
        to = tx["to"].lower()
        data = tx["data"]
        name = SELECTORS[data[:10]]
        self.calls.append((endpoint, to, name))

        if endpoint in self.down_endpoints:
            raise ConnectionError(f"{endpoint} is down")
        if to in self.failing or (to, name) in self.failing_calls:
            raise ValueError("execution reverted")

        if to == self.factory and name == "getPool":
            a, b, fee = decode(["address", "address", "uint24"], bytes.fromhex(data[10:]))
            pool = self.pools.get((a.lower(), b.lower(), fee), ZERO_ADDRESS)
            return encode(["address"], [pool])

        if to in self.pool_state:
            state = self.pool_state[to]
            if name == "slot0":
                return state["slot0"]
            if name in ("token0", "token1"):
                return encode(["address"], [state[name]])
            if name == "fee":
                return encode(["uint24"], [state["fee"]])
            if name == "liquidity":
                return encode(["uint128"], [state["liquidity"]])

        if to in self.tokens:
            symbol, decimals = self.tokens[to]
            if name == "symbol":
                return encode(["string"], [symbol])
            if name == "decimals":
                return encode(["uint8"], [decimals])

        raise ValueError("execution reverted")


class FakeEth:
    def __init__(self, chain: FakeChain, endpoint: str):
        self.chain = chain
        self.endpoint = endpoint

    @property
    def block_number(self):
        return self.chain.block_number(self.endpoint)

    async def call(self, tx: dict) -> bytes:
        return await self.chain.call(self.endpoint, tx)


class FakeClient:
    def __init__(self, chain: FakeChain, endpoint: str):
        self.endpoint = endpoint
        self.eth = FakeEth(chain, endpoint)


@pytest.fixture
def chain():
    fake = FakeChain()
    fake.add_token(USDT, "USDT", 18)
    fake.add_token(WBNB, "WBNB", 18)
    fake.add_token(ALPHA, "ZKJ-onchain", 18)
    fake.add_token(BETA, "MERL-onchain", 6)
    return fake


@pytest.fixture
def rpc(chain):
    return RpcClientPool(
        ["http://node-a", "http://node-b"],
        client_factory=chain.client,
        max_tries=3,
        base_delay=0,
    )


@pytest.fixture
def known_tokens():
    return KnownTokens.from_dict({
        "quote_tokens": [
            {"symbol": "USDT", "address": USDT, "decimals": 18},
            {"symbol": "BNB", "address": WBNB, "decimals": 18},
        ],
        "whitelist": [
            {"symbol": "ZKJ", "address": ALPHA},
            {"symbol": "MERL", "address": BETA},
        ],
    })


@pytest.fixture
def services(rpc, known_tokens):
    return build_services(rpc=rpc, known_tokens=known_tokens, batch_delay=0)
