# Composition root: wires the RPC pool, resolvers, cache and refresher.
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from poolwatch.config.settings import (
    BATCH_DELAY,
    BATCH_SIZE,
    CACHE_DURATION,
    FACTORY_ADDRESS,
    FEE_TIERS,
    RPC_RATE_LIMIT,
    RPC_RATE_WINDOW,
    TOKENS_FILE,
    load_rpc_nodes,
)
from poolwatch.config.tokens import KnownTokens
from poolwatch.scheduler.refresher import PoolRefresher
from poolwatch.sources.evm.client import RpcClientPool, create_web3_client
from poolwatch.sources.evm.rate_limit import RateLimiter
from poolwatch.sources.evm.token_meta import TokenMetadataResolver
from poolwatch.sources.pancakeswap_v3.decoder import PoolDataDecoder
from poolwatch.sources.pancakeswap_v3.factory import PoolAddressResolver
from poolwatch.storage.cache import PoolCache

log = logging.getLogger(__name__)


@dataclass
class Services:
    rpc: RpcClientPool
    known_tokens: KnownTokens
    cache: PoolCache
    decoder: PoolDataDecoder
    refresher: PoolRefresher
    cache_duration: float = CACHE_DURATION


def build_rpc_pool(
    rpc_nodes: Optional[Sequence[str]] = None,
    client_factory: Callable = create_web3_client,
) -> RpcClientPool:
    nodes = load_rpc_nodes() if rpc_nodes is None else list(rpc_nodes)
    limiter = RateLimiter(RPC_RATE_LIMIT, RPC_RATE_WINDOW) if RPC_RATE_LIMIT > 0 else None
    log.info(f"Configured {len(nodes)} RPC node(s)")
    return RpcClientPool(nodes, client_factory=client_factory, rate_limiter=limiter)


def build_services(
    rpc: Optional[RpcClientPool] = None,
    known_tokens: Optional[KnownTokens] = None,
    cache: Optional[PoolCache] = None,
    factory_address: str = FACTORY_ADDRESS,
    fee_tiers: Sequence[int] = FEE_TIERS,
    batch_size: int = BATCH_SIZE,
    batch_delay: float = BATCH_DELAY,
    cache_duration: float = CACHE_DURATION,
) -> Services:
    """Raises NoRpcEndpointsError when no RPC node is configured."""
    rpc = rpc if rpc is not None else build_rpc_pool()
    known_tokens = known_tokens if known_tokens is not None else KnownTokens.load(TOKENS_FILE)
    cache = cache if cache is not None else PoolCache()

    decoder = PoolDataDecoder(rpc, TokenMetadataResolver(rpc, known_tokens), known_tokens)
    refresher = PoolRefresher(
        cache=cache,
        resolver=PoolAddressResolver(rpc, factory_address),
        decoder=decoder,
        whitelist=known_tokens.whitelist_addresses,
        quote_tokens=known_tokens.quote_addresses,
        fee_tiers=fee_tiers,
        batch_size=batch_size,
        batch_delay=batch_delay,
    )
    return Services(
        rpc=rpc,
        known_tokens=known_tokens,
        cache=cache,
        decoder=decoder,
        refresher=refresher,
        cache_duration=cache_duration,
    )
