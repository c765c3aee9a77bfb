from typing import Any, Awaitable, Callable, List, Optional, Sequence
import logging

import aiohttp
from web3 import AsyncWeb3, AsyncHTTPProvider

from poolwatch.config.settings import RPC_MAX_RETRIES, RPC_RETRY_BASE_DELAY, RPC_TIMEOUT
from poolwatch.sources.evm.rate_limit import RateLimiter
from poolwatch.sources.evm.retry import retry_call

logger = logging.getLogger(__name__)


class NoRpcEndpointsError(RuntimeError):
    pass


def create_web3_client(rpc_url: str, timeout: float = RPC_TIMEOUT) -> AsyncWeb3:
    logger.info(f"Connecting to RPC: {rpc_url}")
    provider = AsyncHTTPProvider(
        rpc_url,
        request_kwargs={"timeout": aiohttp.ClientTimeout(total=timeout)},
    )
    return AsyncWeb3(provider)


class RpcClientPool:
    """
    Rotating set of JSON-RPC endpoints.

    One endpoint is active at a time; `advance()` moves to the next one
    (wrapping around) and probes it. Every contract read goes through
    `call_with_retry`, which fails over between attempts.
    """

    def __init__(
        self,
        endpoints: Sequence[str],
        client_factory: Callable[[str], Any] = create_web3_client,
        max_tries: int = RPC_MAX_RETRIES,
        base_delay: float = RPC_RETRY_BASE_DELAY,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        self.endpoints: List[str] = list(endpoints)
        if not self.endpoints:
            raise NoRpcEndpointsError(
                "No RPC endpoints configured. Set at least BSC_RPC_NODE_1 (or RPC_NODES) in .env"
            )
        self.client_factory = client_factory
        self.max_tries = max_tries
        self.base_delay = base_delay
        self.rate_limiter = rate_limiter
        self.index = 0
        self._client = None

    @property
    def current_endpoint(self) -> str:
        return self.endpoints[self.index]

    def current_client(self):
        if self._client is None:
            self._client = self.client_factory(self.current_endpoint)
        return self._client

    async def advance(self) -> bool:
        """Switch to the next endpoint and check it answers eth_blockNumber."""
        self.index = (self.index + 1) % len(self.endpoints)
        logger.info(f"🔄 Switching to RPC node: {self.current_endpoint}")
        self._client = self.client_factory(self.current_endpoint)
        try:
            block = await self._client.eth.block_number
        except Exception as e:
            logger.error(f"❌ Failed to switch node {self.current_endpoint}: {e}")
            return False
        logger.info(f"✅ Connected to {self.current_endpoint} (block {block})")
        return True

    async def call_with_retry(self, call: Callable[[], Awaitable[Any]], max_tries: Optional[int] = None) -> Any:
        return await retry_call(
            call,
            max_tries=max_tries or self.max_tries,
            base_delay=self.base_delay,
            before_retry=self.advance,
        )

    async def eth_call(self, to: str, data: str, max_tries: Optional[int] = None) -> bytes:
        """Raw eth_call against whatever endpoint is active at attempt time."""
        async def _call():
            if self.rate_limiter is not None:
                await self.rate_limiter.acquire()
            return await self.current_client().eth.call({"to": to, "data": data})

        return await self.call_with_retry(_call, max_tries)
