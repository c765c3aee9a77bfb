from typing import Optional, Tuple
import logging

from poolwatch.config.settings import FACTORY_ABI, FACTORY_ADDRESS
from poolwatch.sources.evm.client import RpcClientPool
from poolwatch.sources.evm.contract_calls import ZERO_ADDRESS, decode_single, encode_call, to_checksum

log = logging.getLogger(__name__)


def sort_tokens(token_a: str, token_b: str) -> Tuple[str, str]:
    """Factory ordering: numerically smaller address first."""
    if int(token_a, 16) < int(token_b, 16):
        return token_a, token_b
    return token_b, token_a


class PoolAddressResolver:
    def __init__(self, rpc: RpcClientPool, factory_address: str = FACTORY_ADDRESS):
        self.rpc = rpc
        self.factory_address = to_checksum(factory_address)

    async def get_pool_address(self, token_a: str, token_b: str, fee: int) -> Optional[str]:
        """
        Ask the factory for the (token_a, token_b, fee) pool.

        Returns None when the factory answers with the zero address. RPC
        errors propagate after the pool's retries are exhausted.
        """
        token0, token1 = sort_tokens(to_checksum(token_a), to_checksum(token_b))
        data = encode_call(FACTORY_ABI, "getPool", [token0, token1, fee])
        raw = await self.rpc.eth_call(self.factory_address, data)
        pool_address = decode_single(FACTORY_ABI, "getPool", raw)

        if pool_address.lower() == ZERO_ADDRESS:
            log.debug(f"No pool found for {token0}/{token1} with fee {fee}")
            return None
        return to_checksum(pool_address)
