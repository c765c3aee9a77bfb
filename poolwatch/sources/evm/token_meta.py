import asyncio
import logging
from typing import Dict, Optional

from poolwatch.config.settings import ERC20_DEC_ABI
from poolwatch.config.tokens import KnownTokens
from poolwatch.sources.evm.client import RpcClientPool
from poolwatch.sources.evm.contract_calls import decode_single, encode_call, to_checksum
from poolwatch.storage.models.pool import TokenInfo

log = logging.getLogger(__name__)

DEFAULT_SYMBOL = "UNKNOWN"
DEFAULT_DECIMALS = 18


class TokenMetadataResolver:
    """
    symbol/decimals for ERC20-like tokens.

    Known tokens with decimals never hit the node. Otherwise symbol() and
    decimals() are fetched independently; each falls back to its default on
    failure so a broken token never aborts pool processing.
    """

    def __init__(self, rpc: RpcClientPool, known_tokens: KnownTokens):
        self.rpc = rpc
        self.known_tokens = known_tokens
        self._resolved: Dict[str, TokenInfo] = {}

    async def _fetch_symbol(self, address: str) -> Optional[str]:
        try:
            raw = await self.rpc.eth_call(address, encode_call(ERC20_DEC_ABI, "symbol"))
            symbol = decode_single(ERC20_DEC_ABI, "symbol", raw)
        except Exception as e:
            log.warning(f"Error getting token symbol for {address}: {e}")
            return None
        return symbol or None

    async def _fetch_decimals(self, address: str) -> Optional[int]:
        try:
            raw = await self.rpc.eth_call(address, encode_call(ERC20_DEC_ABI, "decimals"))
            decimals = int(decode_single(ERC20_DEC_ABI, "decimals", raw))
        except Exception as e:
            log.warning(f"Error getting token decimals for {address}: {e}")
            return None
        return decimals

    async def resolve(self, address: str) -> TokenInfo:
        key = address.lower()
        if key in self._resolved:
            return self._resolved[key]

        known = self.known_tokens.lookup(address)
        if known is not None and known.decimals is not None:
            return TokenInfo(address=address, symbol=known.symbol, decimals=known.decimals)

        checksum = to_checksum(address)
        if known is not None:
            symbol = known.symbol
            decimals = await self._fetch_decimals(checksum)
        else:
            symbol, decimals = await asyncio.gather(
                self._fetch_symbol(checksum),
                self._fetch_decimals(checksum),
            )

        info = TokenInfo(
            address=address,
            symbol=symbol or DEFAULT_SYMBOL,
            decimals=DEFAULT_DECIMALS if decimals is None else decimals,
        )
        if symbol is not None and decimals is not None:
            self._resolved[key] = info
        return info
