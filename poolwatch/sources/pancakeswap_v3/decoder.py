import asyncio
import dataclasses
import time
import logging
from typing import Optional, Tuple, Union

from hexbytes import HexBytes

from poolwatch.config.settings import POOL_ABI
from poolwatch.config.tokens import KnownTokens
from poolwatch.sources.evm.client import RpcClientPool
from poolwatch.sources.evm.contract_calls import decode_single, encode_call, to_checksum
from poolwatch.sources.evm.token_meta import TokenMetadataResolver
from poolwatch.storage.models.pool import PoolRecord

logger = logging.getLogger(__name__)

Q192 = 1 << 192
PRICE_SCALE = 10 ** 6

# tick is an int24 inside the packed slot0 struct
TICK_MODULUS = 1 << 24
TICK_MAX = (1 << 23) - 1

WORD_BYTES = 32
SLOT0_MIN_BYTES = 2 * WORD_BYTES


def decode_tick(word: int) -> int:
    """Reinterpret the low 24 bits of an ABI word as a two's-complement tick."""
    raw = word & (TICK_MODULUS - 1)
    if raw > TICK_MAX:
        return raw - TICK_MODULUS
    return raw


def decode_slot0(raw: Union[bytes, str]) -> Tuple[int, int]:
    """
    Decode raw slot0() return data into (sqrtPriceX96, tick).

    Word 0 is sqrtPriceX96 (unsigned), word 1 carries the tick. Anything we
    can't parse yields (0, 0) instead of raising.
    """
    try:
        data = bytes(HexBytes(raw))
    except (TypeError, ValueError) as e:
        logger.warning(f"Invalid slot0 payload {raw!r}: {e}")
        return 0, 0

    if len(data) < SLOT0_MIN_BYTES:
        logger.warning(f"Invalid slot0 result ({len(data)} bytes): 0x{data.hex()}")
        return 0, 0

    sqrt_price_x96 = int.from_bytes(data[:WORD_BYTES], "big")
    tick = decode_tick(int.from_bytes(data[WORD_BYTES:SLOT0_MIN_BYTES], "big"))
    return sqrt_price_x96, tick


def compute_price(sqrt_price_x96: int, decimals0: int, decimals1: int) -> float:
    """
    token1 per token0 from sqrtPriceX96, adjusted for token decimals.

    The square stays in integer math (scaled by 1e6) and is only turned into
    a float at the end.
    """
    if sqrt_price_x96 == 0:
        return 0.0

    raw_price = (sqrt_price_x96 * sqrt_price_x96 * PRICE_SCALE) // Q192
    price = raw_price / PRICE_SCALE

    if decimals0 != decimals1:
        price = price / (10 ** (decimals1 - decimals0))
    return price


class PoolDataDecoder:
    """Builds a full PoolRecord for one pool address from on-chain reads."""

    def __init__(self, rpc: RpcClientPool, tokens: TokenMetadataResolver, known_tokens: KnownTokens):
        self.rpc = rpc
        self.tokens = tokens
        self.known_tokens = known_tokens

    async def _read(self, pool_address: str, name: str):
        raw = await self.rpc.eth_call(pool_address, encode_call(POOL_ABI, name))
        return decode_single(POOL_ABI, name, raw)

    async def _read_slot0(self, pool_address: str) -> Tuple[int, int]:
        try:
            raw = await self.rpc.eth_call(pool_address, encode_call(POOL_ABI, "slot0"))
        except Exception as e:
            logger.warning(f"Error getting slot0 data for {pool_address}: {e}")
            return 0, 0
        return decode_slot0(raw)

    async def _read_liquidity(self, pool_address: str) -> int:
        try:
            return int(await self._read(pool_address, "liquidity"))
        except Exception as e:
            logger.warning(f"Error getting liquidity for {pool_address}: {e}")
            return 0

    async def fetch(self, pool_address: str) -> Optional[PoolRecord]:
        try:
            address = to_checksum(pool_address)
        except (TypeError, ValueError) as e:
            logger.error(f"Invalid pool address {pool_address!r}: {e}")
            return None

        logger.debug(f"Getting pool data for {address}...")
        try:
            token0, token1, fee = await asyncio.gather(
                self._read(address, "token0"),
                self._read(address, "token1"),
                self._read(address, "fee"),
            )
        except Exception as e:
            logger.error(f"Error getting basic pool info for {address}: {e}")
            return None

        token0, token1 = to_checksum(token0), to_checksum(token1)
        info0, info1 = await asyncio.gather(
            self.tokens.resolve(token0),
            self.tokens.resolve(token1),
        )

        sqrt_price_x96, tick = await self._read_slot0(address)
        liquidity = await self._read_liquidity(address)

        try:
            price = compute_price(sqrt_price_x96, info0.decimals, info1.decimals)
        except (OverflowError, ZeroDivisionError) as e:
            logger.error(
                f"Error calculating price for {address} "
                f"(sqrtPriceX96={sqrt_price_x96}, decimals={info0.decimals}/{info1.decimals}): {e}"
            )
            price = 0.0

        # well-known names take precedence over whatever the token reports
        info0 = dataclasses.replace(info0, symbol=self.known_tokens.symbol_for(token0) or info0.symbol)
        info1 = dataclasses.replace(info1, symbol=self.known_tokens.symbol_for(token1) or info1.symbol)

        record = PoolRecord(
            address=address,
            token0=info0,
            token1=info1,
            fee_tier=int(fee),
            liquidity=liquidity,
            sqrt_price_x96=sqrt_price_x96,
            tick=tick,
            price=price,
            last_update=int(time.time() * 1000),
        )
        logger.debug(f"Final pool data: {record.to_dict()}")
        return record
