import asyncio
import time
import logging
from dataclasses import dataclass, asdict
from typing import List, NamedTuple, Optional, Sequence

from poolwatch.config.settings import BATCH_DELAY, BATCH_SIZE, FEE_TIERS
from poolwatch.sources.pancakeswap_v3.decoder import PoolDataDecoder
from poolwatch.sources.pancakeswap_v3.factory import PoolAddressResolver
from poolwatch.storage.cache import PoolCache

log = logging.getLogger(__name__)


class Combination(NamedTuple):
    token0: str
    token1: str
    fee: int


@dataclass
class RefreshSummary:
    combinations: int = 0
    found: int = 0
    cached: int = 0
    evicted: int = 0
    errors: int = 0
    duration: float = 0.0
    finished_at: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


def build_combinations(
    whitelist: Sequence[str],
    quote_tokens: Sequence[str],
    fee_tiers: Sequence[int] = FEE_TIERS,
) -> List[Combination]:
    """Every whitelisted token x every quote token x every fee tier, minus self-pairs."""
    combinations = []
    for token0 in whitelist:
        for token1 in quote_tokens:
            if token0.lower() == token1.lower():
                continue
            for fee in fee_tiers:
                combinations.append(Combination(token0, token1, fee))
    return combinations


class PoolRefresher:
    """
    Rediscovers pools and rewrites the cache.

    Combinations run in batches of `batch_size` concurrently, with
    `batch_delay` seconds between batches. Only one refresh runs at a time;
    a second call while one is in flight is skipped.
    """

    def __init__(
        self,
        cache: PoolCache,
        resolver: PoolAddressResolver,
        decoder: PoolDataDecoder,
        whitelist: Sequence[str],
        quote_tokens: Sequence[str],
        fee_tiers: Sequence[int] = FEE_TIERS,
        batch_size: int = BATCH_SIZE,
        batch_delay: float = BATCH_DELAY,
    ):
        self.cache = cache
        self.resolver = resolver
        self.decoder = decoder
        self.combinations = build_combinations(whitelist, quote_tokens, fee_tiers)
        self.batch_size = max(1, batch_size)
        self.batch_delay = batch_delay
        self.last_summary: Optional[RefreshSummary] = None
        self._lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    async def _process(self, combo: Combination, timestamp: float, summary: RefreshSummary) -> None:
        try:
            log.debug(f"Checking pool: {combo.token0}/{combo.token1} with fee {combo.fee}")
            pool_address = await self.resolver.get_pool_address(combo.token0, combo.token1, combo.fee)
            if pool_address is None:
                return
            summary.found += 1

            record = await self.decoder.fetch(pool_address)
            if record is None:
                log.warning(f"Skipping pool {pool_address}: failed data fetch")
                return
            if not record.has_liquidity:
                if self.cache.discard(pool_address):
                    summary.evicted += 1
                log.debug(f"Skipping pool {pool_address}: zero liquidity")
                return

            self.cache.set(record, timestamp=timestamp)
            summary.cached += 1
            log.info(f"Added pool: {pool_address} - {record.token0.symbol}/{record.token1.symbol} ({combo.fee})")
        except Exception:
            summary.errors += 1
            log.exception(f"Error processing pool combination {combo.token0}/{combo.token1} ({combo.fee})")

    async def refresh(self) -> Optional[RefreshSummary]:
        if self._lock.locked():
            log.info("🔒 Refresh already in progress; skipping.")
            return None

        async with self._lock:
            start = time.time()
            summary = RefreshSummary(combinations=len(self.combinations))
            log.info(f"🔄 Starting refresh of {summary.combinations} pool combinations…")

            for i in range(0, len(self.combinations), self.batch_size):
                batch = self.combinations[i:i + self.batch_size]
                await asyncio.gather(*(self._process(combo, start, summary) for combo in batch))
                if i + self.batch_size < len(self.combinations):
                    await asyncio.sleep(self.batch_delay)

            summary.finished_at = time.time()
            summary.duration = summary.finished_at - start
            self.last_summary = summary
            log.info(
                f"✅ Refresh done in {summary.duration:.2f}s: {summary.found} pools found, "
                f"{summary.cached} cached, {summary.evicted} evicted, {summary.errors} errors; "
                f"{len(self.cache)} unique pools in cache"
            )
            return summary

    async def run_forever(self, interval: float) -> None:
        """Refresh now, then every `interval` seconds until cancelled."""
        while True:
            try:
                await self.refresh()
            except Exception:
                log.exception("Error refreshing pool data")
            await asyncio.sleep(interval)
