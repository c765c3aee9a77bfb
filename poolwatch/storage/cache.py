import time
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from poolwatch.storage.models.pool import PoolRecord

log = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    record: PoolRecord
    timestamp: float          # epoch seconds of the fetch
    key: str                  # token0-token1-fee

    def is_fresh(self, max_age: float, now: Optional[float] = None) -> bool:
        now = time.time() if now is None else now
        return now - self.timestamp < max_age


class PoolCache:
    """
    In-memory pool store keyed by pool address (lowercased).

    Owned by the app's composition root and shared by the refresher and the
    HTTP handlers. Every mutation is a single dict assignment/removal, which
    is atomic under the event loop.
    """

    def __init__(self):
        self._entries: Dict[str, CacheEntry] = {}

    @staticmethod
    def _key(address: str) -> str:
        return address.lower()

    def get(self, address: str) -> Optional[CacheEntry]:
        return self._entries.get(self._key(address))

    def set(self, record: PoolRecord, timestamp: Optional[float] = None) -> CacheEntry:
        entry = CacheEntry(
            record=record,
            timestamp=time.time() if timestamp is None else timestamp,
            key=record.dedup_key,
        )
        self._entries[self._key(record.address)] = entry
        return entry

    def discard(self, address: str) -> bool:
        return self._entries.pop(self._key(address), None) is not None

    def records(self) -> List[PoolRecord]:
        return [e.record for e in list(self._entries.values()) if e.record is not None]

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, address: str) -> bool:
        return self._key(address) in self._entries

    def __len__(self) -> int:
        return len(self._entries)
