# models/pool.py
from dataclasses import dataclass
from typing import Dict, Any


@dataclass
class TokenInfo:
    address: str
    symbol: str = "UNKNOWN"
    decimals: int = 18

    def to_dict(self) -> Dict[str, Any]:
        return {"address": self.address, "symbol": self.symbol, "decimals": self.decimals}


@dataclass
class PoolRecord:
    address: str
    token0: TokenInfo
    token1: TokenInfo
    fee_tier: int
    liquidity: int
    sqrt_price_x96: int
    tick: int
    price: float
    last_update: int          # epoch ms

    @property
    def dedup_key(self) -> str:
        return f"{self.token0.address}-{self.token1.address}-{self.fee_tier}"

    @property
    def has_liquidity(self) -> bool:
        return self.liquidity != 0

    def to_dict(self) -> Dict[str, Any]:
        """JSON shape served by the API (big integers as decimal strings)."""
        return {
            "address": self.address,
            "token0": self.token0.to_dict(),
            "token1": self.token1.to_dict(),
            "feeTier": self.fee_tier,
            "liquidity": str(self.liquidity),
            "sqrtPriceX96": str(self.sqrt_price_x96),
            "tick": self.tick,
            "price": self.price,
            "lastUpdate": self.last_update,
        }

    def __repr__(self) -> str:         # for nicer logs
        return f"<Pool {self.token0.symbol}/{self.token1.symbol} ({self.fee_tier}) {self.address}>"
