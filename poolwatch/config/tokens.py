import json
import pathlib
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Union

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class KnownToken:
    symbol: str
    address: str
    decimals: Optional[int] = None


class KnownTokens:
    """
    Static token tables used for pool discovery.

    `whitelist` are the tokens we actively search pools for, `quote_tokens`
    are the common tokens they get paired against. Lookups are
    case-insensitive; whitelist entries win over quote tokens.
    """

    def __init__(self, whitelist: List[KnownToken], quote_tokens: List[KnownToken]):
        self.whitelist = list(whitelist)
        self.quote_tokens = list(quote_tokens)
        self._by_address: Dict[str, KnownToken] = {}
        # quote tokens first so whitelist entries overwrite them
        for token in self.quote_tokens + self.whitelist:
            self._by_address[token.address.lower()] = token

    @classmethod
    def from_dict(cls, raw: dict) -> "KnownTokens":
        def _parse(entries) -> List[KnownToken]:
            out = []
            for e in entries or []:
                decimals = e.get("decimals")
                out.append(KnownToken(
                    symbol=e["symbol"],
                    address=e["address"],
                    decimals=int(decimals) if decimals is not None else None,
                ))
            return out

        return cls(_parse(raw.get("whitelist")), _parse(raw.get("quote_tokens")))

    @classmethod
    def load(cls, path: Union[str, pathlib.Path]) -> "KnownTokens":
        path = pathlib.Path(path)
        tokens = cls.from_dict(json.loads(path.read_text()))
        log.info(f"Loaded {len(tokens.whitelist)} whitelisted and {len(tokens.quote_tokens)} quote tokens from {path}")
        return tokens

    def lookup(self, address: str) -> Optional[KnownToken]:
        if not address:
            return None
        return self._by_address.get(address.lower())

    def symbol_for(self, address: str) -> Optional[str]:
        token = self.lookup(address)
        return token.symbol if token else None

    @property
    def whitelist_addresses(self) -> List[str]:
        return [t.address for t in self.whitelist]

    @property
    def quote_addresses(self) -> List[str]:
        return [t.address for t in self.quote_tokens]

    def __len__(self) -> int:
        return len(self._by_address)
