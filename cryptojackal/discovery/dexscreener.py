import logging
from dataclasses import dataclass
from typing import Any

import requests

from cryptojackal.core.errors import UpstreamError
from cryptojackal.core.models import Token

from .http import DEFAULT_TIMEOUT, get_json

logger = logging.getLogger("cryptojackal")

DEXSCREENER_API_URL = "https://api.dexscreener.com"
SOURCE = "DexScreener"
MAX_TOP_GAINERS = 20


def _float(value: Any) -> float:
    if value in (None, ""):
        return 0.0
    return float(value)


# --- Decode targets for upstream payloads ---


@dataclass
class DexPair:
    dex_id: str
    base_address: str
    base_name: str
    base_symbol: str
    price_usd: float
    liquidity_usd: float
    volume_h24: float
    price_change_h24: float
    market_cap: float

    @classmethod
    def from_json(cls, p: dict) -> "DexPair":
        base = p["baseToken"]
        return cls(
            dex_id=p.get("dexId", ""),
            base_address=base["address"],
            base_name=base.get("name", ""),
            base_symbol=base.get("symbol", ""),
            # priceUsd is a decimal string upstream
            price_usd=_float(p.get("priceUsd")),
            liquidity_usd=_float((p.get("liquidity") or {}).get("usd")),
            volume_h24=_float((p.get("volume") or {}).get("h24")),
            price_change_h24=_float((p.get("priceChange") or {}).get("h24")),
            market_cap=_float(p.get("marketCap")),
        )

    def to_token(self, tags: tuple[str, ...] = ("dexscreener",)) -> Token:
        return Token(
            address=self.base_address,
            symbol=self.base_symbol,
            name=self.base_name,
            price=self.price_usd,
            price_change_24h=self.price_change_h24,
            market_cap=self.market_cap,
            volume_24h=self.volume_h24,
            liquidity=self.liquidity_usd,
            tags=tags,
        )


@dataclass
class TokenBoost:
    chain_id: str
    token_address: str

    @classmethod
    def from_json(cls, b: dict) -> "TokenBoost":
        return cls(
            chain_id=b.get("chainId", ""),
            token_address=b["tokenAddress"],
        )


def _unique_tokens(pairs: list[DexPair]) -> list[Token]:
    tokens: list[Token] = []
    seen: set[str] = set()
    for pair in pairs:
        if pair.base_address in seen:
            continue
        seen.add(pair.base_address)
        tokens.append(pair.to_token())
    return tokens


class DexScreenerClient:
    """Secondary source: DEX pair, liquidity and boosted-token data."""

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.timeout = timeout
        self._session = session or requests.Session()

    def _get(self, path: str, operation: str, params: dict | None = None) -> Any:
        return get_json(
            self._session,
            f"{DEXSCREENER_API_URL}{path}",
            source=SOURCE,
            operation=operation,
            params=params,
            timeout=self.timeout,
        )

    def _parse_pairs(self, data: Any, operation: str) -> list[DexPair]:
        try:
            return [DexPair.from_json(p) for p in (data.get("pairs") or [])]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise UpstreamError(SOURCE, operation, f"unexpected payload: {e}") from e

    def get_pairs_by_token(self, address: str) -> list[DexPair]:
        operation = f"pairs for {address}"
        return self._parse_pairs(self._get(f"/latest/dex/tokens/{address}", operation), operation)

    def search_pairs(self, query: str) -> list[DexPair]:
        operation = f"search {query!r}"
        data = self._get("/latest/dex/search", operation, params={"q": query.strip()})
        return self._parse_pairs(data, operation)

    def get_boosted_tokens(self, chain: str | None = None) -> list[Token]:
        """Latest boosted tokens, optionally limited to one chain id (e.g. "ethereum")."""
        data = self._get("/token-boosts/latest/v1", "boosted tokens")
        try:
            boosts = [TokenBoost.from_json(b) for b in data]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise UpstreamError(SOURCE, "boosted tokens", f"unexpected payload: {e}") from e

        if chain:
            boosts = [b for b in boosts if b.chain_id.lower() == chain.lower()]

        tokens: list[Token] = []
        for boost in boosts:
            try:
                pairs = self.get_pairs_by_token(boost.token_address)
            except UpstreamError as e:
                logger.warning(f"Skipping boosted token {boost.token_address}: {e}")
                continue
            if not pairs:
                continue

            # First pair is the most liquid one upstream
            pair = pairs[0]
            tokens.append(pair.to_token(tags=("dexscreener", "boosted", pair.dex_id)))

        logger.info(f"Fetched {len(tokens)} boosted tokens from DexScreener")
        return tokens

    def get_new_pairs(self, chain: str) -> list[Token]:
        # No per-chain "new pairs" endpoint upstream; boosted tokens stand in for new/hot
        logger.debug(f"DexScreener new pairs requested for {chain}, using boosted tokens")
        return self.get_boosted_tokens(chain)

    def search_token(self, address: str) -> list[Token]:
        return _unique_tokens(self.get_pairs_by_token(address))

    def search(self, query: str) -> list[Token]:
        return _unique_tokens(self.search_pairs(query))

    def get_top_gainers(self, chain: str, min_liquidity: float) -> list[Token]:
        tokens = self.get_new_pairs(chain)
        gainers = [
            t for t in tokens
            if t.liquidity >= min_liquidity and t.price_change_24h > 0
        ]
        # sorted() is stable: equal gains keep source order
        gainers = sorted(gainers, key=lambda t: t.price_change_24h, reverse=True)
        return gainers[:MAX_TOP_GAINERS]
