import dataclasses
import logging
import threading
import time
from typing import Callable

from cryptojackal.core.config import Config
from cryptojackal.core.errors import UpstreamError
from cryptojackal.core.models import Opportunity, Token

from .coingecko import CoinGeckoClient
from .dexscreener import DexScreenerClient

logger = logging.getLogger("cryptojackal")

DEFAULT_CACHE_TTL = 300.0  # 5 minutes
FALLBACK_PLATFORM = "ethereum"

# Momentum detection
MIN_PRICE_CHANGE = 10.0
STRONG_PRICE_CHANGE = 20.0
HIGH_VOLUME = 100_000.0
BASE_CONFIDENCE = 0.5
STRONG_MOVE_BONUS = 0.2
HIGH_VOLUME_BONUS = 0.1
PROFIT_CAPTURE = 0.1  # expect to capture 10% of the observed move
PRICE_IMPACT_ESTIMATE = 0.01


def calculate_security_score(token: Token) -> float:
    """Heuristic 0..1 score from liquidity, volume and market cap.

    This is a rough ranking aid, not a security audit: it knows nothing about
    the contract, holders or honeypot behaviour.
    """
    score = 0.5

    if token.liquidity > 100_000:
        score += 0.2
    elif token.liquidity > 50_000:
        score += 0.1

    if token.volume_24h > 100_000:
        score += 0.15
    elif token.volume_24h > 50_000:
        score += 0.1

    if token.market_cap > 0:
        score += 0.1

    return min(score, 1.0)


def detect_opportunity(token: Token, min_liquidity: float) -> Opportunity | None:
    if token.price_change_24h <= MIN_PRICE_CHANGE or token.liquidity < min_liquidity:
        return None

    confidence = BASE_CONFIDENCE
    if token.price_change_24h > STRONG_PRICE_CHANGE:
        confidence += STRONG_MOVE_BONUS
    if token.volume_24h > HIGH_VOLUME:
        confidence += HIGH_VOLUME_BONUS

    return Opportunity(
        token=token,
        expected_profit=token.price_change_24h * PROFIT_CAPTURE,
        price_impact=PRICE_IMPACT_ESTIMATE,
        confidence_score=round(min(confidence, 1.0), 6),
        strategy="momentum",
    )


class DiscoveryService:
    """Aggregates token data from CoinGecko (primary) and DexScreener (secondary).

    The trending list is cached per instance for ``cache_ttl`` seconds. The
    cache lock only guards the swap-in; fetches run outside it, so two
    callers that miss at the same time both fetch and the last one wins.
    """

    def __init__(
        self,
        coingecko: CoinGeckoClient,
        dexscreener: DexScreenerClient,
        cache_ttl: float = DEFAULT_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.coingecko = coingecko
        self.dexscreener = dexscreener
        self.cache_ttl = cache_ttl
        self._clock = clock
        self._cache_lock = threading.Lock()
        self._trending_cache: list[Token] = []
        self._cache_time: float | None = None

    @classmethod
    def from_config(cls, config: Config) -> "DiscoveryService":
        return cls(
            CoinGeckoClient(config.coingecko_api_key, timeout=config.request_timeout),
            DexScreenerClient(timeout=config.request_timeout),
            cache_ttl=config.cache_ttl,
        )

    def get_trending_tokens(self) -> list[Token]:
        with self._cache_lock:
            if (
                self._trending_cache
                and self._cache_time is not None
                and self._clock() - self._cache_time < self.cache_ttl
            ):
                return list(self._trending_cache)

        tokens = self.coingecko.get_trending_tokens()

        with self._cache_lock:
            self._trending_cache = list(tokens)
            self._cache_time = self._clock()
        return list(tokens)

    def get_new_tokens(self, chain: str) -> list[Token]:
        return self.dexscreener.get_new_pairs(chain)

    def get_top_gainers(self, chain: str, min_liquidity: float) -> list[Token]:
        return self.dexscreener.get_top_gainers(chain, min_liquidity)

    def get_market_data(self, limit: int = 100) -> list[Token]:
        return self.coingecko.get_market_data(limit)

    def search_tokens(self, query: str) -> list[Token]:
        return self.dexscreener.search(query)

    def analyze_token(self, address: str) -> Token | None:
        """Find a token by address and attach its security score.

        DexScreener is tried first; CoinGecko is the fallback. Returns None
        when neither source knows the address.
        """
        try:
            tokens = self.dexscreener.search_token(address)
        except UpstreamError as e:
            logger.warning(f"DexScreener lookup failed for {address}, trying CoinGecko: {e}")
            tokens = []

        if tokens:
            token = tokens[0]
        else:
            token = self.coingecko.get_token_by_contract(FALLBACK_PLATFORM, address)
            if token is None:
                return None

        return dataclasses.replace(token, security_score=calculate_security_score(token))

    def find_opportunities(self, chain: str, min_liquidity: float) -> list[Opportunity]:
        """Score top gainers into momentum opportunities, best confidence first."""
        tokens = self.get_top_gainers(chain, min_liquidity)

        opportunities: list[Opportunity] = []
        for token in tokens:
            opp = detect_opportunity(token, min_liquidity)
            if opp:
                opportunities.append(opp)

        # Stable: equal confidence keeps the price-change order from get_top_gainers
        opportunities.sort(key=lambda o: o.confidence_score, reverse=True)

        logger.info(
            f"Found {len(opportunities)} trading opportunities "
            f"in {len(tokens)} gainers"
        )
        return opportunities
