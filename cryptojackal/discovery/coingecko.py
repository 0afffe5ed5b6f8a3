import logging
from dataclasses import dataclass
from typing import Any

import requests

from cryptojackal.core.errors import UpstreamError
from cryptojackal.core.models import Token

from .http import DEFAULT_TIMEOUT, get_json

logger = logging.getLogger("cryptojackal")

COINGECKO_API_URL = "https://api.coingecko.com/api/v3"
SOURCE = "CoinGecko"


def _num(value: Any) -> float:
    """Parse numbers CoinGecko sends as floats, nulls or strings like "$1,234.5"."""
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = str(value).replace("$", "").replace(",", "").strip()
    return float(cleaned) if cleaned else 0.0


# --- Decode targets for upstream payloads ---


@dataclass
class TrendingCoin:
    symbol: str
    name: str
    price: float
    price_change_24h: float
    market_cap: float
    total_volume: float

    @classmethod
    def from_json(cls, entry: dict) -> "TrendingCoin":
        item = entry["item"]
        data = item.get("data") or {}
        change = data.get("price_change_percentage_24h") or {}
        return cls(
            symbol=item["symbol"],
            name=item.get("name", ""),
            price=_num(data.get("price")),
            price_change_24h=_num(change.get("usd")),
            market_cap=_num(data.get("market_cap")),
            total_volume=_num(data.get("total_volume")),
        )

    def to_token(self) -> Token:
        return Token(
            symbol=self.symbol,
            name=self.name,
            price=self.price,
            price_change_24h=self.price_change_24h,
            market_cap=self.market_cap,
            volume_24h=self.total_volume,
            tags=("trending",),
        )


@dataclass
class MarketCoin:
    symbol: str
    name: str
    current_price: float
    market_cap: float
    total_volume: float
    price_change_percentage_24h: float

    @classmethod
    def from_json(cls, m: dict) -> "MarketCoin":
        return cls(
            symbol=m["symbol"],
            name=m.get("name", ""),
            current_price=_num(m.get("current_price")),
            market_cap=_num(m.get("market_cap")),
            total_volume=_num(m.get("total_volume")),
            price_change_percentage_24h=_num(m.get("price_change_percentage_24h")),
        )

    def to_token(self) -> Token:
        return Token(
            symbol=self.symbol,
            name=self.name,
            price=self.current_price,
            price_change_24h=self.price_change_percentage_24h,
            market_cap=self.market_cap,
            volume_24h=self.total_volume,
            tags=("coingecko",),
        )


@dataclass
class ContractCoin:
    symbol: str
    name: str
    decimals: int | None
    price_usd: float
    market_cap_usd: float
    volume_usd: float
    price_change_24h: float

    @classmethod
    def from_json(cls, data: dict, platform: str) -> "ContractCoin":
        market = data.get("market_data") or {}
        detail = (data.get("detail_platforms") or {}).get(platform) or {}
        return cls(
            symbol=data["symbol"],
            name=data.get("name", ""),
            decimals=detail.get("decimal_place"),
            price_usd=_num((market.get("current_price") or {}).get("usd")),
            market_cap_usd=_num((market.get("market_cap") or {}).get("usd")),
            volume_usd=_num((market.get("total_volume") or {}).get("usd")),
            price_change_24h=_num(market.get("price_change_percentage_24h")),
        )

    def to_token(self, address: str) -> Token:
        return Token(
            address=address,
            symbol=self.symbol,
            name=self.name,
            decimals=self.decimals if self.decimals is not None else 18,
            price=self.price_usd,
            price_change_24h=self.price_change_24h,
            market_cap=self.market_cap_usd,
            volume_24h=self.volume_usd,
            tags=("coingecko",),
        )


class CoinGeckoClient:
    """Primary market-data source: trending lists and aggregate market data."""

    def __init__(
        self,
        api_key: str = "",
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.api_key = api_key
        self.timeout = timeout
        self._session = session or requests.Session()

    def _get(self, path: str, operation: str, params: dict | None = None, allow_not_found: bool = False) -> Any:
        headers = {"x-cg-demo-api-key": self.api_key} if self.api_key else None
        return get_json(
            self._session,
            f"{COINGECKO_API_URL}{path}",
            source=SOURCE,
            operation=operation,
            params=params,
            headers=headers,
            timeout=self.timeout,
            allow_not_found=allow_not_found,
        )

    def get_trending_tokens(self) -> list[Token]:
        data = self._get("/search/trending", "trending")
        try:
            coins = [TrendingCoin.from_json(c) for c in data["coins"]]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise UpstreamError(SOURCE, "trending", f"unexpected payload: {e}") from e

        tokens = [c.to_token() for c in coins]
        logger.info(f"Fetched {len(tokens)} trending tokens from CoinGecko")
        return tokens

    def get_market_data(self, limit: int = 100) -> list[Token]:
        params = {
            "vs_currency": "usd",
            "order": "market_cap_desc",
            "per_page": limit,
            "page": 1,
            "sparkline": "false",
        }
        data = self._get("/coins/markets", "market data", params=params)
        try:
            coins = [MarketCoin.from_json(m) for m in data]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise UpstreamError(SOURCE, "market data", f"unexpected payload: {e}") from e

        tokens = [c.to_token() for c in coins]
        logger.info(f"Fetched market data for {len(tokens)} tokens from CoinGecko")
        return tokens

    def get_token_by_contract(self, platform: str, address: str) -> Token | None:
        """Look up a token by contract address. Returns None when CoinGecko does not know it."""
        operation = f"contract {address}"
        data = self._get(
            f"/coins/{platform}/contract/{address}", operation, allow_not_found=True
        )
        if data is None:
            return None
        try:
            coin = ContractCoin.from_json(data, platform)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise UpstreamError(SOURCE, operation, f"unexpected payload: {e}") from e
        return coin.to_token(address)
