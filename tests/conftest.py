import pytest

from cryptojackal.core.config import Config
from cryptojackal.core.models import Token


def make_token(
    symbol: str = "PEPE",
    address: str | None = "0xpepe",
    price: float = 0.001,
    price_change_24h: float = 0.0,
    volume_24h: float = 0.0,
    liquidity: float = 0.0,
    market_cap: float = 0.0,
) -> Token:
    return Token(
        symbol=symbol,
        name=symbol.title(),
        address=address,
        price=price,
        price_change_24h=price_change_24h,
        volume_24h=volume_24h,
        liquidity=liquidity,
        market_cap=market_cap,
    )


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeCoinGecko:
    def __init__(self, trending=None, contract=None, error: Exception | None = None):
        self.trending = trending or []
        self.contract = contract
        self.error = error
        self.trending_calls = 0
        self.contract_calls: list[tuple[str, str]] = []

    def get_trending_tokens(self):
        self.trending_calls += 1
        if self.error:
            raise self.error
        return list(self.trending)

    def get_token_by_contract(self, platform, address):
        self.contract_calls.append((platform, address))
        if self.error:
            raise self.error
        return self.contract

    def get_market_data(self, limit=100):
        return list(self.trending)[:limit]


class FakeDexScreener:
    def __init__(self, gainers=None, search_results=None, error: Exception | None = None):
        self.gainers = gainers or []
        self.search_results = search_results or []
        self.error = error
        self.gainer_calls = 0

    def get_top_gainers(self, chain, min_liquidity):
        self.gainer_calls += 1
        if self.error:
            raise self.error
        return list(self.gainers)

    def get_new_pairs(self, chain):
        return list(self.gainers)

    def search_token(self, address):
        if self.error:
            raise self.error
        return [t for t in self.search_results if t.address == address]

    def search(self, query):
        return list(self.search_results)


@pytest.fixture
def config() -> Config:
    return Config(
        coingecko_api_key="",
        chain="ethereum",
        cache_ttl=300.0,
        request_timeout=5.0,
        min_liquidity=10_000.0,
        trade_amount=100.0,
        scan_interval=0.05,
        paper_trading_mode=True,
        initial_balance=10.0,
        log_level="DEBUG",
    )
