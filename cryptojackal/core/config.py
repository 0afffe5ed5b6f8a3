from dataclasses import dataclass
import os

from dotenv import load_dotenv

from .models import TradingMode


@dataclass
class Config:
    # Market data
    coingecko_api_key: str
    chain: str
    cache_ttl: float
    request_timeout: float

    # Strategy
    min_liquidity: float
    trade_amount: float
    scan_interval: float

    # Paper trading
    paper_trading_mode: bool
    initial_balance: float

    # Logging
    log_level: str

    @classmethod
    def from_env(cls, env_path: str | None = None) -> "Config":
        if env_path:
            load_dotenv(env_path)
        else:
            load_dotenv()

        def _bool(val: str) -> bool:
            return val.strip().lower() in ("true", "1", "yes")

        def _float(name: str, default: str) -> float:
            raw = os.getenv(name, default)
            try:
                return float(raw)
            except ValueError:
                raise ValueError(f"{name} must be a number, got {raw!r}") from None

        initial_balance = _float("INITIAL_BALANCE", "10.0")
        if initial_balance < 0:
            raise ValueError("INITIAL_BALANCE cannot be negative")

        scan_interval = _float("SCAN_INTERVAL_SECONDS", "30")
        if scan_interval <= 0:
            raise ValueError("SCAN_INTERVAL_SECONDS must be positive")

        trade_amount = _float("TRADE_AMOUNT", "0.1")
        if trade_amount <= 0:
            raise ValueError("TRADE_AMOUNT must be positive")

        request_timeout = _float("REQUEST_TIMEOUT_SECONDS", "30")
        if request_timeout <= 0:
            raise ValueError("REQUEST_TIMEOUT_SECONDS must be positive")

        return cls(
            coingecko_api_key=os.getenv("COINGECKO_API_KEY", ""),
            chain=os.getenv("CHAIN", "ethereum"),
            cache_ttl=_float("CACHE_TTL_SECONDS", "300"),
            request_timeout=request_timeout,
            min_liquidity=_float("MIN_LIQUIDITY", "10000"),
            trade_amount=trade_amount,
            scan_interval=scan_interval,
            paper_trading_mode=_bool(os.getenv("PAPER_TRADING_MODE", "true")),
            initial_balance=initial_balance,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    @property
    def mode(self) -> TradingMode:
        return TradingMode.PAPER if self.paper_trading_mode else TradingMode.LIVE
