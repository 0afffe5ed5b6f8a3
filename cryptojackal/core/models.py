import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

OPPORTUNITY_TTL = timedelta(minutes=5)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


class TradeType(str, Enum):
    BUY = "buy"
    SELL = "sell"


class TradeStatus(str, Enum):
    PENDING = "pending"
    EXECUTED = "executed"
    FAILED = "failed"


class TradingMode(str, Enum):
    PAPER = "paper"
    LIVE = "live"


@dataclass(frozen=True)
class Token:
    symbol: str
    name: str
    address: str | None = None  # None for CEX-only listings
    decimals: int = 18
    price: float = 0.0  # USD
    price_change_24h: float = 0.0  # percent
    market_cap: float = 0.0
    volume_24h: float = 0.0
    liquidity: float = 0.0  # pool liquidity, USD
    security_score: float = 0.0  # heuristic, 0..1
    discovered_at: datetime = field(default_factory=_utcnow)
    tags: tuple[str, ...] = ()

    @property
    def key(self) -> str:
        """Holding key used by the ledger: address, or symbol when there is none."""
        return self.address or self.symbol.lower()

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "symbol": self.symbol,
            "name": self.name,
            "decimals": self.decimals,
            "price": self.price,
            "price_change_24h": self.price_change_24h,
            "market_cap": self.market_cap,
            "volume_24h": self.volume_24h,
            "liquidity": self.liquidity,
            "security_score": self.security_score,
            "discovered_at": _iso(self.discovered_at),
            "tags": list(self.tags),
        }


@dataclass(frozen=True)
class Opportunity:
    token: Token
    expected_profit: float  # percent
    price_impact: float
    confidence_score: float  # 0..1
    strategy: str
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_utcnow)
    expires_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.expires_at is None:
            object.__setattr__(self, "expires_at", self.created_at + OPPORTUNITY_TTL)
        if self.expires_at <= self.created_at:
            raise ValueError("Opportunity must expire after it is created")

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or _utcnow()) >= self.expires_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "token": self.token.to_dict(),
            "expected_profit": self.expected_profit,
            "price_impact": self.price_impact,
            "confidence_score": self.confidence_score,
            "strategy": self.strategy,
            "created_at": _iso(self.created_at),
            "expires_at": _iso(self.expires_at),
        }


@dataclass(frozen=True)
class Trade:
    token_address: str | None
    token_symbol: str
    type: TradeType
    amount_in: float
    price: float
    status: TradeStatus = TradeStatus.PENDING
    amount_out: float = 0.0
    profit_loss: float = 0.0  # realized, sells only
    is_paper_trade: bool = True
    id: str = field(default_factory=_new_id)
    executed_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "token_address": self.token_address,
            "token_symbol": self.token_symbol,
            "type": self.type.value,
            "amount_in": self.amount_in,
            "amount_out": self.amount_out,
            "price": self.price,
            "profit_loss": self.profit_loss,
            "status": self.status.value,
            "executed_at": _iso(self.executed_at),
            "is_paper_trade": self.is_paper_trade,
        }


@dataclass
class TokenBalance:
    token: Token
    balance: float
    value: float  # balance * last seen price
    avg_price: float  # volume-weighted cost basis

    def to_dict(self) -> dict[str, Any]:
        return {
            "token": self.token.to_dict(),
            "balance": self.balance,
            "value": self.value,
            "avg_price": self.avg_price,
        }


@dataclass
class Portfolio:
    balance: float
    currency: str = "EUR"
    token_balances: dict[str, TokenBalance] = field(default_factory=dict)
    total_value: float = 0.0
    profit_loss: float = 0.0
    profit_loss_pct: float = 0.0
    id: str = field(default_factory=_new_id)
    updated_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "balance": self.balance,
            "currency": self.currency,
            "token_balances": {k: v.to_dict() for k, v in self.token_balances.items()},
            "total_value": self.total_value,
            "profit_loss": self.profit_loss,
            "profit_loss_pct": self.profit_loss_pct,
            "updated_at": _iso(self.updated_at),
        }


@dataclass
class Metrics:
    total_trades: int = 0
    successful_trades: int = 0  # profitable sells
    failed_trades: int = 0
    total_volume: float = 0.0
    total_profit_loss: float = 0.0
    win_rate: float = 0.0
    average_profit_per_trade: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_trades": self.total_trades,
            "successful_trades": self.successful_trades,
            "failed_trades": self.failed_trades,
            "total_volume": self.total_volume,
            "total_profit_loss": self.total_profit_loss,
            "win_rate": self.win_rate,
            "average_profit_per_trade": self.average_profit_per_trade,
        }


@dataclass
class BotStatus:
    is_running: bool
    mode: TradingMode
    started_at: datetime | None
    total_trades: int
    profitable_trades: int
    total_profit_loss: float
    current_balance: float
    active_opportunities: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_running": self.is_running,
            "mode": self.mode.value,
            "started_at": _iso(self.started_at),
            "total_trades": self.total_trades,
            "profitable_trades": self.profitable_trades,
            "total_profit_loss": self.total_profit_loss,
            "current_balance": self.current_balance,
            "active_opportunities": self.active_opportunities,
        }
