import dataclasses
import logging
import math
import threading
from datetime import datetime, timezone

from cryptojackal.core.errors import (
    InsufficientFundsError,
    InsufficientHoldingsError,
    InvalidTradeError,
)
from cryptojackal.core.models import (
    Metrics,
    Portfolio,
    Token,
    TokenBalance,
    Trade,
    TradeStatus,
    TradeType,
)

logger = logging.getLogger("cryptojackal")

DUST_THRESHOLD = 0.0001


class PaperLedger:
    """Virtual portfolio for paper trading.

    One lock covers the balance, the holdings and the trade history, so a
    trade's balance change and its history entry land together and readers
    never see half of it. Nothing here touches a wallet or a chain.
    """

    def __init__(self, initial_balance: float, currency: str = "EUR"):
        if initial_balance < 0:
            raise ValueError("initial balance cannot be negative")
        self._initial_balance = initial_balance
        self._currency = currency
        self._lock = threading.Lock()
        self._portfolio = self._fresh_portfolio()
        self._trades: list[Trade] = []

    @property
    def initial_balance(self) -> float:
        return self._initial_balance

    def _fresh_portfolio(self) -> Portfolio:
        return Portfolio(
            balance=self._initial_balance,
            currency=self._currency,
            total_value=self._initial_balance,
        )

    def execute_trade(self, token: Token, trade_type: TradeType, amount: float) -> Trade:
        """Buy or sell ``amount`` units of ``token`` at its current price.

        Raises InsufficientFundsError / InsufficientHoldingsError with the
        failed trade attached (it is also kept in the history), or
        InvalidTradeError for a bad direction, amount or price. Buys below
        DUST_THRESHOLD are rejected since the holding would be dust.
        """
        try:
            trade_type = TradeType(trade_type)
        except ValueError:
            raise InvalidTradeError(f"unknown trade type {trade_type!r}") from None
        if not math.isfinite(amount) or amount <= 0:
            raise InvalidTradeError(f"trade amount must be positive, got {amount}")
        if trade_type is TradeType.BUY and amount < DUST_THRESHOLD:
            raise InvalidTradeError(f"buy amount {amount} is below the dust threshold {DUST_THRESHOLD}")
        if not math.isfinite(token.price) or token.price <= 0:
            raise InvalidTradeError(f"{token.symbol} has no usable price ({token.price})")

        with self._lock:
            if trade_type is TradeType.BUY:
                trade = self._buy(token, amount)
            else:
                trade = self._sell(token, amount)

        logger.info(
            f"[PAPER] {trade_type.value.upper()} {amount:g} {token.symbol} "
            f"@ {token.price:.8g} -> out={trade.amount_out:.6g} "
            f"pnl={trade.profit_loss:+.6g}"
        )
        return trade

    def _failed(self, token: Token, trade_type: TradeType, amount: float) -> Trade:
        trade = Trade(
            token_address=token.address,
            token_symbol=token.symbol,
            type=trade_type,
            amount_in=amount,
            price=token.price,
            status=TradeStatus.FAILED,
        )
        self._trades.append(trade)
        return trade

    def _buy(self, token: Token, amount: float) -> Trade:
        portfolio = self._portfolio
        cost = amount * token.price
        if cost > portfolio.balance:
            trade = self._failed(token, TradeType.BUY, amount)
            logger.warning(
                f"[PAPER] Buy {token.symbol} rejected: cost {cost:.6f} > balance {portfolio.balance:.6f}"
            )
            raise InsufficientFundsError(cost, portfolio.balance, portfolio.currency, trade)

        portfolio.balance -= cost

        existing = portfolio.token_balances.get(token.key)
        if existing:
            new_balance = existing.balance + amount
            avg_price = (existing.avg_price * existing.balance + token.price * amount) / new_balance
        else:
            new_balance = amount
            avg_price = token.price

        portfolio.token_balances[token.key] = TokenBalance(
            token=token,
            balance=new_balance,
            value=new_balance * token.price,
            avg_price=avg_price,
        )
        return self._record(
            Trade(
                token_address=token.address,
                token_symbol=token.symbol,
                type=TradeType.BUY,
                amount_in=amount,
                price=token.price,
                amount_out=amount,
                status=TradeStatus.EXECUTED,
            )
        )

    def _sell(self, token: Token, amount: float) -> Trade:
        portfolio = self._portfolio
        existing = portfolio.token_balances.get(token.key)
        held = existing.balance if existing else 0.0
        if existing is None or held < amount:
            trade = self._failed(token, TradeType.SELL, amount)
            logger.warning(
                f"[PAPER] Sell {token.symbol} rejected: holding {held:.6f} < {amount:.6f}"
            )
            raise InsufficientHoldingsError(token.symbol, held, amount, trade)

        proceeds = amount * token.price
        portfolio.balance += proceeds

        remaining = existing.balance - amount
        if remaining < DUST_THRESHOLD:
            del portfolio.token_balances[token.key]
        else:
            portfolio.token_balances[token.key] = TokenBalance(
                token=token,
                balance=remaining,
                value=remaining * token.price,
                avg_price=existing.avg_price,
            )

        return self._record(
            Trade(
                token_address=token.address,
                token_symbol=token.symbol,
                type=TradeType.SELL,
                amount_in=amount,
                price=token.price,
                amount_out=proceeds,
                profit_loss=(token.price - existing.avg_price) * amount,
                status=TradeStatus.EXECUTED,
            )
        )

    def _record(self, trade: Trade) -> Trade:
        self._trades.append(trade)
        self._portfolio.updated_at = datetime.now(timezone.utc)
        return trade

    def get_portfolio(self) -> Portfolio:
        with self._lock:
            p = self._portfolio
            holdings = {k: dataclasses.replace(v) for k, v in p.token_balances.items()}
            total = p.balance + sum(h.value for h in holdings.values())
            profit_loss = total - self._initial_balance
            pct = profit_loss / self._initial_balance * 100 if self._initial_balance > 0 else 0.0
            return dataclasses.replace(
                p,
                token_balances=holdings,
                total_value=total,
                profit_loss=profit_loss,
                profit_loss_pct=pct,
            )

    def get_trade_history(self, limit: int = 0) -> list[Trade]:
        """Most recent first. ``limit <= 0`` returns everything."""
        with self._lock:
            trades = list(reversed(self._trades))
        if 0 < limit < len(trades):
            return trades[:limit]
        return trades

    def get_metrics(self) -> Metrics:
        with self._lock:
            trades = list(self._trades)

        metrics = Metrics(total_trades=len(trades))
        total_profit = 0.0
        for trade in trades:
            if trade.status is TradeStatus.FAILED:
                metrics.failed_trades += 1
                continue
            if trade.status is not TradeStatus.EXECUTED:
                continue
            if trade.type is TradeType.SELL:
                metrics.total_volume += trade.amount_out
                if trade.profit_loss > 0:
                    metrics.successful_trades += 1
                total_profit += trade.profit_loss
            else:
                metrics.total_volume += trade.amount_in * trade.price

        metrics.total_profit_loss = total_profit
        if metrics.total_trades:
            metrics.win_rate = metrics.successful_trades / metrics.total_trades
            metrics.average_profit_per_trade = total_profit / metrics.total_trades
        return metrics

    def reset(self) -> None:
        """Drop all holdings and history and start over at the initial balance."""
        with self._lock:
            self._portfolio = self._fresh_portfolio()
            self._trades = []
        logger.info(f"[PAPER] Portfolio reset to {self._initial_balance:.4f} {self._currency}")
