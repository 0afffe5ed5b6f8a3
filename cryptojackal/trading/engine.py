import logging
import threading
import time
from datetime import datetime, timezone
from typing import Callable

from cryptojackal.core.config import Config
from cryptojackal.core.errors import JackalError, LiveTradingUnavailableError, TradeError
from cryptojackal.core.logger import format_opportunities_table
from cryptojackal.core.models import (
    BotStatus,
    Opportunity,
    Token,
    Trade,
    TradeStatus,
    TradeType,
    TradingMode,
)
from cryptojackal.discovery.service import DiscoveryService
from cryptojackal.paper.ledger import PaperLedger

from .wallet import WalletGateway

logger = logging.getLogger("cryptojackal")

AUTO_TRADE_CONFIDENCE = 0.6
STOP_POLL_INTERVAL = 0.5  # seconds between cancel checks while sleeping


class TradingEngine:
    """Periodic scan loop on top of discovery and the paper ledger.

    One background thread per running engine. Each cycle scans, stores the
    opportunities, may auto-buy the top one and then sleeps.

    The engine lock only covers the engine's own state; the ledger and the
    discovery cache keep their own locks.
    """

    def __init__(
        self,
        config: Config,
        discovery: DiscoveryService,
        ledger: PaperLedger,
        wallet: WalletGateway | None = None,
    ):
        self.config = config
        self.discovery = discovery
        self.ledger = ledger
        self.wallet = wallet

        self._lock = threading.Lock()
        self._running = False
        self._started_at: datetime | None = None
        self._stop_event: threading.Event | None = None
        self._thread: threading.Thread | None = None

        self._total_trades = 0
        self._profitable_trades = 0
        self._total_profit_loss = 0.0
        self._opportunities: list[Opportunity] = []

    @property
    def mode(self) -> TradingMode:
        return self.config.mode

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._running

    def start(self, cancel: threading.Event | None = None) -> None:
        """Start the scan loop. ``cancel`` is an optional external stop signal."""
        with self._lock:
            if self._running:
                return
            self._running = True
            self._started_at = datetime.now(timezone.utc)
            stop_event = threading.Event()
            self._stop_event = stop_event
            self._thread = threading.Thread(
                target=self._main_loop,
                args=(stop_event, cancel),
                name="TradingEngine",
                daemon=True,
            )
            thread = self._thread

        logger.info(
            f"Trading engine started, mode={self.mode.value} "
            f"scan_interval={self.config.scan_interval:g}s"
        )
        thread.start()

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._running = False
            if self._stop_event:
                self._stop_event.set()
        logger.info("Trading engine stopped")

    def join(self, timeout: float = 5.0) -> None:
        with self._lock:
            thread = self._thread
        if thread and thread is not threading.current_thread():
            thread.join(timeout=timeout)

    def _main_loop(self, stop_event: threading.Event, cancel: threading.Event | None) -> None:
        def should_stop() -> bool:
            return stop_event.is_set() or (cancel is not None and cancel.is_set())

        try:
            while not should_stop():
                try:
                    self._scan(should_stop)
                except Exception as e:
                    logger.error(f"Scan loop error: {e}")
                self._sleep(should_stop, stop_event)
        finally:
            with self._lock:
                # A cancelled context stops the engine just like stop()
                if self._stop_event is stop_event and self._running:
                    self._running = False
                    logger.info("Trading engine stopped (cancelled)")

    def _sleep(self, should_stop: Callable[[], bool], stop_event: threading.Event) -> None:
        deadline = time.monotonic() + self.config.scan_interval
        while not should_stop():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return
            stop_event.wait(min(remaining, STOP_POLL_INTERVAL))

    def scan(self) -> None:
        """Run one scan cycle in the calling thread."""
        self._scan(lambda: False)

    def _scan(self, should_stop: Callable[[], bool]) -> None:
        logger.debug("Scanning for opportunities")
        try:
            opportunities = self.discovery.find_opportunities(
                self.config.chain, self.config.min_liquidity
            )
        except JackalError as e:
            # Keep the previous list rather than blanking it
            logger.error(f"Failed to find opportunities: {e}")
            return

        with self._lock:
            self._opportunities = list(opportunities)

        if not opportunities:
            return

        logger.debug("\n" + format_opportunities_table(opportunities))

        if self.mode is not TradingMode.PAPER:
            return

        top = opportunities[0]
        if top.confidence_score <= AUTO_TRADE_CONFIDENCE:
            logger.debug(
                f"Top opportunity {top.token.symbol} below auto-trade confidence "
                f"({top.confidence_score:.2f} <= {AUTO_TRADE_CONFIDENCE})"
            )
            return
        if top.is_expired():
            logger.warning(f"Top opportunity {top.token.symbol} expired, not trading")
            return
        if should_stop():
            logger.info("Engine stopping, skipping auto trade")
            return

        try:
            trade = self.ledger.execute_trade(top.token, TradeType.BUY, self.config.trade_amount)
        except TradeError as e:
            logger.error(f"Auto paper trade failed: {e}")
            return

        self._record_trade(trade)
        logger.info(
            f"Auto paper trade executed: {trade.token_symbol} amount={trade.amount_in:g} "
            f"confidence={top.confidence_score:.2f}"
        )

    def _record_trade(self, trade: Trade) -> None:
        if trade.status is not TradeStatus.EXECUTED:
            return
        with self._lock:
            self._total_trades += 1
            if trade.type is TradeType.SELL:
                self._total_profit_loss += trade.profit_loss
                if trade.profit_loss > 0:
                    self._profitable_trades += 1

    def get_status(self) -> BotStatus:
        with self._lock:
            running = self._running
            started_at = self._started_at
            total_trades = self._total_trades
            profitable = self._profitable_trades
            total_pl = self._total_profit_loss
            active = len(self._opportunities)

        return BotStatus(
            is_running=running,
            mode=self.mode,
            started_at=started_at,
            total_trades=total_trades,
            profitable_trades=profitable,
            total_profit_loss=total_pl,
            current_balance=self._current_balance(),
            active_opportunities=active,
        )

    def _current_balance(self) -> float:
        if self.mode is TradingMode.PAPER:
            return self.ledger.get_portfolio().balance
        if self.wallet is None:
            return 0.0
        try:
            return self.wallet.get_balance()
        except Exception as e:
            logger.warning(f"Wallet balance lookup failed: {e}")
            return 0.0

    def get_opportunities(self) -> list[Opportunity]:
        with self._lock:
            return list(self._opportunities)

    def execute_trade(self, opportunity: Opportunity, amount: float) -> Trade:
        """Manually buy ``amount`` of the opportunity's token in the current mode."""
        if self.mode is TradingMode.PAPER:
            trade = self.ledger.execute_trade(opportunity.token, TradeType.BUY, amount)
        elif self.wallet is None:
            raise LiveTradingUnavailableError(
                "live trading requires a connected wallet gateway"
            )
        else:
            trade = self.wallet.submit_trade(opportunity.token, TradeType.BUY, amount)
        self._record_trade(trade)
        return trade

    def execute_paper_trade(self, token: Token, trade_type: TradeType, amount: float) -> Trade:
        trade = self.ledger.execute_trade(token, trade_type, amount)
        self._record_trade(trade)
        return trade

    def reset_paper(self) -> None:
        self.ledger.reset()
