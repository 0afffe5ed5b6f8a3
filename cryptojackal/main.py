import signal
import sys
import threading

from colorama import Fore, Style

from cryptojackal.core.config import Config
from cryptojackal.core.logger import setup_logger
from cryptojackal.core.models import TradingMode
from cryptojackal.discovery import DiscoveryService
from cryptojackal.paper import PaperLedger
from cryptojackal.trading import TradingEngine

BANNER = f"""
{Fore.CYAN}╔══════════════════════════════════════════════════╗
║          CRYPTOJACKAL - Token Scout              ║
║      Momentum discovery & paper trading          ║
╚══════════════════════════════════════════════════╝{Style.RESET_ALL}
"""

STATUS_INTERVAL = 60  # seconds between status lines


def main() -> None:
    try:
        config = Config.from_env()
    except ValueError as e:
        print(f"{Fore.RED}Config error: {e}{Style.RESET_ALL}")
        sys.exit(1)

    logger = setup_logger(config.log_level)
    print(BANNER)

    logger.info(f"Mode: {Fore.YELLOW}{config.mode.value.upper()}{Style.RESET_ALL}")
    logger.info(f"Scan interval: {config.scan_interval:g}s")
    logger.info(f"Min liquidity: ${config.min_liquidity:,.0f}")
    logger.info(f"Trade amount: {config.trade_amount:g}")
    logger.info(f"Paper balance: {config.initial_balance:.4f}")

    if config.mode is TradingMode.LIVE:
        # Live orders are signed in the browser wallet; headless runs only scan
        logger.warning("Live mode without a wallet gateway: scanning only, no orders")

    discovery = DiscoveryService.from_config(config)
    ledger = PaperLedger(config.initial_balance)
    engine = TradingEngine(config, discovery, ledger)

    stop_event = threading.Event()

    def shutdown(sig, frame):
        if stop_event.is_set():
            logger.info("Force exit.")
            sys.exit(1)
        logger.info("Shutting down (Ctrl+C again to force)...")
        engine.stop()
        stop_event.set()

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    engine.start(cancel=stop_event)

    # Block main thread until shutdown signal
    while not stop_event.wait(timeout=STATUS_INTERVAL):
        status = engine.get_status()
        logger.info(
            f"Status: running={status.is_running} trades={status.total_trades} "
            f"balance={status.current_balance:.4f} "
            f"opportunities={status.active_opportunities}"
        )
    engine.join(timeout=5)

    metrics = ledger.get_metrics()
    logger.info(
        f"Session: {metrics.total_trades} paper trades, "
        f"P&L {metrics.total_profit_loss:+.4f}"
    )
    logger.info("CryptoJackal stopped.")


if __name__ == "__main__":
    main()
