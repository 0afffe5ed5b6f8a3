import logging
import sys

from colorama import Fore, Style, init

init(autoreset=True)

LOGGER_NAME = "cryptojackal"

_LEVEL_COLORS = {
    logging.DEBUG: Fore.CYAN,
    logging.INFO: Fore.GREEN,
    logging.WARNING: Fore.YELLOW,
    logging.ERROR: Fore.RED,
    logging.CRITICAL: Fore.MAGENTA + Style.BRIGHT,
}


class ColorFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        color = _LEVEL_COLORS.get(record.levelno, "")
        ts = self.formatTime(record, "%H:%M:%S")
        level = record.levelname.ljust(8)
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return f"{Fore.WHITE}[{ts}] {color}[{level}]{Style.RESET_ALL} {message}"


def setup_logger(level: str = "INFO") -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(ColorFormatter())
        logger.addHandler(handler)
    return logger


def format_opportunities_table(opportunities: list) -> str:
    if not opportunities:
        return "  No trading opportunities found."
    header = (
        f"  {'#':<4} {'Symbol':<10} {'Conf':>5} {'24h':>8} {'Exp':>7} "
        f"{'Liquidity':>12} {'Volume':>12}"
    )
    sep = "  " + "-" * 66
    lines = [sep, header, sep]
    for i, opp in enumerate(opportunities, 1):
        t = opp.token
        symbol = t.symbol[:9] + "…" if len(t.symbol) > 10 else t.symbol
        lines.append(
            f"  {i:<4} {symbol:<10} {opp.confidence_score:>5.2f} "
            f"{t.price_change_24h:>+7.1f}% {opp.expected_profit:>+6.2f}% "
            f"${t.liquidity:>11,.0f} ${t.volume_24h:>11,.0f}"
        )
    lines.append(sep)
    return "\n".join(lines)
