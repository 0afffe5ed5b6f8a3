from .config import Config
from .models import (
    Token,
    Opportunity,
    Trade,
    TradeType,
    TradeStatus,
    TradingMode,
    TokenBalance,
    Portfolio,
    Metrics,
    BotStatus,
)
from .errors import (
    JackalError,
    UpstreamError,
    TradeError,
    InsufficientFundsError,
    InsufficientHoldingsError,
    InvalidTradeError,
    LiveTradingUnavailableError,
)
from .logger import setup_logger, format_opportunities_table
