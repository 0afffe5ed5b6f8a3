from .engine import TradingEngine, AUTO_TRADE_CONFIDENCE
from .wallet import WalletGateway
