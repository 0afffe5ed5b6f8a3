from .coingecko import CoinGeckoClient
from .dexscreener import DexScreenerClient
from .service import DiscoveryService, calculate_security_score, detect_opportunity
