from .models import Trade


class JackalError(RuntimeError):
    """Base class for errors raised by cryptojackal components."""


class UpstreamError(JackalError):
    """A market-data source failed: transport error, non-2xx status or bad payload."""

    def __init__(
        self,
        source: str,
        operation: str,
        message: str,
        status_code: int | None = None,
    ):
        self.source = source
        self.operation = operation
        self.status_code = status_code
        super().__init__(f"{source} {operation}: {message}")


class TradeError(JackalError):
    """A paper trade was rejected. ``trade`` is the failed attempt, if one was recorded."""

    def __init__(self, message: str, trade: Trade | None = None):
        self.trade = trade
        super().__init__(message)


class InsufficientFundsError(TradeError):
    def __init__(self, needed: float, available: float, currency: str, trade: Trade | None = None):
        self.needed = needed
        self.available = available
        super().__init__(
            f"insufficient balance: need {needed:.6f} {currency}, have {available:.6f}",
            trade,
        )


class InsufficientHoldingsError(TradeError):
    def __init__(self, token: str, held: float, requested: float, trade: Trade | None = None):
        self.token = token
        self.held = held
        self.requested = requested
        super().__init__(
            f"insufficient {token} holdings: have {held:.6f}, tried to sell {requested:.6f}",
            trade,
        )


class InvalidTradeError(TradeError):
    pass


class LiveTradingUnavailableError(JackalError):
    """Live mode was requested but no wallet gateway is configured."""
