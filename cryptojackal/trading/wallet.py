from typing import Protocol, runtime_checkable

from cryptojackal.core.models import Token, Trade, TradeType


@runtime_checkable
class WalletGateway(Protocol):
    """Live-trading capability supplied from outside the engine.

    Signing and chain submission happen behind this interface (in the
    browser wallet flow); the engine only asks for a balance and hands over
    trades.
    """

    def get_balance(self) -> float:
        ...

    def submit_trade(self, token: Token, trade_type: TradeType, amount: float) -> Trade:
        ...
