"""
Capabilities composed into the trading venues.
"""

from typing import Optional, Protocol, Tuple, runtime_checkable

from ..execution.models import TradeIntent, TransactionRequest


@runtime_checkable
class AllowanceCapable(Protocol):
    """ERC-20 balance/allowance reads and exact-amount approvals."""

    async def get_balance(self, token: str) -> int: ...

    async def ensure_balance(self, amount: int, token: str) -> int: ...

    async def check_allowance(self, amount: int, token: str, spender: str) -> bool: ...

    async def approve_allowance(self, amount: int, token: str, spender: str) -> Optional[str]: ...


@runtime_checkable
class GasEstimable(Protocol):
    """Fills gas limit and fee fields on an unsigned request."""

    async def estimate_gas(self, request: TransactionRequest) -> TransactionRequest: ...


@runtime_checkable
class TradingVenue(Protocol):
    """What the orchestrator and facade need from a venue."""

    def approval_target(self, intent: TradeIntent) -> Tuple[str, str]:
        """Return the (token, spender) pair the intent spends through."""
        ...

    async def build_request(self, intent: TradeIntent) -> TransactionRequest: ...
