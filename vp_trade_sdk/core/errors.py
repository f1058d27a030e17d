"""
Error taxonomy for the trading SDK.

Every remote failure is wrapped with operation context and re-raised.
Errors carry a category so callers can tell local precondition failures
from remote rejections and from ambiguous outcomes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(str, Enum):
    """Categories of SDK errors."""

    CONFIGURATION = "configuration"     # Bad key/URL at construction
    INSUFFICIENT_FUNDS = "insufficient_funds"
    APPROVAL = "approval"
    FEE_DATA = "fee_data"
    BROADCAST = "broadcast"             # Node rejected the payload
    TRANSACTION_FAILED = "transaction_failed"  # Confirmed revert or on-chain error
    RECEIPT_UNAVAILABLE = "receipt_unavailable"  # Outcome unknown
    QUOTE = "quote"
    SIMULATION = "simulation"
    PROVIDER = "provider"               # RPC / REST level failure
    UNKNOWN = "unknown"


@dataclass
class ErrorContext:
    """Additional context about an error."""

    operation: Optional[str] = None
    chain: Optional[str] = None
    tx_hash: Optional[str] = None
    explorer_url: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


class VirtualsSDKError(Exception):
    """Base class for all SDK errors."""

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
            "operation": self.context.operation,
            "tx_hash": self.context.tx_hash,
            "details": self.context.details,
        }


class ConfigurationError(VirtualsSDKError):
    """Invalid key or endpoint supplied at construction."""

    category = ErrorCategory.CONFIGURATION


class NoProviderError(ConfigurationError):
    """The signing account has no RPC connection attached."""

    def __init__(self, message: str = "No provider found for the connected wallet"):
        super().__init__(message, ErrorContext(operation="resolve_provider"))


class InsufficientBalanceError(VirtualsSDKError):
    """Account balance is below the amount required by the operation."""

    category = ErrorCategory.INSUFFICIENT_FUNDS

    def __init__(self, token: str, balance: int, required: int):
        super().__init__(
            f"Connected wallet doesn't have enough balance of {token}: "
            f"{balance} < {required}",
            ErrorContext(
                operation="check_balance",
                details={"token": token, "balance": balance, "required": required},
            ),
        )
        self.token = token
        self.balance = balance
        self.required = required


class ApprovalFailedError(VirtualsSDKError):
    """ERC-20 approval submission or confirmation failed."""

    category = ErrorCategory.APPROVAL


class FeeDataUnavailableError(VirtualsSDKError):
    """Neither EIP-1559 nor legacy fee data could be obtained."""

    category = ErrorCategory.FEE_DATA

    def __init__(self, message: str = "Failed to estimate gas: no fee data available"):
        super().__init__(message, ErrorContext(operation="get_fee_data"))


class BroadcastFailedError(VirtualsSDKError):
    """The node rejected a signed transaction."""

    category = ErrorCategory.BROADCAST


class TransactionFailedError(VirtualsSDKError):
    """Transaction landed but failed, or can no longer land."""

    category = ErrorCategory.TRANSACTION_FAILED

    def __init__(
        self,
        message: str,
        context: Optional[ErrorContext] = None,
        receipt: Any = None,
        error: Any = None,
    ):
        super().__init__(message, context)
        self.receipt = receipt
        self.error = error


class ReceiptUnavailableError(VirtualsSDKError):
    """
    Transaction was broadcast but no receipt could be obtained.

    The transaction may still land later, so this is reported separately
    from a confirmed revert.
    """

    category = ErrorCategory.RECEIPT_UNAVAILABLE

    def __init__(self, tx_hash: str, timeout: float):
        super().__init__(
            f"No receipt for {tx_hash} after {timeout}s",
            ErrorContext(operation="wait_for_receipt", tx_hash=tx_hash),
        )
        self.tx_hash = tx_hash


class QuoteError(VirtualsSDKError):
    """Quote source returned an error or a degenerate amount."""

    category = ErrorCategory.QUOTE


class SimulationError(VirtualsSDKError):
    """Aggregator pre-flight simulation failed."""

    category = ErrorCategory.SIMULATION


class RpcError(VirtualsSDKError):
    """JSON-RPC call failed at the transport or node level."""

    category = ErrorCategory.PROVIDER

    def __init__(self, method: str, error: Any, chain: Optional[str] = None):
        message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
        super().__init__(
            f"RPC error in {method}: {message}",
            ErrorContext(operation=method, chain=chain, details={"error": error}),
        )
        self.method = method
        self.error = error
        self.reason = message


class VirtualsApiError(VirtualsSDKError):
    """Listing, kline or trade history request failed."""

    category = ErrorCategory.PROVIDER

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(
            message,
            ErrorContext(operation="virtuals_api", details={"status_code": status_code}),
        )
        self.status_code = status_code


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "VirtualsSDKError",
    "ConfigurationError",
    "NoProviderError",
    "InsufficientBalanceError",
    "ApprovalFailedError",
    "FeeDataUnavailableError",
    "BroadcastFailedError",
    "TransactionFailedError",
    "ReceiptUnavailableError",
    "QuoteError",
    "SimulationError",
    "RpcError",
    "VirtualsApiError",
]
