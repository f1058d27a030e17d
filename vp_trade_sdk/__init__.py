"""
Trading SDK for Virtuals agent tokens on Base and Solana.
"""

from .client import VirtualsClient
from .config import Settings
from .constants import AgentChainId, KlineChainId, TokenType, TradeSide
from .context import SDKContext
from .core.errors import (
    ApprovalFailedError,
    BroadcastFailedError,
    ConfigurationError,
    ErrorCategory,
    ErrorContext,
    FeeDataUnavailableError,
    InsufficientBalanceError,
    NoProviderError,
    QuoteError,
    ReceiptUnavailableError,
    RpcError,
    SimulationError,
    TransactionFailedError,
    VirtualsApiError,
    VirtualsSDKError,
)
from .core.execution.models import TradeIntent, TradeOptions, TransactionReceipt
from .core.execution.solana_executor import SolanaSwapConfig, SolanaSwapResult
from .logging_config import setup_logging
from .types.listing import GetKlinesParams, GetLatestTradesParams, KLine, Token, TokenList, Trade

__version__ = "0.1.0"

__all__ = [
    "VirtualsClient",
    "SDKContext",
    "Settings",
    "setup_logging",
    # Enums
    "AgentChainId",
    "KlineChainId",
    "TokenType",
    "TradeSide",
    # Models
    "TradeIntent",
    "TradeOptions",
    "TransactionReceipt",
    "SolanaSwapConfig",
    "SolanaSwapResult",
    "GetKlinesParams",
    "GetLatestTradesParams",
    "KLine",
    "Token",
    "TokenList",
    "Trade",
    # Errors
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
