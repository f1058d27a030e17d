"""
Transaction Execution Layer

Provides the infrastructure for executing on-chain trades:
- EvmRpcClient: Async JSON-RPC access to the Base node
- EvmAccount: Local signing account
- GasEstimator: Gas limit and fee population with a safety margin
- AllowanceLedger: ERC-20 balance checks and exact-amount approvals
- TransactionSubmitter: Broadcast and receipt wait
- TransactionOrchestrator: Full lifecycle of one trade
- SolanaSwapExecutor: Jupiter swaps on Solana

Usage:
    from vp_trade_sdk.core.execution import (
        TradeIntent,
        TradeOptions,
        TransactionOrchestrator,
    )

    intent = TradeIntent(
        side=TradeSide.SELL,
        token_type=TokenType.PROTOTYPE,
        token="0x...",
        amount="100",
    )
    receipt = await orchestrator.execute(intent, ensure_allowance=True)
"""

from .models import (
    TransactionStatus,
    TradeOptions,
    TradeIntent,
    FeeData,
    TransactionRequest,
    QuoteResult,
    TransactionReceipt,
)

from .rpc import EvmRpcClient

from .account import EvmAccount, load_evm_account

from .tx_builder import (
    append_builder_tag,
    encode_erc20_approve,
    from_base_units,
    to_base_units,
)

from .gas import GasEstimator, apply_margin

from .submitter import TransactionSubmitter

from .allowance import AllowanceLedger

from .executor import TransactionOrchestrator

from .solana_executor import (
    SolanaRpcClient,
    SolanaSwapConfig,
    SolanaSwapExecutor,
    SolanaSwapResult,
    SolanaTransactionStatus,
    load_solana_keypair,
)

__all__ = [
    # Models
    "TransactionStatus",
    "TradeOptions",
    "TradeIntent",
    "FeeData",
    "TransactionRequest",
    "QuoteResult",
    "TransactionReceipt",
    # EVM
    "EvmRpcClient",
    "EvmAccount",
    "load_evm_account",
    "append_builder_tag",
    "encode_erc20_approve",
    "from_base_units",
    "to_base_units",
    "GasEstimator",
    "apply_margin",
    "TransactionSubmitter",
    "AllowanceLedger",
    "TransactionOrchestrator",
    # Solana
    "SolanaRpcClient",
    "SolanaSwapConfig",
    "SolanaSwapExecutor",
    "SolanaSwapResult",
    "SolanaTransactionStatus",
    "load_solana_keypair",
]
