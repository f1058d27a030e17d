"""
Transaction execution models and types.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from eth_utils import to_checksum_address

from ...constants import TokenType, TradeSide


class TransactionStatus(str, Enum):
    """Terminal status of a mined transaction."""
    CONFIRMED = "confirmed"      # status 0x1
    REVERTED = "reverted"        # status 0x0


@dataclass(frozen=True)
class TradeOptions:
    """Per-call options shared by both venues."""
    builder_id: Optional[int] = None            # 2-byte attribution tag
    slippage_bps: Optional[int] = None          # Router swaps only

    @classmethod
    def from_percent(
        cls,
        builder_id: Optional[int] = None,
        slippage: Optional[Any] = None,
    ) -> "TradeOptions":
        """Build options from a slippage percentage (5 -> 500 bps)."""
        bps = None
        if slippage is not None:
            bps = int(Decimal(str(slippage)) * 100)
        return cls(builder_id=builder_id, slippage_bps=bps)


@dataclass(frozen=True)
class TradeIntent:
    """A single buy or sell request against one venue."""
    side: TradeSide
    token_type: TokenType
    token: str                                  # Prototype or sentient token address
    amount: str                                 # Human decimal string
    options: TradeOptions = field(default_factory=TradeOptions)


@dataclass(frozen=True)
class FeeData:
    """Current network fee data."""
    gas_price: Optional[int] = None
    max_fee_per_gas: Optional[int] = None       # EIP-1559
    max_priority_fee_per_gas: Optional[int] = None  # EIP-1559

    @property
    def supports_eip1559(self) -> bool:
        return bool(self.max_fee_per_gas and self.max_priority_fee_per_gas)


@dataclass(frozen=True)
class TransactionRequest:
    """
    An unsigned transaction.

    Built once per operation and consumed once by the signer. Gas and fee
    fields are filled in by the gas estimator, which returns a new instance.
    """
    from_address: str
    to_address: str
    data: str                                   # Encoded calldata (hex)
    chain_id: int
    nonce: int
    value: int = 0                              # Wei to send
    gas_limit: Optional[int] = None
    gas_price: Optional[int] = None             # Legacy
    max_fee_per_gas: Optional[int] = None       # EIP-1559
    max_priority_fee_per_gas: Optional[int] = None

    @property
    def is_populated(self) -> bool:
        return self.gas_limit is not None and (
            self.gas_price is not None or self.max_fee_per_gas is not None
        )

    def to_call(self) -> Dict[str, Any]:
        """Call object for eth_call / eth_estimateGas."""
        call = {
            "from": self.from_address,
            "to": self.to_address,
            "data": self.data,
        }
        if self.value > 0:
            call["value"] = hex(self.value)
        return call

    def to_signable(self) -> Dict[str, Any]:
        """Convert to the dictionary shape eth-account signs."""
        tx: Dict[str, Any] = {
            "to": to_checksum_address(self.to_address),
            "data": self.data,
            "value": self.value,
            "nonce": self.nonce,
            "chainId": self.chain_id,
            "gas": self.gas_limit,
        }
        if self.max_fee_per_gas is not None:
            tx["maxFeePerGas"] = self.max_fee_per_gas
            tx["maxPriorityFeePerGas"] = self.max_priority_fee_per_gas or 0
            tx["type"] = 2
        else:
            tx["gasPrice"] = self.gas_price
        return tx


@dataclass(frozen=True)
class QuoteResult:
    """Informational output estimate for a trade."""
    token_type: TokenType
    side: TradeSide
    token: str
    amount_in: int                              # Base units, after tax for bonding buys
    amount_out: int                             # Base units


@dataclass
class TransactionReceipt:
    """Receipt of a mined transaction."""
    tx_hash: str
    status: TransactionStatus
    block_number: Optional[int] = None
    block_hash: Optional[str] = None
    gas_used: Optional[int] = None
    effective_gas_price: Optional[int] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return self.status == TransactionStatus.CONFIRMED

    @classmethod
    def from_rpc(cls, receipt: Dict[str, Any]) -> "TransactionReceipt":
        """Parse an eth_getTransactionReceipt result."""
        status = int(receipt.get("status", "0x1"), 16)
        block_number = receipt.get("blockNumber")
        gas_used = receipt.get("gasUsed")
        return cls(
            tx_hash=receipt.get("transactionHash", ""),
            status=TransactionStatus.CONFIRMED if status == 1 else TransactionStatus.REVERTED,
            block_number=int(block_number, 16) if block_number else None,
            block_hash=receipt.get("blockHash"),
            gas_used=int(gas_used, 16) if gas_used else None,
            effective_gas_price=int(receipt.get("effectiveGasPrice", "0x0"), 16),
            raw=receipt,
        )
