"""
Sign, broadcast and confirm EVM transactions.
"""

import logging

from ..errors import (
    BroadcastFailedError,
    ErrorContext,
    ReceiptUnavailableError,
    RpcError,
)
from .account import EvmAccount
from .models import TransactionReceipt, TransactionRequest


logger = logging.getLogger(__name__)


class TransactionSubmitter:
    """Submits populated requests for one account and waits for receipts."""

    def __init__(
        self,
        account: EvmAccount,
        receipt_timeout_s: float = 120.0,
        poll_interval_s: float = 2.0,
    ):
        self.account = account
        self.receipt_timeout_s = receipt_timeout_s
        self.poll_interval_s = poll_interval_s

    async def broadcast(self, raw_tx: str) -> str:
        """Submit a signed payload; node rejection becomes BroadcastFailedError."""
        rpc = self.account.require_rpc()
        try:
            tx_hash = await rpc.send_raw_transaction(raw_tx)
        except RpcError as e:
            raise BroadcastFailedError(
                f"Transaction broadcast rejected: {e.reason}",
                ErrorContext(operation="eth_sendRawTransaction", details={"error": e.error}),
            ) from e

        logger.info(f"Transaction submitted: {tx_hash}")
        return tx_hash

    async def wait_for_receipt(self, tx_hash: str) -> TransactionReceipt:
        """
        Wait for a receipt.

        Raises:
            ReceiptUnavailableError: If no receipt arrives before the timeout
        """
        rpc = self.account.require_rpc()
        raw = await rpc.wait_for_receipt(
            tx_hash,
            timeout=self.receipt_timeout_s,
            poll_interval=self.poll_interval_s,
        )
        if not raw:
            raise ReceiptUnavailableError(tx_hash, self.receipt_timeout_s)

        receipt = TransactionReceipt.from_rpc(raw)
        if not receipt.tx_hash:
            receipt.tx_hash = tx_hash
        logger.info(
            f"Transaction mined: {tx_hash} "
            f"(block {receipt.block_number}, status {receipt.status.value})"
        )
        return receipt

    async def submit(self, request: TransactionRequest) -> TransactionReceipt:
        """Sign locally, broadcast and wait for the receipt."""
        raw_tx = self.account.sign_transaction(request)
        tx_hash = await self.broadcast(raw_tx)
        return await self.wait_for_receipt(tx_hash)
