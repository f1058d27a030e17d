"""
Transaction orchestrator for EVM trades.

Handles the lifecycle of one trade:
- Provider check
- Venue resolution
- Optional allowance top-up
- Request building (quote, balance check, gas)
- Local signing
- Broadcast
- Receipt wait
"""

import logging
from typing import Dict, Optional

from ...constants import TokenType
from ..errors import ErrorContext, TransactionFailedError
from ..venues.base import AllowanceCapable, TradingVenue
from .account import EvmAccount
from .models import TradeIntent, TransactionReceipt
from .submitter import TransactionSubmitter
from .tx_builder import to_base_units


logger = logging.getLogger(__name__)


class TransactionOrchestrator:
    """
    Turns a TradeIntent into a confirmed transaction.

    Every step runs sequentially and nothing is kept between calls. Calls
    for the same account must be serialized by the caller because each
    build reads the pending nonce independently.
    """

    def __init__(
        self,
        account: EvmAccount,
        venues: Dict[TokenType, TradingVenue],
        submitter: TransactionSubmitter,
        ledger: Optional[AllowanceCapable] = None,
    ):
        self.account = account
        self.venues = venues
        self.submitter = submitter
        self.ledger = ledger

    def resolve_venue(self, token_type: TokenType) -> TradingVenue:
        venue = self.venues.get(TokenType(token_type))
        if venue is None:
            raise ValueError(f"No venue registered for {token_type}")
        return venue

    async def prepare_allowance(self, intent: TradeIntent) -> Optional[str]:
        """
        Make sure the venue can pull the intent's input amount.

        Returns:
            The approval hash when an approval was sent, otherwise None
        """
        if self.ledger is None:
            raise ValueError("Allowance preparation requires a ledger")

        venue = self.resolve_venue(intent.token_type)
        token, spender = venue.approval_target(intent)
        amount = to_base_units(intent.amount)

        if await self.ledger.check_allowance(amount, token, spender):
            return None
        return await self.ledger.approve_allowance(amount, token, spender)

    async def execute(self, intent: TradeIntent, ensure_allowance: bool = False) -> TransactionReceipt:
        """
        Execute a trade.

        Args:
            intent: What to trade
            ensure_allowance: Check and approve the exact input amount first

        Returns:
            Receipt of the confirmed trade

        Raises:
            NoProviderError: If the account has no RPC attached
            BroadcastFailedError: If the node rejects the signed payload
            ReceiptUnavailableError: If no receipt arrives in time
            TransactionFailedError: If the trade reverted
        """
        self.account.require_rpc()
        venue = self.resolve_venue(intent.token_type)

        if ensure_allowance:
            await self.prepare_allowance(intent)

        request = await venue.build_request(intent)
        raw_tx = self.account.sign_transaction(request)
        tx_hash = await self.submitter.broadcast(raw_tx)
        receipt = await self.submitter.wait_for_receipt(tx_hash)

        if not receipt.is_success:
            raise TransactionFailedError(
                f"Transaction {tx_hash} reverted",
                ErrorContext(
                    operation=f"{intent.token_type.value.lower()}_{intent.side.value.lower()}",
                    chain="evm",
                    tx_hash=tx_hash,
                ),
                receipt=receipt,
            )

        logger.info(
            f"{intent.side.value} {intent.token_type.value.lower()} {intent.token} confirmed: "
            f"{tx_hash} (block {receipt.block_number})"
        )
        return receipt
