"""
ERC-20 balance and allowance adapter.

Balances and allowances are read fresh on every call. Approvals are issued
for the exact amount required, never unlimited, and only when the current
allowance is short.
"""

import logging
from typing import Optional

from ..errors import (
    ApprovalFailedError,
    ErrorContext,
    InsufficientBalanceError,
    VirtualsSDKError,
)
from .account import EvmAccount
from .abi import ERC20_ABI, decode_function_result, encode_function_call
from .gas import GasEstimator
from .models import TransactionRequest
from .submitter import TransactionSubmitter
from .tx_builder import encode_erc20_approve


logger = logging.getLogger(__name__)


class AllowanceLedger:
    """Reads and mutates (owner, token, spender) allowance state for one account."""

    def __init__(
        self,
        account: EvmAccount,
        gas: GasEstimator,
        submitter: TransactionSubmitter,
    ):
        self.account = account
        self.gas = gas
        self.submitter = submitter

    async def get_balance(self, token: str) -> int:
        rpc = self.account.require_rpc()
        data = encode_function_call(ERC20_ABI, "balanceOf", [self.account.address])
        result = await rpc.call(token, data)
        return decode_function_result(ERC20_ABI, "balanceOf", result)

    async def get_allowance(self, token: str, spender: str) -> int:
        rpc = self.account.require_rpc()
        data = encode_function_call(ERC20_ABI, "allowance", [self.account.address, spender])
        result = await rpc.call(token, data)
        return decode_function_result(ERC20_ABI, "allowance", result)

    async def ensure_balance(self, amount: int, token: str) -> int:
        """Return the balance, or raise InsufficientBalanceError if below ``amount``."""
        balance = await self.get_balance(token)
        if balance < amount:
            raise InsufficientBalanceError(token, balance, amount)
        return balance

    async def check_allowance(self, amount: int, token: str, spender: str) -> bool:
        """
        Check that the account can spend ``amount`` of ``token`` via ``spender``.

        Args:
            amount: Required amount in base units
            token: ERC-20 token address
            spender: Contract that will pull the tokens

        Returns:
            True if the current allowance covers the amount

        Raises:
            InsufficientBalanceError: If the balance is below the amount
        """
        await self.ensure_balance(amount, token)
        allowance = await self.get_allowance(token, spender)
        if allowance < amount:
            logger.info(f"Allowance {allowance} below required {amount} for spender {spender}")
            return False
        logger.info(f"Connected wallet has enough allowance amount: {allowance}")
        return True

    async def approve_allowance(self, amount: int, token: str, spender: str) -> Optional[str]:
        """
        Approve ``spender`` for exactly ``amount`` and wait for inclusion.

        An allowance that already covers the amount is left in place and
        None is returned.

        Returns:
            The confirmed approval transaction hash, or None if no approval was needed

        Raises:
            ApprovalFailedError: On submission failure, missing receipt or revert
        """
        rpc = self.account.require_rpc()

        context = ErrorContext(
            operation="approve",
            details={"token": token, "spender": spender, "amount": amount},
        )
        try:
            current = await self.get_allowance(token, spender)
            if current >= amount:
                logger.info(f"Existing allowance {current} already covers {amount}")
                return None

            request = TransactionRequest(
                from_address=self.account.address,
                to_address=token,
                data=encode_erc20_approve(spender, amount),
                chain_id=await rpc.get_chain_id(),
                nonce=await rpc.get_transaction_count(self.account.address),
            )
            request = await self.gas.estimate_gas(request)
            receipt = await self.submitter.submit(request)
        except VirtualsSDKError as e:
            raise ApprovalFailedError(f"Failed to approve allowance: {e.message}", context) from e

        if not receipt.is_success:
            context.tx_hash = receipt.tx_hash
            raise ApprovalFailedError(
                f"Failed to approve allowance: transaction {receipt.tx_hash} reverted",
                context,
            )

        logger.info(f"Allowance has been approved: {receipt.tx_hash}, amount: {amount}")
        return receipt.tx_hash

    async def ensure_allowance(self, amount: int, token: str, spender: str) -> Optional[str]:
        """Check, then approve only when short. Returns the approval hash if one was sent."""
        if await self.check_allowance(amount, token, spender):
            return None
        return await self.approve_allowance(amount, token, spender)
