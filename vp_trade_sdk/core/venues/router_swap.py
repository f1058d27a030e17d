"""
Router swap venue for sentient tokens.
"""

import logging
import time
from typing import List, Optional, Tuple

from ...constants import TokenType, TradeSide
from ..errors import ErrorContext, QuoteError, RpcError
from ..execution.abi import UNISWAP_V2_ROUTER_ABI, decode_function_result, encode_function_call
from ..execution.models import QuoteResult, TradeIntent, TradeOptions, TransactionRequest
from ..execution.tx_builder import Amount, append_builder_tag, from_base_units, to_base_units
from ..execution.account import EvmAccount
from .base import AllowanceCapable, GasEstimable


logger = logging.getLogger(__name__)

BPS_DENOMINATOR = 10_000


def min_amount_out(amount_out: int, slippage_bps: int) -> int:
    """Apply slippage with integer truncation (1_000_000 @ 500 bps -> 950_000)."""
    if not 0 <= slippage_bps <= BPS_DENOMINATOR:
        raise ValueError(f"Slippage out of range: {slippage_bps} bps")
    return amount_out - amount_out * slippage_bps // BPS_DENOMINATOR


class RouterSwapVenue:
    """
    Two-token swaps through a Uniswap V2 compatible router.

    Buys and sells share one swap primitive; direction is only the order
    of the path.
    """

    def __init__(
        self,
        account: EvmAccount,
        ledger: AllowanceCapable,
        gas: GasEstimable,
        base_token: str,
        router: str,
        default_slippage_bps: int = 500,
        deadline_seconds: int = 1200,
    ):
        self.account = account
        self.ledger = ledger
        self.gas = gas
        self.base_token = base_token
        self.router = router
        self.default_slippage_bps = default_slippage_bps
        self.deadline_seconds = deadline_seconds

    def path_for(self, intent: TradeIntent) -> Tuple[str, str]:
        if intent.side == TradeSide.BUY:
            return self.base_token, intent.token
        return intent.token, self.base_token

    def approval_target(self, intent: TradeIntent) -> Tuple[str, str]:
        from_token, _ = self.path_for(intent)
        return from_token, self.router

    async def get_amounts_out(self, amount_in: int, path: List[str]) -> List[int]:
        rpc = self.account.require_rpc()
        data = encode_function_call(UNISWAP_V2_ROUTER_ABI, "getAmountsOut", [amount_in, path])
        try:
            result = await rpc.call(self.router, data)
            amounts = decode_function_result(UNISWAP_V2_ROUTER_ABI, "getAmountsOut", result)
        except (RpcError, ValueError) as e:
            raise QuoteError(
                f"Failed to get amounts out for path {path}: {e}",
                ErrorContext(operation="getAmountsOut", details={"path": path, "amount_in": amount_in}),
            ) from e
        return list(amounts)

    async def _quote_out(self, amount_in: int, path: List[str]) -> int:
        amounts = await self.get_amounts_out(amount_in, path)
        if len(amounts) < 2 or amounts[1] <= 0:
            raise QuoteError(
                f"Router returned no output for {path[0]} -> {path[1]}",
                ErrorContext(operation="getAmountsOut", details={"amounts": amounts}),
            )
        return amounts[1]

    async def quote(self, intent: TradeIntent) -> QuoteResult:
        from_token, to_token = self.path_for(intent)
        amount_in = to_base_units(intent.amount)
        amount_out = await self._quote_out(amount_in, [from_token, to_token])
        return QuoteResult(
            token_type=TokenType.SENTIENT,
            side=intent.side,
            token=intent.token,
            amount_in=amount_in,
            amount_out=amount_out,
        )

    async def build_swap_request(
        self,
        from_token: str,
        to_token: str,
        amount: Amount,
        options: Optional[TradeOptions] = None,
    ) -> TransactionRequest:
        """
        Build a fee-on-transfer safe exact-input swap.

        Args:
            from_token: Token paid
            to_token: Token received
            amount: Human input amount
            options: Builder tag and slippage in bps (default 5%)

        Returns:
            Populated TransactionRequest targeting the router

        Raises:
            QuoteError: If the router quote fails or yields no output
            InsufficientBalanceError: If the account holds less than ``amount``
        """
        options = options or TradeOptions()
        rpc = self.account.require_rpc()

        amount_in = to_base_units(amount)
        path = [from_token, to_token]
        amount_out = await self._quote_out(amount_in, path)

        slippage_bps = self.default_slippage_bps if options.slippage_bps is None else options.slippage_bps
        amount_out_min = min_amount_out(amount_out, slippage_bps)
        logger.info(f"Minimum amount out: {from_base_units(amount_out_min)}")

        await self.ledger.ensure_balance(amount_in, from_token)

        deadline = int(time.time()) + self.deadline_seconds
        data = encode_function_call(
            UNISWAP_V2_ROUTER_ABI,
            "swapExactTokensForTokensSupportingFeeOnTransferTokens",
            [amount_in, amount_out_min, path, self.account.address, deadline],
        )
        data = append_builder_tag(data, options.builder_id)

        request = TransactionRequest(
            from_address=self.account.address,
            to_address=self.router,
            data=data,
            chain_id=await rpc.get_chain_id(),
            nonce=await rpc.get_transaction_count(self.account.address),
        )
        return await self.gas.estimate_gas(request)

    async def build_request(self, intent: TradeIntent) -> TransactionRequest:
        from_token, to_token = self.path_for(intent)
        return await self.build_swap_request(from_token, to_token, intent.amount, intent.options)
