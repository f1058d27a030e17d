"""
Bonding curve venue for prototype tokens.

Quotes come from the curve's router; buys and sells execute against the
curve contract. Allowances are not touched here: callers check and
approve before building.
"""

import logging
from decimal import Decimal
from typing import Optional, Tuple

from ...constants import ZERO_ADDRESS, TokenType, TradeSide
from ..errors import ErrorContext, QuoteError, RpcError
from ..execution.abi import BONDING_ABI, FROUTER_ABI, decode_function_result, encode_function_call
from ..execution.models import QuoteResult, TradeIntent, TradeOptions, TransactionRequest
from ..execution.tx_builder import Amount, append_builder_tag, to_base_units
from ..execution.account import EvmAccount
from .base import AllowanceCapable, GasEstimable


logger = logging.getLogger(__name__)


class BondingCurveVenue:
    """Builds buy/sell requests for tokens still on the bonding curve."""

    def __init__(
        self,
        account: EvmAccount,
        ledger: AllowanceCapable,
        gas: GasEstimable,
        base_token: str,
        router: str,
        curve: str,
        tax_rate: Decimal = Decimal("0.01"),
    ):
        self.account = account
        self.ledger = ledger
        self.gas = gas
        self.base_token = base_token
        self.router = router
        self.curve = curve
        self.tax_rate = Decimal(str(tax_rate))

    async def quote(self, side: TradeSide, amount: Amount, token: str) -> QuoteResult:
        """
        Estimate the output of a trade.

        BUY input is reduced by the tax rate before quoting. SELL quotes
        against the zero address, which the router reads as "receive the
        base asset".
        """
        rpc = self.account.require_rpc()

        if side == TradeSide.BUY:
            amount_in = to_base_units(Decimal(str(amount)) * (1 - self.tax_rate))
            asset = self.base_token
        else:
            amount_in = to_base_units(amount)
            asset = ZERO_ADDRESS

        data = encode_function_call(FROUTER_ABI, "getAmountsOut", [token, asset, amount_in])
        try:
            result = await rpc.call(self.router, data)
            amount_out = decode_function_result(FROUTER_ABI, "getAmountsOut", result)
        except (RpcError, ValueError) as e:
            raise QuoteError(
                f"Failed to quote prototype {side.value.lower()} for {token}: {e}",
                ErrorContext(operation="getAmountsOut", details={"token": token, "amount_in": amount_in}),
            ) from e

        return QuoteResult(
            token_type=TokenType.PROTOTYPE,
            side=side,
            token=token,
            amount_in=amount_in,
            amount_out=amount_out,
        )

    def approval_target(self, intent: TradeIntent) -> Tuple[str, str]:
        # Buys spend the base asset, sells spend the prototype token; the router pulls both.
        spend_token = self.base_token if intent.side == TradeSide.BUY else intent.token
        return spend_token, self.router

    async def build_buy_request(
        self,
        token: str,
        amount: Amount,
        options: Optional[TradeOptions] = None,
    ) -> TransactionRequest:
        """Build ``buy(amountIn, token)`` paying the base asset."""
        return await self._build(TradeSide.BUY, token, amount, options or TradeOptions())

    async def build_sell_request(
        self,
        token: str,
        amount: Amount,
        options: Optional[TradeOptions] = None,
    ) -> TransactionRequest:
        """Build ``sell(amountIn, token)`` paying the prototype token."""
        return await self._build(TradeSide.SELL, token, amount, options or TradeOptions())

    async def build_request(self, intent: TradeIntent) -> TransactionRequest:
        if intent.side == TradeSide.BUY:
            return await self.build_buy_request(intent.token, intent.amount, intent.options)
        return await self.build_sell_request(intent.token, intent.amount, intent.options)

    async def _build(
        self,
        side: TradeSide,
        token: str,
        amount: Amount,
        options: TradeOptions,
    ) -> TransactionRequest:
        rpc = self.account.require_rpc()

        quote = await self.quote(side, amount, token)
        if side == TradeSide.BUY:
            logger.info(f"Estimated to receive of prototype token: {token} amount: {quote.amount_out}")
        else:
            logger.info(f"Estimated to receive amount of virtuals: {quote.amount_out}")

        # Encoded amount is the full input; tax only affects the quote.
        amount_in = to_base_units(amount)
        spend_token = self.base_token if side == TradeSide.BUY else token
        await self.ledger.ensure_balance(amount_in, spend_token)

        data = encode_function_call(BONDING_ABI, side.value.lower(), [amount_in, token])
        data = append_builder_tag(data, options.builder_id)

        request = TransactionRequest(
            from_address=self.account.address,
            to_address=self.curve,
            data=data,
            chain_id=await rpc.get_chain_id(),
            nonce=await rpc.get_transaction_count(self.account.address),
        )
        return await self.gas.estimate_gas(request)
