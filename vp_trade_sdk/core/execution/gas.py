"""
Gas and fee estimation with a fixed safety margin.
"""

import dataclasses
import logging

from ...constants import PRIORITY_FEE_FALLBACK_WEI
from ..errors import FeeDataUnavailableError, RpcError
from .models import FeeData, TransactionRequest
from .rpc import EvmRpcClient


logger = logging.getLogger(__name__)


def apply_margin(value: int, percent: int) -> int:
    """Scale ``value`` up by ``percent`` with integer ceiling (21000 @ 15 -> 24150)."""
    return -(-value * (100 + percent) // 100)


class GasEstimator:
    """
    Populates gas limit and fee fields on a TransactionRequest.

    The same margin is applied to the gas limit and to every fee field.
    EIP-1559 fields are preferred; legacy gasPrice is used when the node
    reports no base fee.
    """

    def __init__(self, rpc: EvmRpcClient, buffer_percent: int = 15):
        self.rpc = rpc
        self.buffer_percent = buffer_percent

    async def get_fee_data(self) -> FeeData:
        """
        Fetch current fee data.

        maxFeePerGas follows the common provider convention of
        ``2 * baseFee + priorityFee``.
        """
        gas_price = None
        try:
            gas_price = await self.rpc.get_gas_price()
        except RpcError as e:
            logger.warning(f"eth_gasPrice failed: {e.reason}")

        max_fee = None
        priority_fee = None
        try:
            block = await self.rpc.get_block("latest")
        except RpcError as e:
            logger.warning(f"Latest block lookup failed: {e.reason}")
            block = None

        base_fee_hex = (block or {}).get("baseFeePerGas")
        if base_fee_hex:
            base_fee = int(base_fee_hex, 16)
            priority_fee = await self.rpc.get_max_priority_fee(PRIORITY_FEE_FALLBACK_WEI)
            max_fee = base_fee * 2 + priority_fee

        return FeeData(
            gas_price=gas_price,
            max_fee_per_gas=max_fee,
            max_priority_fee_per_gas=priority_fee,
        )

    async def estimate_gas(self, request: TransactionRequest) -> TransactionRequest:
        """
        Estimate gas and fees for a request.

        Args:
            request: Request with to/data/nonce/chain populated

        Returns:
            A new request with gas limit and fee fields set

        Raises:
            FeeDataUnavailableError: If neither fee shape is available
        """
        estimated = await self.rpc.estimate_gas(request.to_call())
        gas_limit = apply_margin(estimated, self.buffer_percent)

        fee = await self.get_fee_data()
        if fee.supports_eip1559:
            populated = dataclasses.replace(
                request,
                gas_limit=gas_limit,
                gas_price=None,
                max_fee_per_gas=apply_margin(fee.max_fee_per_gas, self.buffer_percent),
                max_priority_fee_per_gas=apply_margin(fee.max_priority_fee_per_gas, self.buffer_percent),
            )
        elif fee.gas_price:
            populated = dataclasses.replace(
                request,
                gas_limit=gas_limit,
                gas_price=apply_margin(fee.gas_price, self.buffer_percent),
                max_fee_per_gas=None,
                max_priority_fee_per_gas=None,
            )
        else:
            raise FeeDataUnavailableError()

        logger.debug(f"Gas estimated: {estimated} -> limit {gas_limit}")
        return populated
