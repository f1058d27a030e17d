"""
Async EVM JSON-RPC client.
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

import httpx

from ..errors import RpcError


logger = logging.getLogger(__name__)


class EvmRpcClient:
    """
    Thin async wrapper over the standard EVM JSON-RPC methods.

    One instance holds one HTTP connection pool to one node. The chain id
    is fetched once and cached.
    """

    def __init__(self, rpc_url: str, timeout_s: float = 30.0):
        self.rpc_url = rpc_url
        self._timeout_s = timeout_s
        self._client: Optional[httpx.AsyncClient] = None
        self._chain_id: Optional[int] = None
        self._request_id = 0

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout_s)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _rpc_call(self, method: str, params: List[Any]) -> Any:
        """Make an RPC call and return its result field."""
        client = await self._get_client()
        self._request_id += 1

        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": self._request_id,
        }

        try:
            response = await client.post(self.rpc_url, json=payload)
            response.raise_for_status()
            result = response.json()
        except httpx.HTTPError as e:
            raise RpcError(method, str(e), chain="evm") from e
        except ValueError as e:
            raise RpcError(method, f"invalid JSON response: {e}", chain="evm") from e

        if "error" in result:
            raise RpcError(method, result["error"], chain="evm")

        return result.get("result")

    async def get_chain_id(self) -> int:
        if self._chain_id is None:
            self._chain_id = int(await self._rpc_call("eth_chainId", []), 16)
        return self._chain_id

    async def get_transaction_count(self, address: str, block: str = "pending") -> int:
        return int(await self._rpc_call("eth_getTransactionCount", [address, block]), 16)

    async def get_balance(self, address: str) -> int:
        return int(await self._rpc_call("eth_getBalance", [address, "latest"]), 16)

    async def estimate_gas(self, call: Dict[str, Any]) -> int:
        return int(await self._rpc_call("eth_estimateGas", [call]), 16)

    async def get_gas_price(self) -> Optional[int]:
        result = await self._rpc_call("eth_gasPrice", [])
        return int(result, 16) if result else None

    async def get_max_priority_fee(self, fallback: int) -> int:
        """Suggested priority fee, or ``fallback`` when the node lacks the method."""
        try:
            result = await self._rpc_call("eth_maxPriorityFeePerGas", [])
        except RpcError as e:
            logger.debug(f"eth_maxPriorityFeePerGas unavailable, using fallback: {e.reason}")
            return fallback
        return int(result, 16) if result else fallback

    async def get_block(self, block: str = "latest") -> Optional[Dict[str, Any]]:
        return await self._rpc_call("eth_getBlockByNumber", [block, False])

    async def call(self, to: str, data: str, from_address: Optional[str] = None) -> str:
        """eth_call against the latest block; returns the raw hex result."""
        call_obj: Dict[str, Any] = {"to": to, "data": data}
        if from_address:
            call_obj["from"] = from_address
        return await self._rpc_call("eth_call", [call_obj, "latest"])

    async def send_raw_transaction(self, raw_tx: str) -> str:
        return await self._rpc_call("eth_sendRawTransaction", [raw_tx])

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        return await self._rpc_call("eth_getTransactionReceipt", [tx_hash])

    async def wait_for_receipt(
        self,
        tx_hash: str,
        timeout: float = 120.0,
        poll_interval: float = 2.0,
    ) -> Optional[Dict[str, Any]]:
        """
        Poll for a transaction receipt.

        Args:
            tx_hash: The transaction hash to monitor
            timeout: Maximum time to wait in seconds
            poll_interval: Delay between polls in seconds

        Returns:
            The raw receipt, or None when the timeout elapsed first
        """
        deadline = time.monotonic() + timeout

        while True:
            try:
                receipt = await self.get_transaction_receipt(tx_hash)
                if receipt:
                    return receipt
            except RpcError as e:
                logger.warning(f"Error checking transaction status: {e.reason}")

            if time.monotonic() >= deadline:
                return None
            await asyncio.sleep(poll_interval)
