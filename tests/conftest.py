"""
Shared fakes for the trading tests.

FakeEvmRpc stands in for EvmRpcClient: eth_call answers are registered per
(contract, selector) and everything sent is recorded for assertions.
"""

from typing import Any, Dict, List, Optional, Tuple

import pytest
from eth_abi import encode

from vp_trade_sdk.core.errors import RpcError
from vp_trade_sdk.core.execution.abi import function_selector
from vp_trade_sdk.core.execution.account import EvmAccount
from vp_trade_sdk.core.execution.allowance import AllowanceLedger
from vp_trade_sdk.core.execution.gas import GasEstimator
from vp_trade_sdk.core.execution.submitter import TransactionSubmitter


TEST_PRIVATE_KEY = "0x" + "11" * 32
GWEI = 1_000_000_000

BASE_TOKEN = "0x" + "0b" * 20
TOKEN = "0x" + "aa" * 20
FROUTER = "0x" + "82" * 20
CURVE = "0x" + "f6" * 20
V2_ROUTER = "0x" + "47" * 20


def encode_result(types: List[str], values: List[Any]) -> str:
    return "0x" + encode(types, values).hex()


class FakeEvmRpc:
    """In-memory node with EIP-1559 fees and instantly mined transactions."""

    def __init__(self, chain_id: int = 8453, nonce: int = 7):
        self.chain_id = chain_id
        self.nonce = nonce
        self.gas_estimate = 21_000
        self.gas_price: Optional[int] = 2 * GWEI
        self.base_fee: Optional[int] = GWEI
        self.priority_fee: Optional[int] = GWEI
        self.receipt_status = "0x1"
        self.receipt_available = True

        self.eth_calls: List[Tuple[str, str]] = []
        self.estimates: List[Dict[str, Any]] = []
        self.sent: List[str] = []
        self._responses: Dict[Tuple[str, str], str] = {}

    def respond(self, to: str, abi: list, function_name: str, result: str) -> None:
        self._responses[(to.lower(), function_selector(abi, function_name))] = result

    def calls_to(self, to: str, abi: list, function_name: str) -> List[str]:
        selector = function_selector(abi, function_name)
        return [data for target, data in self.eth_calls if target == to.lower() and data.startswith(selector)]

    async def get_chain_id(self) -> int:
        return self.chain_id

    async def get_transaction_count(self, address: str, block: str = "pending") -> int:
        return self.nonce

    async def get_balance(self, address: str) -> int:
        return 10 ** 18

    async def estimate_gas(self, call: Dict[str, Any]) -> int:
        self.estimates.append(call)
        return self.gas_estimate

    async def get_gas_price(self) -> Optional[int]:
        return self.gas_price

    async def get_max_priority_fee(self, fallback: int) -> int:
        return self.priority_fee if self.priority_fee is not None else fallback

    async def get_block(self, block: str = "latest") -> Optional[Dict[str, Any]]:
        if self.base_fee is None:
            return {"number": "0x10"}
        return {"number": "0x10", "baseFeePerGas": hex(self.base_fee)}

    async def call(self, to: str, data: str, from_address: Optional[str] = None) -> str:
        self.eth_calls.append((to.lower(), data))
        result = self._responses.get((to.lower(), data[:10]))
        if result is None:
            raise RpcError("eth_call", {"code": 3, "message": "execution reverted"}, chain="evm")
        return result

    async def send_raw_transaction(self, raw_tx: str) -> str:
        self.sent.append(raw_tx)
        return "0x" + format(len(self.sent), "064x")

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        if not self.receipt_available:
            return None
        return {
            "transactionHash": tx_hash,
            "status": self.receipt_status,
            "blockNumber": "0x10",
            "blockHash": "0x" + "ab" * 32,
            "gasUsed": hex(self.gas_estimate),
            "effectiveGasPrice": hex(2 * GWEI),
        }

    async def wait_for_receipt(
        self,
        tx_hash: str,
        timeout: float = 120.0,
        poll_interval: float = 2.0,
    ) -> Optional[Dict[str, Any]]:
        return await self.get_transaction_receipt(tx_hash)

    async def close(self) -> None:
        return None


@pytest.fixture
def rpc():
    return FakeEvmRpc()


@pytest.fixture
def account(rpc):
    return EvmAccount.from_key(TEST_PRIVATE_KEY, rpc)


@pytest.fixture
def gas(rpc):
    return GasEstimator(rpc, buffer_percent=15)


@pytest.fixture
def submitter(account):
    return TransactionSubmitter(account, receipt_timeout_s=1, poll_interval_s=0)


@pytest.fixture
def ledger(account, gas, submitter):
    return AllowanceLedger(account, gas, submitter)
