"""
Tests for balance checks and exact-amount approvals.
"""

from unittest.mock import AsyncMock

import pytest
from eth_abi import decode

from vp_trade_sdk.core.errors import ApprovalFailedError, InsufficientBalanceError, RpcError
from vp_trade_sdk.core.execution.abi import ERC20_ABI

from tests.conftest import TOKEN, V2_ROUTER, encode_result


def _set_state(rpc, balance, allowance):
    rpc.respond(TOKEN, ERC20_ABI, "balanceOf", encode_result(["uint256"], [balance]))
    rpc.respond(TOKEN, ERC20_ABI, "allowance", encode_result(["uint256"], [allowance]))


@pytest.mark.asyncio
async def test_check_allowance_false_when_short(rpc, ledger):
    _set_state(rpc, balance=10 ** 21, allowance=0)

    assert await ledger.check_allowance(10 ** 18, TOKEN, V2_ROUTER) is False


@pytest.mark.asyncio
async def test_check_allowance_true_when_covered(rpc, ledger):
    _set_state(rpc, balance=10 ** 21, allowance=10 ** 18)

    assert await ledger.check_allowance(10 ** 18, TOKEN, V2_ROUTER) is True


@pytest.mark.asyncio
async def test_check_allowance_rejects_insufficient_balance(rpc, ledger):
    _set_state(rpc, balance=5, allowance=10 ** 30)

    with pytest.raises(InsufficientBalanceError) as exc_info:
        await ledger.check_allowance(10, TOKEN, V2_ROUTER)

    assert exc_info.value.balance == 5
    assert exc_info.value.required == 10
    assert rpc.calls_to(TOKEN, ERC20_ABI, "allowance") == []


@pytest.mark.asyncio
async def test_approve_allowance_for_exact_amount(rpc, ledger):
    _set_state(rpc, balance=10 ** 21, allowance=0)

    tx_hash = await ledger.approve_allowance(123 * 10 ** 18, TOKEN, V2_ROUTER)

    assert tx_hash == "0x" + format(1, "064x")
    assert len(rpc.sent) == 1
    call = rpc.estimates[0]
    assert call["to"] == TOKEN
    spender, amount = decode(["address", "uint256"], bytes.fromhex(call["data"][10:]))
    assert spender.lower() == V2_ROUTER
    assert amount == 123 * 10 ** 18


@pytest.mark.asyncio
async def test_approve_allowance_skips_when_already_covered(rpc, ledger):
    _set_state(rpc, balance=10 ** 21, allowance=10 ** 20)

    assert await ledger.approve_allowance(10 ** 18, TOKEN, V2_ROUTER) is None
    assert rpc.sent == []


@pytest.mark.asyncio
async def test_approve_allowance_revert_raises(rpc, ledger):
    _set_state(rpc, balance=10 ** 21, allowance=0)
    rpc.receipt_status = "0x0"

    with pytest.raises(ApprovalFailedError) as exc_info:
        await ledger.approve_allowance(10 ** 18, TOKEN, V2_ROUTER)

    assert exc_info.value.context.tx_hash == "0x" + format(1, "064x")


@pytest.mark.asyncio
async def test_approve_allowance_wraps_broadcast_rejection(rpc, ledger):
    _set_state(rpc, balance=10 ** 21, allowance=0)
    rpc.send_raw_transaction = AsyncMock(
        side_effect=RpcError("eth_sendRawTransaction", {"message": "insufficient funds for gas"})
    )

    with pytest.raises(ApprovalFailedError) as exc_info:
        await ledger.approve_allowance(10 ** 18, TOKEN, V2_ROUTER)

    assert "insufficient funds for gas" in exc_info.value.message


@pytest.mark.asyncio
async def test_ensure_allowance_only_approves_when_short(rpc, ledger):
    _set_state(rpc, balance=10 ** 21, allowance=10 ** 20)

    assert await ledger.ensure_allowance(10 ** 18, TOKEN, V2_ROUTER) is None
    assert rpc.sent == []


@pytest.mark.asyncio
async def test_approve_allowance_wraps_allowance_read_failure(rpc, ledger):
    rpc.respond(TOKEN, ERC20_ABI, "balanceOf", encode_result(["uint256"], [10 ** 21]))

    with pytest.raises(ApprovalFailedError) as exc_info:
        await ledger.approve_allowance(10 ** 18, TOKEN, V2_ROUTER)

    assert exc_info.value.context.operation == "approve"
    assert isinstance(exc_info.value.__cause__, RpcError)
    assert rpc.sent == []
