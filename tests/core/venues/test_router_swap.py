"""
Tests for the sentient router swap venue.
"""

import time

import pytest
from eth_abi import decode

from vp_trade_sdk.constants import TokenType, TradeSide
from vp_trade_sdk.core.errors import InsufficientBalanceError, QuoteError
from vp_trade_sdk.core.execution.abi import ERC20_ABI, UNISWAP_V2_ROUTER_ABI, function_selector
from vp_trade_sdk.core.execution.models import TradeIntent, TradeOptions
from vp_trade_sdk.core.venues.router_swap import RouterSwapVenue, min_amount_out

from tests.conftest import BASE_TOKEN, TOKEN, V2_ROUTER, encode_result


SWAP_TYPES = ["uint256", "uint256", "address[]", "address", "uint256"]


@pytest.fixture
def venue(account, ledger, gas):
    return RouterSwapVenue(account, ledger, gas, base_token=BASE_TOKEN, router=V2_ROUTER)


def _market(rpc, from_token, amounts, balance=10 ** 21):
    rpc.respond(from_token, ERC20_ABI, "balanceOf", encode_result(["uint256"], [balance]))
    rpc.respond(V2_ROUTER, UNISWAP_V2_ROUTER_ABI, "getAmountsOut", encode_result(["uint256[]"], [amounts]))


def _decode_swap(data):
    selector = function_selector(UNISWAP_V2_ROUTER_ABI, "swapExactTokensForTokensSupportingFeeOnTransferTokens")
    assert data.startswith(selector)
    return decode(SWAP_TYPES, bytes.fromhex(data[10:]))


def test_min_amount_out_integer_math():
    assert min_amount_out(1_000_000, 500) == 950_000
    assert min_amount_out(999, 500) == 950
    assert min_amount_out(1_000_000, 0) == 1_000_000
    with pytest.raises(ValueError):
        min_amount_out(1, 10_001)


@pytest.mark.asyncio
async def test_buy_swap_applies_default_slippage(rpc, account, venue):
    _market(rpc, BASE_TOKEN, [10 ** 20, 1_000_000])

    request = await venue.build_swap_request(BASE_TOKEN, TOKEN, "100")

    amount_in, amount_out_min, path, recipient, deadline = _decode_swap(request.data)
    assert amount_in == 10 ** 20
    assert amount_out_min == 950_000
    assert [p.lower() for p in path] == [BASE_TOKEN, TOKEN]
    assert recipient.lower() == account.address.lower()
    assert abs(deadline - (int(time.time()) + 1200)) < 60
    assert request.to_address == V2_ROUTER
    assert rpc.sent == []


@pytest.mark.asyncio
async def test_explicit_slippage_and_builder_tag(rpc, venue):
    _market(rpc, TOKEN, [10 ** 18, 1_000_000])
    intent = TradeIntent(
        side=TradeSide.SELL,
        token_type=TokenType.SENTIENT,
        token=TOKEN,
        amount="1",
        options=TradeOptions.from_percent(builder_id=1, slippage=2),
    )

    request = await venue.build_request(intent)

    assert request.data.endswith("0001")
    _, amount_out_min, path, _, _ = _decode_swap(request.data[:-4])
    assert amount_out_min == 980_000
    assert [p.lower() for p in path] == [TOKEN, BASE_TOKEN]


@pytest.mark.parametrize("amounts", [[10 ** 18, 0], [10 ** 18]])
@pytest.mark.asyncio
async def test_degenerate_quote_raises(rpc, venue, amounts):
    _market(rpc, BASE_TOKEN, amounts)

    with pytest.raises(QuoteError):
        await venue.build_swap_request(BASE_TOKEN, TOKEN, "1")

    assert rpc.estimates == []


@pytest.mark.asyncio
async def test_insufficient_balance_raises_before_gas(rpc, venue):
    _market(rpc, BASE_TOKEN, [10 ** 20, 1_000_000], balance=1)

    with pytest.raises(InsufficientBalanceError):
        await venue.build_swap_request(BASE_TOKEN, TOKEN, "100")

    assert rpc.estimates == []


@pytest.mark.asyncio
async def test_quote_reports_second_leg(rpc, venue):
    _market(rpc, BASE_TOKEN, [10 ** 18, 777])
    intent = TradeIntent(side=TradeSide.BUY, token_type=TokenType.SENTIENT, token=TOKEN, amount="1")

    quote = await venue.quote(intent)

    assert quote.amount_out == 777
    assert venue.approval_target(intent) == (BASE_TOKEN, V2_ROUTER)
