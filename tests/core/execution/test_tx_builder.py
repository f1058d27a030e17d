"""
Tests for calldata and unit helpers.
"""

from decimal import Decimal

import pytest

from vp_trade_sdk.core.execution.abi import (
    BONDING_ABI,
    ERC20_ABI,
    decode_function_result,
    encode_function_call,
    function_selector,
)
from vp_trade_sdk.core.execution.tx_builder import (
    append_builder_tag,
    encode_erc20_approve,
    from_base_units,
    to_base_units,
)

from tests.conftest import TOKEN, V2_ROUTER, encode_result


def test_to_base_units_scales_decimal_strings():
    assert to_base_units("1.5") == 1_500_000_000_000_000_000
    assert to_base_units("100") == 100 * 10 ** 18
    assert to_base_units(Decimal("0.25"), decimals=6) == 250_000
    assert to_base_units(3) == 3 * 10 ** 18


def test_to_base_units_truncates_below_smallest_unit():
    assert to_base_units("0.0000000000000000019") == 1
    assert to_base_units("1.9999999", decimals=6) == 1_999_999


@pytest.mark.parametrize("amount", ["-1", "abc", "", "NaN", "Infinity"])
def test_to_base_units_rejects_invalid_amounts(amount):
    with pytest.raises(ValueError):
        to_base_units(amount)


def test_from_base_units():
    assert from_base_units(950_000, decimals=6) == Decimal("0.95")


def test_known_selectors():
    assert function_selector(ERC20_ABI, "approve") == "0x095ea7b3"
    assert function_selector(ERC20_ABI, "balanceOf") == "0x70a08231"


def test_builder_tag_is_appended_as_two_raw_bytes():
    data = encode_function_call(BONDING_ABI, "buy", [10 ** 18, TOKEN])

    tagged = append_builder_tag(data, 7)

    assert tagged == data + "0007"
    assert len(tagged) == len(data) + 4
    assert append_builder_tag(data, 0xBEEF).endswith("beef")


def test_builder_tag_zero_is_still_appended():
    data = encode_function_call(BONDING_ABI, "sell", [10 ** 18, TOKEN])
    assert append_builder_tag(data, 0) == data + "0000"


def test_no_builder_tag_leaves_payload_untouched():
    data = encode_function_call(BONDING_ABI, "buy", [10 ** 18, TOKEN])
    assert append_builder_tag(data, None) == data
    # selector + two 32-byte words
    assert len(data) == 2 + 8 + 128


@pytest.mark.parametrize("builder_id", [-1, 0x10000])
def test_builder_tag_must_fit_in_two_bytes(builder_id):
    with pytest.raises(ValueError):
        append_builder_tag("0x", builder_id)


def test_encode_erc20_approve_exact_amount():
    data = encode_erc20_approve(V2_ROUTER, 123)
    assert data.startswith("0x095ea7b3")
    assert data.endswith(format(123, "064x"))


def test_decode_function_result_unwraps_single_output():
    assert decode_function_result(ERC20_ABI, "balanceOf", encode_result(["uint256"], [42])) == 42


def test_decode_function_result_rejects_empty_data():
    with pytest.raises(ValueError):
        decode_function_result(ERC20_ABI, "balanceOf", "0x")
