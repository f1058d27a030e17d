"""
Calldata and unit helpers shared by the trading venues.
"""

from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Optional, Union

from ...constants import EVM_TOKEN_DECIMALS
from .abi import ERC20_ABI, encode_function_call


MAX_BUILDER_ID = 0xFFFF

Amount = Union[str, int, Decimal]


def to_base_units(amount: Amount, decimals: int = EVM_TOKEN_DECIMALS) -> int:
    """
    Convert a human amount ("1.5") to integer base units.

    Digits below the smallest unit are truncated.

    Raises:
        ValueError: If the amount is not a finite non-negative number
    """
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation as e:
        raise ValueError(f"Invalid amount: {amount!r}") from e

    if not value.is_finite() or value < 0:
        raise ValueError(f"Invalid amount: {amount!r}")

    scaled = (value * (Decimal(10) ** decimals)).quantize(Decimal(1), rounding=ROUND_DOWN)
    return int(scaled)


def from_base_units(amount: int, decimals: int = EVM_TOKEN_DECIMALS) -> Decimal:
    return Decimal(amount) / (Decimal(10) ** decimals)


def append_builder_tag(data: str, builder_id: Optional[int]) -> str:
    """
    Append a 2-byte builder tag after the ABI payload.

    The venue contracts read the tag from the trailing bytes of calldata,
    so it is appended raw as 4 zero-padded hex characters. No tag leaves
    the payload untouched.
    """
    if builder_id is None:
        return data
    if not 0 <= builder_id <= MAX_BUILDER_ID:
        raise ValueError(f"Builder id must fit in 2 bytes: {builder_id}")
    return data + format(builder_id, "04x")


def encode_erc20_approve(spender: str, amount: int) -> str:
    """Encode approve(spender, amount) for an exact, bounded allowance."""
    return encode_function_call(ERC20_ABI, "approve", [spender, amount])
