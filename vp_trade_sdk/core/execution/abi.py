"""
Minimal contract ABIs and calldata encoding helpers.
"""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

from eth_abi import decode, encode
from eth_utils import keccak


def _fn(name: str, inputs: Sequence[tuple], outputs: Sequence[str] = (), mutability: str = "nonpayable") -> Dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "inputs": [{"name": n, "type": t} for n, t in inputs],
        "outputs": [{"name": "", "type": t} for t in outputs],
        "stateMutability": mutability,
    }


ERC20_ABI: List[Dict[str, Any]] = [
    _fn("balanceOf", [("account", "address")], ["uint256"], "view"),
    _fn("allowance", [("owner", "address"), ("spender", "address")], ["uint256"], "view"),
    _fn("approve", [("spender", "address"), ("amount", "uint256")], ["bool"]),
    _fn("decimals", [], ["uint8"], "view"),
]

BONDING_ABI: List[Dict[str, Any]] = [
    _fn("buy", [("amountIn", "uint256"), ("tokenAddress", "address")], ["bool"]),
    _fn("sell", [("amountIn", "uint256"), ("tokenAddress", "address")], ["bool"]),
]

FROUTER_ABI: List[Dict[str, Any]] = [
    _fn(
        "getAmountsOut",
        [("token", "address"), ("assetToken_", "address"), ("amountIn", "uint256")],
        ["uint256"],
        "view",
    ),
]

UNISWAP_V2_ROUTER_ABI: List[Dict[str, Any]] = [
    _fn(
        "getAmountsOut",
        [("amountIn", "uint256"), ("path", "address[]")],
        ["uint256[]"],
        "view",
    ),
    _fn(
        "swapExactTokensForTokensSupportingFeeOnTransferTokens",
        [
            ("amountIn", "uint256"),
            ("amountOutMin", "uint256"),
            ("path", "address[]"),
            ("to", "address"),
            ("deadline", "uint256"),
        ],
    ),
]


def _find_function(abi: List[Dict[str, Any]], function_name: str) -> Dict[str, Any]:
    for item in abi:
        if item.get("type") == "function" and item.get("name") == function_name:
            return item
    raise ValueError(f"Function {function_name} not found in ABI")


def function_selector(abi: List[Dict[str, Any]], function_name: str) -> str:
    """Return the 0x-prefixed 4-byte selector for a function."""
    func = _find_function(abi, function_name)
    input_types = [inp["type"] for inp in func["inputs"]]
    sig = f"{function_name}({','.join(input_types)})"
    return "0x" + keccak(text=sig)[:4].hex()


def encode_function_call(abi: List[Dict[str, Any]], function_name: str, args: list) -> str:
    """
    ABI-encode a function call.

    Args:
        abi: Contract ABI
        function_name: Name of the function
        args: Ordered function arguments

    Returns:
        0x-prefixed hex encoded calldata
    """
    func = _find_function(abi, function_name)
    input_types = [inp["type"] for inp in func["inputs"]]
    encoded_args = encode(input_types, args) if input_types else b""
    return function_selector(abi, function_name) + encoded_args.hex()


def decode_function_result(abi: List[Dict[str, Any]], function_name: str, data: str) -> Any:
    """
    ABI-decode a function call result.

    Single outputs are unwrapped; multiple outputs come back as a tuple.
    """
    func = _find_function(abi, function_name)
    output_types = [out["type"] for out in func["outputs"]]
    if not output_types:
        return None

    raw = bytes.fromhex(data[2:] if data.startswith("0x") else data)
    if not raw:
        raise ValueError(f"Empty result for {function_name}")

    decoded = decode(output_types, raw)
    if len(decoded) == 1:
        return decoded[0]
    return decoded
