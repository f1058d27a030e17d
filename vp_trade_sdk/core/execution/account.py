"""
Local EVM signing account.

The private key stays in process; only signed payloads leave it.
"""

from __future__ import annotations

from typing import Optional

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount

from ..errors import ConfigurationError, NoProviderError
from .models import TransactionRequest
from .rpc import EvmRpcClient


def load_evm_account(private_key: str) -> LocalAccount:
    """
    Parse a hex private key into an eth-account LocalAccount.

    Raises:
        ConfigurationError: If the key is missing or malformed
    """
    if not private_key:
        raise ConfigurationError("Private key is not configured")

    key = private_key.strip()
    if not key.startswith("0x"):
        key = "0x" + key

    if len(key) != 66:
        raise ConfigurationError("Invalid private key provided.")

    try:
        return Account.from_key(key)
    except Exception as e:
        raise ConfigurationError("Invalid private key provided.") from e


class EvmAccount:
    """A signing account with an optional RPC connection attached."""

    def __init__(self, account: LocalAccount, rpc: Optional[EvmRpcClient] = None):
        self._account = account
        self.rpc = rpc

    @classmethod
    def from_key(cls, private_key: str, rpc: Optional[EvmRpcClient] = None) -> "EvmAccount":
        return cls(load_evm_account(private_key), rpc)

    @property
    def address(self) -> str:
        return self._account.address

    def require_rpc(self) -> EvmRpcClient:
        """Return the attached RPC client or raise NoProviderError."""
        if self.rpc is None:
            raise NoProviderError()
        return self.rpc

    def sign_transaction(self, request: TransactionRequest) -> str:
        """Sign a populated request; returns 0x-prefixed raw transaction hex."""
        if not request.is_populated:
            raise ValueError("Transaction request is missing gas or fee fields")
        signed = self._account.sign_transaction(request.to_signable())
        return "0x" + signed.raw_transaction.hex().removeprefix("0x")

    def sign_message(self, message: str) -> str:
        """EIP-191 personal_sign over a UTF-8 message."""
        signed = self._account.sign_message(encode_defunct(text=message))
        return "0x" + signed.signature.hex().removeprefix("0x")
