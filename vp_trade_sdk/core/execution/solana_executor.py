"""
Solana swap executor.

Swaps route through Jupiter:
1. Ensure associated token accounts exist for both mints
2. Quote
3. Build the serialized swap transaction
4. Sign locally and submit
5. Poll until finalized, failed or expired
"""

from __future__ import annotations

import asyncio
import base64
import json
import logging
import time
from dataclasses import dataclass, field
from decimal import ROUND_DOWN, Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

import httpx
from solders.hash import Hash
from solders.instruction import AccountMeta, Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.transaction import Transaction, VersionedTransaction

from ...constants import (
    ASSOCIATED_TOKEN_PROGRAM_ID,
    LAMPORTS_PER_SOL,
    SOLSCAN_TX_URL,
    SYSTEM_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
)
from ...providers.jupiter import JupiterQuote, JupiterSwapProvider, JupiterSwapTransaction
from ..errors import (
    BroadcastFailedError,
    ConfigurationError,
    ErrorContext,
    ReceiptUnavailableError,
    RpcError,
    TransactionFailedError,
)


logger = logging.getLogger(__name__)

TOKEN_PROGRAM = Pubkey.from_string(TOKEN_PROGRAM_ID)
ASSOCIATED_TOKEN_PROGRAM = Pubkey.from_string(ASSOCIATED_TOKEN_PROGRAM_ID)
SYSTEM_PROGRAM = Pubkey.from_string(SYSTEM_PROGRAM_ID)


class SolanaTransactionStatus(str, Enum):
    """Terminal status of a confirmed Solana transaction."""
    FINALIZED = "finalized"


@dataclass
class SolanaSwapConfig:
    """Parameters for one Jupiter swap."""
    input_mint: str
    output_mint: str
    amount: Any                                 # Human amount, scaled by lamport_unit
    slippage_bps: int
    restrict_intermediate_tokens: bool = True
    max_retries: int = 2
    skip_preflight: bool = True
    lamport_unit: int = LAMPORTS_PER_SOL        # SOL and VIRTUAL use 1e9, agent tokens 1e6
    jupiter_overrides: Dict[str, Any] = field(default_factory=dict)

    @property
    def amount_in_base_units(self) -> int:
        scaled = Decimal(str(self.amount)) * Decimal(self.lamport_unit)
        return int(scaled.quantize(Decimal(1), rounding=ROUND_DOWN))


@dataclass
class SolanaSwapResult:
    """Result of a finalized swap."""
    signature: str
    status: SolanaTransactionStatus
    slot: Optional[int] = None
    in_amount: Optional[int] = None
    out_amount: Optional[int] = None

    @property
    def explorer_url(self) -> str:
        return SOLSCAN_TX_URL.format(signature=self.signature)


def load_solana_keypair(secret: str) -> Keypair:
    """
    Parse a Solana secret key.

    Accepts a JSON byte array, a 64-byte hex string or base58.

    Raises:
        ConfigurationError: If the key cannot be parsed
    """
    value = (secret or "").strip()
    if not value:
        raise ConfigurationError("Solana private key is not configured")

    try:
        if value.startswith("["):
            return Keypair.from_bytes(bytes(json.loads(value)))
        if len(value) == 128:
            try:
                return Keypair.from_bytes(bytes.fromhex(value))
            except ValueError:
                pass
        return Keypair.from_base58_string(value)
    except Exception as e:
        raise ConfigurationError("Invalid Solana private key provided.") from e


def get_associated_token_address(owner: Pubkey, mint: Pubkey) -> Pubkey:
    """Derive the owner's associated token account for ``mint``."""
    address, _ = Pubkey.find_program_address(
        [bytes(owner), bytes(TOKEN_PROGRAM), bytes(mint)],
        ASSOCIATED_TOKEN_PROGRAM,
    )
    return address


def create_associated_token_account_instruction(
    payer: Pubkey,
    associated_token: Pubkey,
    owner: Pubkey,
    mint: Pubkey,
) -> Instruction:
    return Instruction(
        ASSOCIATED_TOKEN_PROGRAM,
        bytes(),
        [
            AccountMeta(payer, True, True),
            AccountMeta(associated_token, False, True),
            AccountMeta(owner, False, False),
            AccountMeta(mint, False, False),
            AccountMeta(SYSTEM_PROGRAM, False, False),
            AccountMeta(TOKEN_PROGRAM, False, False),
        ],
    )


class SolanaRpcClient:
    """
    Minimal async Solana JSON-RPC client.

    Transport errors are not retried here; only sendTransaction's own
    ``maxRetries`` and the confirmation poll repeat work.
    """

    def __init__(self, rpc_url: str, commitment: str = "finalized", timeout_s: float = 30.0):
        self.rpc_url = rpc_url
        self.commitment = commitment
        self._timeout_s = timeout_s
        self._client: Optional[httpx.AsyncClient] = None

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
        """Make an RPC call to the Solana node and return its result."""
        client = await self._get_client()

        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": method,
            "params": params,
        }

        try:
            response = await client.post(
                self.rpc_url,
                json=payload,
                headers={"Content-Type": "application/json"},
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise RpcError(method, str(e), chain="solana") from e
        except ValueError as e:
            raise RpcError(method, f"invalid JSON response: {e}", chain="solana") from e

        if "error" in data:
            raise RpcError(method, data["error"], chain="solana")

        return data.get("result")

    async def get_account_info(self, address: str) -> Optional[Dict[str, Any]]:
        result = await self._rpc_call(
            "getAccountInfo",
            [address, {"encoding": "base64", "commitment": self.commitment}],
        )
        return (result or {}).get("value")

    async def get_latest_blockhash(self) -> Dict[str, Any]:
        """
        Get a recent blockhash for transaction building.

        Returns:
            Dict with blockhash and lastValidBlockHeight
        """
        result = await self._rpc_call(
            "getLatestBlockhash",
            [{"commitment": self.commitment}],
        )
        value = (result or {}).get("value", {})
        return {
            "blockhash": value.get("blockhash"),
            "lastValidBlockHeight": value.get("lastValidBlockHeight"),
        }

    async def get_block_height(self) -> int:
        return await self._rpc_call("getBlockHeight", [{"commitment": self.commitment}])

    async def send_raw_transaction(
        self,
        tx_bytes: bytes,
        skip_preflight: bool = True,
        max_retries: int = 2,
    ) -> str:
        options = {
            "encoding": "base64",
            "skipPreflight": skip_preflight,
            "preflightCommitment": self.commitment,
            "maxRetries": max_retries,
        }
        encoded = base64.b64encode(tx_bytes).decode("ascii")
        return await self._rpc_call("sendTransaction", [encoded, options])

    async def get_signature_status(self, signature: str) -> Optional[Dict[str, Any]]:
        result = await self._rpc_call(
            "getSignatureStatuses",
            [[signature], {"searchTransactionHistory": False}],
        )
        statuses = (result or {}).get("value") or [None]
        return statuses[0]


class SolanaSwapExecutor:
    """
    Executes Jupiter swaps for one local keypair.

    There is no approval step on Solana; the associated token account
    check in ensure_token_account_exist plays that role.
    """

    def __init__(
        self,
        keypair: Keypair,
        rpc: SolanaRpcClient,
        jupiter: JupiterSwapProvider,
        confirm_timeout_s: float = 90.0,
        poll_interval_s: float = 2.0,
    ):
        self.keypair = keypair
        self.rpc = rpc
        self.jupiter = jupiter
        self.confirm_timeout_s = confirm_timeout_s
        self.poll_interval_s = poll_interval_s

    @property
    def public_key(self) -> Pubkey:
        return self.keypair.pubkey()

    async def ensure_token_account_exist(self, mint: str, owner: Optional[str] = None) -> Pubkey:
        """
        Return the owner's associated token account, creating it if absent.

        Safe to call repeatedly: an existing account short-circuits before
        anything is submitted.

        Args:
            mint: Token mint address
            owner: Account owner (default: the local keypair)

        Returns:
            The associated token account address
        """
        mint_key = Pubkey.from_string(mint)
        owner_key = Pubkey.from_string(owner) if owner else self.public_key
        ata = get_associated_token_address(owner_key, mint_key)

        if await self.rpc.get_account_info(str(ata)) is not None:
            return ata

        logger.info(f"Creating associated token account {ata} for mint {mint}")
        latest = await self.rpc.get_latest_blockhash()
        instruction = create_associated_token_account_instruction(
            self.public_key, ata, owner_key, mint_key
        )
        tx = Transaction.new_signed_with_payer(
            [instruction],
            self.public_key,
            [self.keypair],
            Hash.from_string(latest["blockhash"]),
        )

        signature = await self._send(bytes(tx), skip_preflight=False, max_retries=2)
        await self.confirm_transaction(signature, latest["lastValidBlockHeight"])
        return ata

    async def get_quote(self, config: SolanaSwapConfig) -> JupiterQuote:
        return await self.jupiter.get_quote(
            config.input_mint,
            config.output_mint,
            config.amount_in_base_units,
            config.slippage_bps,
            restrict_intermediate_tokens=config.restrict_intermediate_tokens,
        )

    async def get_serialized_transaction(
        self,
        quote: JupiterQuote,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> JupiterSwapTransaction:
        return await self.jupiter.get_swap_transaction(quote, str(self.public_key), overrides)

    def sign_transaction(self, swap: JupiterSwapTransaction) -> bytes:
        """Deserialize, sign with the local keypair and serialize."""
        unsigned = VersionedTransaction.from_bytes(base64.b64decode(swap.swap_transaction))
        signed = VersionedTransaction(unsigned.message, [self.keypair])
        return bytes(signed)

    async def _send(self, tx_bytes: bytes, skip_preflight: bool, max_retries: int) -> str:
        try:
            signature = await self.rpc.send_raw_transaction(
                tx_bytes,
                skip_preflight=skip_preflight,
                max_retries=max_retries,
            )
        except RpcError as e:
            raise BroadcastFailedError(
                f"Solana transaction rejected: {e.reason}",
                ErrorContext(operation="sendTransaction", chain="solana", details={"error": e.error}),
            ) from e

        if not signature:
            raise BroadcastFailedError(
                "No signature returned from sendTransaction",
                ErrorContext(operation="sendTransaction", chain="solana"),
            )
        logger.info(f"Solana transaction submitted: {signature}")
        return signature

    async def confirm_transaction(
        self,
        signature: str,
        last_valid_block_height: Optional[int] = None,
    ) -> SolanaSwapResult:
        """
        Poll until the signature is finalized.

        Raises:
            TransactionFailedError: On an on-chain error, or once the
                blockhash's last valid height has passed without the
                signature being seen
            ReceiptUnavailableError: If the signature is not finalized
                before the timeout
        """
        explorer_url = SOLSCAN_TX_URL.format(signature=signature)
        deadline = time.monotonic() + self.confirm_timeout_s

        while True:
            status = await self.rpc.get_signature_status(signature)
            if status:
                err = status.get("err")
                if err is not None:
                    raise TransactionFailedError(
                        f"Transaction failed: {json.dumps(err)}\n{explorer_url}",
                        ErrorContext(
                            operation="confirm_transaction",
                            chain="solana",
                            tx_hash=signature,
                            explorer_url=explorer_url,
                        ),
                        error=err,
                    )
                if status.get("confirmationStatus") == "finalized":
                    return SolanaSwapResult(
                        signature=signature,
                        status=SolanaTransactionStatus.FINALIZED,
                        slot=status.get("slot"),
                    )

            # A seen signature may still finalize after its blockhash expires
            if not status and last_valid_block_height is not None:
                block_height = await self.rpc.get_block_height()
                if block_height > last_valid_block_height:
                    raise TransactionFailedError(
                        f"Transaction expired: block height exceeded\n{explorer_url}",
                        ErrorContext(
                            operation="confirm_transaction",
                            chain="solana",
                            tx_hash=signature,
                            explorer_url=explorer_url,
                            details={"last_valid_block_height": last_valid_block_height},
                        ),
                    )

            if time.monotonic() >= deadline:
                raise ReceiptUnavailableError(signature, self.confirm_timeout_s)
            await asyncio.sleep(self.poll_interval_s)

    async def swap(self, config: SolanaSwapConfig) -> SolanaSwapResult:
        """
        Run the full swap pipeline.

        Args:
            config: Mints, amount, slippage and submission options

        Returns:
            SolanaSwapResult for the finalized transaction

        Raises:
            QuoteError: If Jupiter cannot quote the route
            SimulationError: If Jupiter's pre-flight simulation fails
            BroadcastFailedError: If the node rejects the transaction
            TransactionFailedError: If the transaction fails or expires
        """
        owner = str(self.public_key)
        await self.ensure_token_account_exist(config.input_mint, owner)
        await self.ensure_token_account_exist(config.output_mint, owner)

        quote = await self.get_quote(config)
        logger.info(
            f"Jupiter quote: {quote.in_amount} {config.input_mint} -> "
            f"{quote.out_amount} {config.output_mint}"
        )

        swap = await self.get_serialized_transaction(quote, config.jupiter_overrides)
        tx_bytes = self.sign_transaction(swap)

        signature = await self._send(
            tx_bytes,
            skip_preflight=config.skip_preflight,
            max_retries=config.max_retries,
        )

        last_valid = swap.last_valid_block_height
        if last_valid is None:
            last_valid = (await self.rpc.get_latest_blockhash())["lastValidBlockHeight"]

        result = await self.confirm_transaction(signature, last_valid)
        result.in_amount = quote.in_amount
        result.out_amount = quote.out_amount
        logger.info(f"Swap finalized: {result.explorer_url}")
        return result
