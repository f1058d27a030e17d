"""
Tests for the Solana swap executor with fake RPC and Jupiter collaborators.
"""

import base64
import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer
from solders.transaction import Transaction, VersionedTransaction

from vp_trade_sdk.core.errors import (
    ConfigurationError,
    QuoteError,
    ReceiptUnavailableError,
    SimulationError,
    TransactionFailedError,
)
from vp_trade_sdk.core.execution.solana_executor import (
    ASSOCIATED_TOKEN_PROGRAM,
    SolanaSwapConfig,
    SolanaSwapExecutor,
    SolanaTransactionStatus,
    get_associated_token_address,
    load_solana_keypair,
)
from vp_trade_sdk.providers.jupiter import JupiterQuote, JupiterSwapTransaction


SOL_MINT = "So11111111111111111111111111111111111111112"
AGENT_MINT = str(Pubkey.from_bytes(bytes([7] * 32)))


class FakeSolanaRpc:
    def __init__(self):
        self.accounts = set()
        self.sent = []
        self.status = {"slot": 5, "confirmationStatus": "finalized", "err": None}
        self.block_height = 10

    async def get_account_info(self, address):
        return {"lamports": 2039280} if address in self.accounts else None

    async def get_latest_blockhash(self):
        return {"blockhash": str(Hash.default()), "lastValidBlockHeight": 100}

    async def get_block_height(self):
        return self.block_height

    async def send_raw_transaction(self, tx_bytes, skip_preflight=True, max_retries=2):
        self.sent.append((tx_bytes, skip_preflight, max_retries))
        return f"sig{len(self.sent)}"

    async def get_signature_status(self, signature):
        return self.status

    async def close(self):
        return None


@pytest.fixture
def keypair():
    return Keypair.from_seed(bytes([1] * 32))


@pytest.fixture
def sol_rpc(keypair):
    rpc = FakeSolanaRpc()
    for mint in (SOL_MINT, AGENT_MINT):
        ata = get_associated_token_address(keypair.pubkey(), Pubkey.from_string(mint))
        rpc.accounts.add(str(ata))
    return rpc


@pytest.fixture
def jupiter(keypair):
    ix = transfer(TransferParams(from_pubkey=keypair.pubkey(), to_pubkey=Pubkey.default(), lamports=1))
    message = MessageV0.try_compile(keypair.pubkey(), [ix], [], Hash.default())
    unsigned = base64.b64encode(bytes(VersionedTransaction(message, [keypair]))).decode()

    provider = MagicMock()
    provider.get_quote = AsyncMock(return_value=JupiterQuote.from_api({
        "inputMint": SOL_MINT,
        "outputMint": AGENT_MINT,
        "inAmount": "1500000000",
        "outAmount": "42000000",
        "otherAmountThreshold": "41000000",
        "slippageBps": 100,
    }))
    provider.get_swap_transaction = AsyncMock(return_value=JupiterSwapTransaction.from_api({
        "swapTransaction": unsigned,
        "lastValidBlockHeight": 100,
    }))
    return provider


@pytest.fixture
def executor(keypair, sol_rpc, jupiter):
    return SolanaSwapExecutor(keypair, sol_rpc, jupiter, confirm_timeout_s=1, poll_interval_s=0)


def _config(**kwargs):
    return SolanaSwapConfig(input_mint=SOL_MINT, output_mint=AGENT_MINT, amount="1.5", slippage_bps=100, **kwargs)


def test_amount_scales_by_lamport_unit():
    assert _config().amount_in_base_units == 1_500_000_000
    agent = SolanaSwapConfig(
        input_mint=AGENT_MINT, output_mint=SOL_MINT, amount="2.1234567", slippage_bps=50, lamport_unit=10 ** 6
    )
    assert agent.amount_in_base_units == 2_123_456


def test_keypair_formats_are_equivalent(keypair):
    raw = bytes(keypair)

    assert load_solana_keypair(json.dumps(list(raw))).pubkey() == keypair.pubkey()
    assert load_solana_keypair(raw.hex()).pubkey() == keypair.pubkey()
    assert load_solana_keypair(str(keypair)).pubkey() == keypair.pubkey()


@pytest.mark.parametrize("secret", ["", "not-a-key", "[1, 2, 3]"])
def test_invalid_keypair_raises(secret):
    with pytest.raises(ConfigurationError):
        load_solana_keypair(secret)


@pytest.mark.asyncio
async def test_ensure_token_account_is_idempotent(keypair, executor, sol_rpc):
    mint = str(Pubkey.from_bytes(bytes([9] * 32)))

    ata = await executor.ensure_token_account_exist(mint)
    assert len(sol_rpc.sent) == 1
    created = Transaction.from_bytes(sol_rpc.sent[0][0])
    assert created.message.account_keys[created.message.instructions[0].program_id_index] == ASSOCIATED_TOKEN_PROGRAM

    sol_rpc.accounts.add(str(ata))
    assert await executor.ensure_token_account_exist(mint) == ata
    assert len(sol_rpc.sent) == 1


@pytest.mark.asyncio
async def test_swap_signs_sends_and_confirms(keypair, executor, sol_rpc, jupiter):
    result = await executor.swap(_config(max_retries=3, skip_preflight=False))

    assert result.status == SolanaTransactionStatus.FINALIZED
    assert result.signature == "sig1"
    assert result.in_amount == 1_500_000_000
    assert result.out_amount == 42_000_000
    assert result.explorer_url == "https://solscan.io/tx/sig1/"

    tx_bytes, skip_preflight, max_retries = sol_rpc.sent[0]
    assert (skip_preflight, max_retries) == (False, 3)
    signed = VersionedTransaction.from_bytes(tx_bytes)
    assert signed.message.account_keys[0] == keypair.pubkey()

    jupiter.get_quote.assert_awaited_once_with(
        SOL_MINT, AGENT_MINT, 1_500_000_000, 100, restrict_intermediate_tokens=True
    )


@pytest.mark.asyncio
async def test_quote_error_aborts_before_signing(executor, sol_rpc, jupiter):
    jupiter.get_quote.side_effect = QuoteError("No routes found")

    with pytest.raises(QuoteError):
        await executor.swap(_config())

    jupiter.get_swap_transaction.assert_not_awaited()
    assert sol_rpc.sent == []


@pytest.mark.asyncio
async def test_simulation_error_aborts_before_signing(executor, sol_rpc, jupiter):
    jupiter.get_swap_transaction.side_effect = SimulationError("Slippage tolerance exceeded")
    executor.sign_transaction = MagicMock()

    with pytest.raises(SimulationError):
        await executor.swap(_config())

    executor.sign_transaction.assert_not_called()
    assert sol_rpc.sent == []


@pytest.mark.asyncio
async def test_onchain_error_includes_explorer_link(executor, sol_rpc):
    err = {"InstructionError": [2, {"Custom": 6001}]}
    sol_rpc.status = {"slot": 5, "confirmationStatus": "confirmed", "err": err}

    with pytest.raises(TransactionFailedError) as exc_info:
        await executor.swap(_config())

    message = exc_info.value.message
    assert json.dumps(err) in message
    assert "https://solscan.io/tx/sig1/" in message
    assert exc_info.value.error == err


@pytest.mark.asyncio
async def test_expired_blockhash_fails(executor, sol_rpc):
    sol_rpc.status = None
    sol_rpc.block_height = 101

    with pytest.raises(TransactionFailedError) as exc_info:
        await executor.confirm_transaction("sig9", last_valid_block_height=100)

    assert "expired" in exc_info.value.message


@pytest.mark.asyncio
async def test_landed_transaction_past_blockhash_is_not_expired(keypair, sol_rpc, jupiter):
    sol_rpc.status = {"slot": 5, "confirmationStatus": "confirmed", "err": None}
    sol_rpc.block_height = 101
    executor = SolanaSwapExecutor(keypair, sol_rpc, jupiter, confirm_timeout_s=0, poll_interval_s=0)

    with pytest.raises(ReceiptUnavailableError):
        await executor.confirm_transaction("sigX", last_valid_block_height=100)


@pytest.mark.asyncio
async def test_confirmation_timeout_is_ambiguous(keypair, sol_rpc, jupiter):
    sol_rpc.status = {"slot": 5, "confirmationStatus": "processed", "err": None}
    executor = SolanaSwapExecutor(keypair, sol_rpc, jupiter, confirm_timeout_s=0, poll_interval_s=0)

    with pytest.raises(ReceiptUnavailableError):
        await executor.confirm_transaction("sig9", last_valid_block_height=None)
