"""
Explicitly constructed wiring for one trading account.

Everything the facade needs is built here from a Settings instance and
held on an SDKContext. Nothing is cached at module level, so several
contexts (different keys, different nodes) can live in one process.
"""

from dataclasses import dataclass
from typing import Dict, Optional
from urllib.parse import urlparse

from .config import Settings
from .constants import TokenType
from .core.errors import ConfigurationError
from .core.execution.account import EvmAccount
from .core.execution.allowance import AllowanceLedger
from .core.execution.executor import TransactionOrchestrator
from .core.execution.gas import GasEstimator
from .core.execution.rpc import EvmRpcClient
from .core.execution.solana_executor import (
    SolanaRpcClient,
    SolanaSwapExecutor,
    load_solana_keypair,
)
from .core.execution.submitter import TransactionSubmitter
from .core.venues.base import TradingVenue
from .core.venues.bonding_curve import BondingCurveVenue
from .core.venues.router_swap import RouterSwapVenue
from .providers.jupiter import JupiterSwapProvider
from .providers.virtuals import VirtualsApiProvider


def validate_rpc_url(url: str) -> str:
    """
    Check that ``url`` is an absolute http(s) URL.

    Raises:
        ConfigurationError: If the URL is missing or malformed
    """
    if not url:
        raise ConfigurationError("Invalid RPC URL provided.")
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigurationError("Invalid RPC URL provided.")
    return url


@dataclass
class SDKContext:
    """Collaborators for one EVM account and, optionally, one Solana keypair."""

    settings: Settings
    rpc: EvmRpcClient
    account: EvmAccount
    gas: GasEstimator
    submitter: TransactionSubmitter
    ledger: AllowanceLedger
    venues: Dict[TokenType, TradingVenue]
    orchestrator: TransactionOrchestrator
    api: VirtualsApiProvider
    solana: Optional[SolanaSwapExecutor] = None

    @property
    def prototype(self) -> BondingCurveVenue:
        return self.venues[TokenType.PROTOTYPE]

    @property
    def sentient(self) -> RouterSwapVenue:
        return self.venues[TokenType.SENTIENT]

    @classmethod
    def from_settings(cls, settings: Settings) -> "SDKContext":
        """
        Build and validate every collaborator.

        The key and URLs are validated before any network use.

        Raises:
            ConfigurationError: On a missing or malformed key or RPC URL
        """
        rpc_url = validate_rpc_url(settings.evm_rpc_url)
        rpc = EvmRpcClient(rpc_url, timeout_s=settings.request_timeout_seconds)
        account = EvmAccount.from_key(settings.private_key, rpc)

        gas = GasEstimator(rpc, buffer_percent=settings.gas_buffer_percent)
        submitter = TransactionSubmitter(
            account,
            receipt_timeout_s=settings.receipt_timeout_seconds,
            poll_interval_s=settings.receipt_poll_interval_seconds,
        )
        ledger = AllowanceLedger(account, gas, submitter)

        venues: Dict[TokenType, TradingVenue] = {
            TokenType.PROTOTYPE: BondingCurveVenue(
                account,
                ledger,
                gas,
                base_token=settings.virtuals_token_address,
                router=settings.bonding_router_address,
                curve=settings.bonding_curve_address,
                tax_rate=settings.prototype_tax_rate,
            ),
            TokenType.SENTIENT: RouterSwapVenue(
                account,
                ledger,
                gas,
                base_token=settings.virtuals_token_address,
                router=settings.uniswap_v2_router_address,
                default_slippage_bps=int(settings.default_slippage_percent * 100),
                deadline_seconds=settings.swap_deadline_seconds,
            ),
        }
        orchestrator = TransactionOrchestrator(account, venues, submitter, ledger)

        try:
            api = VirtualsApiProvider(
                settings.virtuals_api_url,
                settings.virtuals_api_url_v2,
                timeout_s=settings.request_timeout_seconds,
            )
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

        return cls(
            settings=settings,
            rpc=rpc,
            account=account,
            gas=gas,
            submitter=submitter,
            ledger=ledger,
            venues=venues,
            orchestrator=orchestrator,
            api=api,
            solana=cls._build_solana(settings),
        )

    @staticmethod
    def _build_solana(settings: Settings) -> Optional[SolanaSwapExecutor]:
        if not settings.solana_private_key:
            return None

        keypair = load_solana_keypair(settings.solana_private_key)
        rpc = SolanaRpcClient(
            validate_rpc_url(settings.solana_rpc_endpoint),
            timeout_s=settings.request_timeout_seconds,
        )
        jupiter = JupiterSwapProvider(settings.jupiter_api_url, settings.jupiter_api_key)
        return SolanaSwapExecutor(
            keypair,
            rpc,
            jupiter,
            confirm_timeout_s=settings.solana_confirm_timeout_seconds,
            poll_interval_s=settings.receipt_poll_interval_seconds,
        )

    async def aclose(self) -> None:
        await self.rpc.close()
        if self.solana is not None:
            await self.solana.rpc.close()
