"""
VirtualsClient: single entry point for trading and token discovery.

Usage:
    from vp_trade_sdk import VirtualsClient

    async with VirtualsClient(private_key="0x...", rpc_provider_url="https://...") as client:
        receipt = await client.buy_prototype_token("0xToken", "100", builder_id=7)
        tokens = await client.get_sentient_listing()
"""

import logging
from typing import Any, List, Optional

from .config import Settings
from .constants import AgentChainId, TokenType, TradeSide
from .context import SDKContext
from .core.errors import ConfigurationError
from .core.execution.models import TradeIntent, TradeOptions, TransactionReceipt
from .core.execution.solana_executor import SolanaSwapConfig, SolanaSwapExecutor, SolanaSwapResult
from .core.execution.tx_builder import Amount, to_base_units
from .types.listing import (
    GetKlinesParams,
    GetLatestTradesParams,
    KLine,
    Token,
    TokenList,
    Trade,
)


logger = logging.getLogger(__name__)


class VirtualsClient:
    """
    Facade over the EVM orchestrator, the Solana swap executor and the
    listing API.

    Amounts are human decimal strings ("1.5") and are converted to base
    units once, at this boundary. Trades check the allowance and approve
    the exact shortfall before building, unless ``ensure_allowance`` is
    turned off.
    """

    def __init__(self, settings: Optional[Settings] = None, **overrides: Any):
        """
        Args:
            settings: Fully built Settings; when omitted one is read from the
                environment with ``overrides`` applied on top

        Raises:
            ConfigurationError: On a missing or malformed key or RPC URL
        """
        if settings is None:
            settings = Settings(**overrides)
        elif overrides:
            settings = settings.model_copy(update=overrides)
        self.settings = settings
        self.context = SDKContext.from_settings(settings)

    async def __aenter__(self) -> "VirtualsClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pools."""
        await self.context.aclose()

    # ------------------------------------------------------------------
    # Account

    @property
    def address(self) -> str:
        return self.context.account.address

    def sign_message(self, message: str) -> str:
        """Sign ``message`` with EIP-191 personal_sign."""
        return self.context.account.sign_message(message)

    # ------------------------------------------------------------------
    # Trading

    async def _trade(
        self,
        side: TradeSide,
        token_type: TokenType,
        token: str,
        amount: Amount,
        builder_id: Optional[int],
        slippage: Optional[Any],
        ensure_allowance: bool,
    ) -> TransactionReceipt:
        intent = TradeIntent(
            side=side,
            token_type=token_type,
            token=token,
            amount=str(amount),
            options=TradeOptions.from_percent(builder_id=builder_id, slippage=slippage),
        )
        return await self.context.orchestrator.execute(intent, ensure_allowance=ensure_allowance)

    async def buy_prototype_token(
        self,
        token: str,
        amount: Amount,
        builder_id: Optional[int] = None,
        ensure_allowance: bool = True,
    ) -> TransactionReceipt:
        """
        Buy a prototype token on the bonding curve.

        Args:
            token: Prototype token address
            amount: Base asset to spend
            builder_id: Optional 2-byte attribution tag
            ensure_allowance: Approve the router for ``amount`` first if short

        Returns:
            Receipt of the confirmed buy
        """
        return await self._trade(
            TradeSide.BUY, TokenType.PROTOTYPE, token, amount, builder_id, None, ensure_allowance
        )

    async def sell_prototype_token(
        self,
        token: str,
        amount: Amount,
        builder_id: Optional[int] = None,
        ensure_allowance: bool = True,
    ) -> TransactionReceipt:
        """Sell ``amount`` of a prototype token back to the bonding curve."""
        return await self._trade(
            TradeSide.SELL, TokenType.PROTOTYPE, token, amount, builder_id, None, ensure_allowance
        )

    async def buy_sentient_token(
        self,
        token: str,
        amount: Amount,
        builder_id: Optional[int] = None,
        slippage: Optional[Any] = None,
        ensure_allowance: bool = True,
    ) -> TransactionReceipt:
        """
        Buy a sentient token through the router.

        Args:
            token: Sentient token address
            amount: Base asset to spend
            builder_id: Optional 2-byte attribution tag
            slippage: Slippage percentage (default from settings, 5%)
            ensure_allowance: Approve the router for ``amount`` first if short

        Returns:
            Receipt of the confirmed swap
        """
        return await self._trade(
            TradeSide.BUY, TokenType.SENTIENT, token, amount, builder_id, slippage, ensure_allowance
        )

    async def sell_sentient_token(
        self,
        token: str,
        amount: Amount,
        builder_id: Optional[int] = None,
        slippage: Optional[Any] = None,
        ensure_allowance: bool = True,
    ) -> TransactionReceipt:
        """Sell ``amount`` of a sentient token for the base asset through the router."""
        return await self._trade(
            TradeSide.SELL, TokenType.SENTIENT, token, amount, builder_id, slippage, ensure_allowance
        )

    # ------------------------------------------------------------------
    # Allowances

    def _spend_token(self, from_token: Optional[str]) -> str:
        return from_token or self.settings.virtuals_token_address

    async def check_sentient_allowance(self, amount: Amount, from_token: Optional[str] = None) -> bool:
        """
        Check the router allowance for a sentient trade.

        Args:
            amount: Base asset for a buy, or sentient tokens for a sell
            from_token: Token being spent (default: the base asset)

        Returns:
            True if the current allowance covers ``amount``

        Raises:
            InsufficientBalanceError: If the balance is below ``amount``
        """
        return await self.context.ledger.check_allowance(
            to_base_units(amount), self._spend_token(from_token), self.context.sentient.router
        )

    async def approve_sentient_allowance(self, amount: Amount, from_token: Optional[str] = None) -> Optional[str]:
        """Approve the router for exactly ``amount``; returns the approval hash, or None if already covered."""
        return await self.context.ledger.approve_allowance(
            to_base_units(amount), self._spend_token(from_token), self.context.sentient.router
        )

    async def check_prototype_allowance(self, amount: Amount, from_token: Optional[str] = None) -> bool:
        """Check the bonding router allowance for a prototype trade."""
        return await self.context.ledger.check_allowance(
            to_base_units(amount), self._spend_token(from_token), self.context.prototype.router
        )

    async def approve_prototype_allowance(self, amount: Amount, from_token: Optional[str] = None) -> Optional[str]:
        """Approve the bonding router for exactly ``amount``."""
        return await self.context.ledger.approve_allowance(
            to_base_units(amount), self._spend_token(from_token), self.context.prototype.router
        )

    # ------------------------------------------------------------------
    # Discovery

    async def get_sentient_listing(
        self,
        page: int = 1,
        page_size: int = 30,
        agent_chain_id: AgentChainId = AgentChainId.ALL,
    ) -> TokenList:
        """Sentient tokens, highest total value locked first."""
        return await self.context.api.fetch_virtual_token_lists(
            TokenType.SENTIENT, agent_chain_id, page, page_size
        )

    async def get_prototype_listing(
        self,
        page: int = 1,
        page_size: int = 30,
        agent_chain_id: AgentChainId = AgentChainId.ALL,
    ) -> TokenList:
        """Prototype tokens, highest base asset value first."""
        return await self.context.api.fetch_virtual_token_lists(
            TokenType.PROTOTYPE, agent_chain_id, page, page_size
        )

    async def search_virtual_tokens_by_keyword(self, keyword: str) -> Optional[Token]:
        return await self.context.api.search_virtual_tokens_by_keyword(keyword)

    async def fetch_klines(self, params: GetKlinesParams) -> List[KLine]:
        return await self.context.api.fetch_klines(params)

    async def fetch_latest_trades(self, params: GetLatestTradesParams) -> List[Trade]:
        return await self.context.api.fetch_latest_trades(params)

    # ------------------------------------------------------------------
    # Solana

    def _require_solana(self) -> SolanaSwapExecutor:
        if self.context.solana is None:
            raise ConfigurationError("Solana private key is not configured")
        return self.context.solana

    @property
    def solana_address(self) -> str:
        return str(self._require_solana().public_key)

    def solana_swap_config(
        self,
        input_mint: str,
        output_mint: str,
        amount: Amount,
        slippage_bps: Optional[int] = None,
        **kwargs: Any,
    ) -> SolanaSwapConfig:
        """Build a SolanaSwapConfig with submission options taken from settings."""
        if slippage_bps is None:
            slippage_bps = int(self.settings.default_slippage_percent * 100)
        kwargs.setdefault("max_retries", self.settings.solana_max_retries)
        kwargs.setdefault("skip_preflight", self.settings.solana_skip_preflight)
        return SolanaSwapConfig(
            input_mint=input_mint,
            output_mint=output_mint,
            amount=amount,
            slippage_bps=slippage_bps,
            **kwargs,
        )

    async def solana_swap(self, config: SolanaSwapConfig) -> SolanaSwapResult:
        """
        Swap on Solana through Jupiter.

        Raises:
            ConfigurationError: If no Solana key is configured
            QuoteError: If Jupiter cannot quote the route
            SimulationError: If Jupiter's simulation fails
            TransactionFailedError: If the swap fails on chain or expires
        """
        executor = self._require_solana()
        logger.info(f"Solana swap {config.amount} {config.input_mint} -> {config.output_mint}")
        return await executor.swap(config)
