"""
Jupiter swap API provider for Solana.

Two calls back the Solana swap pipeline:
- GET /quote: best route for an exact input amount
- POST /swap: serialized versioned transaction for a quote

An API key is optional and sent as ``x-api-key`` when configured.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from ..constants import DEFAULT_JUPITER_API_URL
from ..core.errors import ErrorContext, QuoteError, SimulationError


DEFAULT_SWAP_OPTIONS: Dict[str, Any] = {
    "dynamicComputeUnitLimit": True,
    "dynamicSlippage": True,
    "prioritizationFeeLamports": {
        "priorityLevelWithMaxLamports": {
            "maxLamports": 1_000_000,
            "priorityLevel": "veryHigh",
        },
    },
}


@dataclass
class JupiterQuote:
    """Parsed Jupiter quote. ``raw`` is passed back verbatim to /swap."""

    input_mint: str
    output_mint: str
    in_amount: int
    out_amount: int
    other_amount_threshold: int
    slippage_bps: int
    price_impact_pct: str = "0"
    route_labels: List[str] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "JupiterQuote":
        route_plan = data.get("routePlan") or []
        labels = [
            (step.get("swapInfo") or {}).get("label", "")
            for step in route_plan
            if isinstance(step, dict)
        ]
        return cls(
            input_mint=data.get("inputMint", ""),
            output_mint=data.get("outputMint", ""),
            in_amount=int(data.get("inAmount") or 0),
            out_amount=int(data.get("outAmount") or 0),
            other_amount_threshold=int(data.get("otherAmountThreshold") or 0),
            slippage_bps=int(data.get("slippageBps") or 0),
            price_impact_pct=str(data.get("priceImpactPct") or "0"),
            route_labels=[label for label in labels if label],
            raw=data,
        )


@dataclass
class JupiterSwapTransaction:
    """Serialized swap transaction returned by /swap."""

    swap_transaction: str                       # base64 VersionedTransaction
    last_valid_block_height: Optional[int] = None
    prioritization_fee_lamports: Optional[int] = None
    compute_unit_limit: Optional[int] = None
    simulation_error: Optional[Any] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "JupiterSwapTransaction":
        return cls(
            swap_transaction=data.get("swapTransaction", ""),
            last_valid_block_height=data.get("lastValidBlockHeight"),
            prioritization_fee_lamports=data.get("prioritizationFeeLamports"),
            compute_unit_limit=data.get("computeUnitLimit"),
            simulation_error=data.get("simulationError"),
            raw=data,
        )


class JupiterSwapProvider:
    """
    Jupiter quote and swap-build client.

    Errors reported by the API abort the pipeline before any signing:
    quote errors raise QuoteError, simulation failures raise SimulationError.
    """

    name = "jupiter"
    timeout_s = 15

    def __init__(self, base_url: str = DEFAULT_JUPITER_API_URL, api_key: Optional[str] = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key or None

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["x-api-key"] = self.api_key
        return headers

    async def get_quote(
        self,
        input_mint: str,
        output_mint: str,
        amount: int,
        slippage_bps: int,
        restrict_intermediate_tokens: bool = True,
    ) -> JupiterQuote:
        """
        Fetch the best route for an exact input.

        Args:
            input_mint: Mint paid
            output_mint: Mint received
            amount: Input amount in the mint's smallest unit
            slippage_bps: Slippage tolerance in basis points
            restrict_intermediate_tokens: Only route through liquid intermediates

        Returns:
            Parsed JupiterQuote

        Raises:
            QuoteError: If the request fails or the response carries an error
        """
        params = {
            "inputMint": input_mint,
            "outputMint": output_mint,
            "amount": str(amount),
            "slippageBps": str(slippage_bps),
            "restrictIntermediateTokens": "true" if restrict_intermediate_tokens else "false",
        }
        context = ErrorContext(operation="jupiter_quote", chain="solana", details=dict(params))

        try:
            async with httpx.AsyncClient(timeout=self.timeout_s) as client:
                resp = await client.get(f"{self.base_url}/quote", params=params, headers=self._headers())
                data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise QuoteError(f"Jupiter quote request failed: {e}", context) from e

        if not isinstance(data, dict):
            raise QuoteError(f"Unexpected Jupiter quote response: {data!r}", context)
        if data.get("error"):
            raise QuoteError(str(data["error"]), context)
        if resp.status_code >= 400:
            raise QuoteError(f"Jupiter quote failed with status {resp.status_code}", context)

        return JupiterQuote.from_api(data)

    async def get_swap_transaction(
        self,
        quote: JupiterQuote,
        user_public_key: str,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> JupiterSwapTransaction:
        """
        Build the serialized swap transaction for a quote.

        Caller overrides are merged over DEFAULT_SWAP_OPTIONS.

        Raises:
            SimulationError: If the request fails or Jupiter's simulation reports an error
        """
        body: Dict[str, Any] = {
            "quoteResponse": quote.raw,
            "userPublicKey": user_public_key,
            **DEFAULT_SWAP_OPTIONS,
            **(overrides or {}),
        }
        context = ErrorContext(operation="jupiter_swap", chain="solana")

        try:
            async with httpx.AsyncClient(timeout=self.timeout_s) as client:
                resp = await client.post(f"{self.base_url}/swap", json=body, headers=self._headers())
                data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise SimulationError(f"Jupiter swap request failed: {e}", context) from e

        if not isinstance(data, dict):
            raise SimulationError(f"Unexpected Jupiter swap response: {data!r}", context)

        swap = JupiterSwapTransaction.from_api(data)
        if swap.simulation_error:
            context.details["simulation_error"] = swap.simulation_error
            error = swap.simulation_error
            message = error.get("error") if isinstance(error, dict) else None
            raise SimulationError(str(message or error), context)
        if data.get("error") or not swap.swap_transaction:
            raise SimulationError(str(data.get("error") or "Jupiter returned no swap transaction"), context)

        return swap
