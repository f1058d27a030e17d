"""
Virtuals REST API provider.

Token discovery comes from the listing API (Strapi-style filters); candles
and trade history come from the v2 API.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ..constants import (
    AGENT_CHAIN_MAP,
    DEFAULT_VIRTUALS_API_URL,
    DEFAULT_VIRTUALS_API_URL_V2,
    FILTER_AGENT_STATUS,
    FILTER_STATUS_SEARCH,
    AgentChainId,
    TokenType,
)
from ..core.errors import VirtualsApiError
from ..types.listing import GetKlinesParams, GetLatestTradesParams, KLine, Token, TokenList, Trade


logger = logging.getLogger(__name__)

RowT = TypeVar("RowT", bound=BaseModel)

LISTING_SORT = {
    TokenType.SENTIENT: "totalValueLocked:desc",
    TokenType.PROTOTYPE: "virtualTokenValue:desc",
}


class VirtualsApiProvider:
    """
    Client for the token listing, kline and trade history endpoints.

    Missing or null response fields take the schema defaults, and only a
    non-200 status or a missing ``data`` envelope is treated as an error.
    """

    name = "virtuals"
    timeout_s = 15

    def __init__(
        self,
        api_url: str = DEFAULT_VIRTUALS_API_URL,
        api_url_v2: str = DEFAULT_VIRTUALS_API_URL_V2,
        timeout_s: Optional[int] = None,
    ) -> None:
        if not api_url:
            raise ValueError("Virtuals API URL cannot be empty")
        self.api_url = api_url.rstrip("/")
        self.api_url_v2 = (api_url_v2 or DEFAULT_VIRTUALS_API_URL_V2).rstrip("/")
        if timeout_s:
            self.timeout_s = timeout_s

    async def _get(self, url: str, params: Dict[str, str]) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s) as client:
                resp = await client.get(url, params=params, headers={"accept": "application/json"})
        except httpx.HTTPError as e:
            raise VirtualsApiError(f"Error fetching token lists: {e}") from e

        if resp.status_code != 200:
            raise VirtualsApiError(
                f"Error fetching token lists: Failed to fetch token lists. Status code: {resp.status_code}",
                status_code=resp.status_code,
            )

        try:
            body = resp.json()
        except ValueError as e:
            raise VirtualsApiError(f"Error fetching token lists: invalid JSON ({e})", resp.status_code) from e

        if not isinstance(body, dict):
            raise VirtualsApiError("Error fetching token lists: unexpected response envelope", resp.status_code)
        return body

    @staticmethod
    def _parse_tokens(items: Any) -> List[Token]:
        if not isinstance(items, list):
            raise VirtualsApiError("Error fetching token lists: response has no data list")
        tokens = []
        for item in items:
            try:
                tokens.append(Token.model_validate(item or {}))
            except ValidationError as e:
                logger.warning(f"Skipping malformed token entry: {e.error_count()} errors")
        return tokens

    @staticmethod
    def _envelope_rows(body: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
        data = body.get("data")
        rows = data.get(key) if isinstance(data, dict) else None
        return [row for row in rows or [] if isinstance(row, dict)]

    @staticmethod
    def _parse_rows(model: Type[RowT], rows: List[Dict[str, Any]], label: str) -> List[RowT]:
        parsed = []
        for row in rows:
            try:
                parsed.append(model.model_validate(row))
            except ValidationError as e:
                logger.warning(f"Skipping malformed {label} entry: {e.error_count()} errors")
        return parsed

    async def fetch_virtual_token_lists(
        self,
        token_type: TokenType,
        agent_chain_id: AgentChainId = AgentChainId.ALL,
        page: int = 1,
        page_size: int = 30,
    ) -> TokenList:
        """
        Fetch one page of listed tokens.

        Args:
            token_type: PROTOTYPE or SENTIENT listing
            agent_chain_id: Chain filter; ALL sends no chain filter
            page: 1-based page number
            page_size: Tokens per page

        Returns:
            TokenList for the page
        """
        token_type = TokenType(token_type)
        params = {
            "filters[status]": str(FILTER_AGENT_STATUS[token_type]),
            "sort[0]": LISTING_SORT[token_type],
            "sort[1]": "createdAt:desc",
            "populate[0]": "image",
            "pagination[page]": str(page),
            "pagination[pageSize]": str(page_size),
        }
        agent_chain_id = AgentChainId(agent_chain_id)
        if agent_chain_id != AgentChainId.ALL:
            params["filters[chain]"] = AGENT_CHAIN_MAP[agent_chain_id]

        body = await self._get(f"{self.api_url}/api/virtuals", params)
        return TokenList(tokens=self._parse_tokens(body.get("data")))

    async def search_virtual_tokens_by_keyword(self, keyword: str) -> Optional[Token]:
        """
        Search tokens by name, symbol or address fragment.

        Returns:
            The best match (highest TVL, newest first), or None
        """
        params = {
            "filters[status]": str(FILTER_STATUS_SEARCH),
            "filters[$or][0][name][$contains]": keyword,
            "filters[$or][1][symbol][$contains]": keyword,
            "filters[$or][2][tokenAddress][$contains]": keyword,
            "filters[$or][3][preToken][$contains]": keyword,
            "sort[0]": "totalValueLocked:desc",
            "sort[1]": "createdAt:desc",
            "populate[0]": "image",
            "pagination[page]": "1",
            "pagination[pageSize]": "10",
        }
        body = await self._get(f"{self.api_url}/api/virtuals", params)
        tokens = self._parse_tokens(body.get("data"))
        return tokens[0] if tokens else None

    async def fetch_klines(self, params: GetKlinesParams) -> List[KLine]:
        body = await self._get(f"{self.api_url_v2}/vp-api/klines", params.to_query())
        return self._parse_rows(KLine, self._envelope_rows(body, "Klines"), "kline")

    async def fetch_latest_trades(self, params: GetLatestTradesParams) -> List[Trade]:
        body = await self._get(f"{self.api_url_v2}/vp-api/trades", params.to_query())
        return self._parse_rows(Trade, self._envelope_rows(body, "Trades"), "trade")
