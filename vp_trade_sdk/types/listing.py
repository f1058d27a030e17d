"""
Schemas for the token listing, kline and trade history API.

Every field is optional upstream; absent or null values fall back to the
defaults declared here instead of failing validation.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..constants import KlineChainId


class _ApiModel(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        if data is None:
            return {}
        return data


class VerifiedLinks(_ApiModel):
    twitter: str = Field(default="", alias="TWITTER", description="Verified Twitter link")
    telegram: str = Field(default="", alias="TELEGRAM", description="Verified Telegram link")


class Socials(_ApiModel):
    verified_links: VerifiedLinks = Field(default_factory=VerifiedLinks, alias="VERIFIED_LINKS")


class TokenImage(_ApiModel):
    id: int = Field(default=0, description="Image resource id")
    url: str = Field(default="", description="Image URL")


class Token(_ApiModel):
    id: int = Field(default=0, description="Listing id")
    name: str = Field(default="", description="Token name")
    status: str = Field(default="", description="Listing status, e.g. AVAILABLE")
    token_address: str = Field(default="", alias="tokenAddress", description="Token address, or pre-bonding token")
    description: str = Field(default="", description="Token description")
    lp_address: str = Field(default="", alias="lpAddress", description="Pair address, or pre-bonding pair")
    symbol: str = Field(default="", description="Token symbol")
    holder_count: int = Field(default=0, alias="holderCount", description="Number of holders")
    mcap_in_virtual: float = Field(default=0, alias="mcapInVirtual", description="Market cap in VIRTUAL")
    socials: Socials = Field(default_factory=Socials)
    image: TokenImage = Field(default_factory=TokenImage)
    chain: str = Field(default="", description="Chain the token lives on")

    @model_validator(mode="before")
    @classmethod
    def _apply_fallbacks(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        # Prototype tokens only carry the pre-bonding addresses.
        data["tokenAddress"] = data.get("tokenAddress") or data.get("preToken") or ""
        data["lpAddress"] = data.get("lpAddress") or data.get("preTokenPair") or ""
        for nested in ("socials", "image"):
            if not isinstance(data.get(nested), dict):
                data.pop(nested, None)
        return data


class TokenList(BaseModel):
    tokens: List[Token] = Field(default_factory=list, description="Tokens on the requested page")


class KLine(_ApiModel):
    granularity: int = Field(default=0, description="Candle width in seconds")
    token_address: str = Field(default="", alias="tokenAddress")
    open: str = Field(default="0", description="Price of the first trade")
    high: str = Field(default="0", description="Highest trade price")
    low: str = Field(default="0", description="Lowest trade price")
    close: str = Field(default="0", description="Price of the last trade")
    volume: str = Field(default="0", description="Volume in VIRTUAL")
    start_in_milli: int = Field(default=0, alias="startInMilli")
    end_in_milli: int = Field(default=0, alias="endInMilli")


class Trade(_ApiModel):
    tx_sender: str = Field(default="", alias="txSender")
    tx_hash: str = Field(default="", alias="txHash")
    token_address: str = Field(default="", alias="tokenAddress")
    is_buy: bool = Field(default=False, alias="isBuy")
    agent_token_amt: str = Field(default="0", alias="agentTokenAmt")
    virtual_token_amt: str = Field(default="0", alias="virtualTokenAmt")
    price: str = Field(default="0", description="Trade price in VIRTUAL")
    timestamp: int = Field(default=0, description="Unix seconds")


class GetKlinesParams(BaseModel):
    token_address: str = Field(description="Token to fetch candles for")
    granularity: int = Field(description="Candle width in seconds")
    start: int = Field(description="Start time, UTC milliseconds")
    end: int = Field(description="End time, UTC milliseconds")
    limit: int = Field(description="Maximum number of candles")
    chain_id: KlineChainId = Field(default=KlineChainId.BASE)

    def to_query(self) -> Dict[str, str]:
        return {
            "tokenAddress": self.token_address,
            "granularity": str(self.granularity),
            "start": str(self.start),
            "end": str(self.end),
            "limit": str(self.limit),
            "chainID": str(self.chain_id.value),
        }


class GetLatestTradesParams(BaseModel):
    token_address: str = Field(description="Token to fetch trades for")
    limit: int = Field(description="Maximum number of trades")
    chain_id: KlineChainId = Field(default=KlineChainId.BASE)
    tx_sender: Optional[str] = Field(default=None, description="Only trades sent by this address")

    def to_query(self) -> Dict[str, str]:
        return {
            "tokenAddress": self.token_address,
            "limit": str(self.limit),
            "chainID": str(self.chain_id.value),
            "txSender": self.tx_sender or "",
        }
