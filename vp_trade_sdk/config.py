from decimal import Decimal
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    BONDING_CURVE_ADDRESS,
    BONDING_ROUTER_ADDRESS,
    DEFAULT_JUPITER_API_URL,
    DEFAULT_SOLANA_RPC_URL,
    DEFAULT_VIRTUALS_API_URL,
    DEFAULT_VIRTUALS_API_URL_V2,
    UNISWAP_V2_ROUTER_ADDRESS,
    VIRTUALS_TOKEN_ADDRESS,
)


BASE_DIR = Path.cwd()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    log_level: str = Field(default="INFO", description="Logging level")

    # EVM account and node
    private_key: str = Field(
        default="",
        validation_alias=AliasChoices("private_key", "account_private_key"),
        description="Hex private key of the trading account (0x prefix optional)",
    )
    rpc_provider_url: str = Field(default="", description="EVM JSON-RPC endpoint (Base)")
    rpc_api_key: str = Field(default="", description="API key for hosted RPC providers")

    # Virtuals REST API
    virtuals_api_url: str = Field(
        default=DEFAULT_VIRTUALS_API_URL,
        description="Base URL for the token listing API",
    )
    virtuals_api_url_v2: str = Field(
        default=DEFAULT_VIRTUALS_API_URL_V2,
        description="Base URL for the kline and trade history API",
    )

    # Contract addresses (Base mainnet deployment)
    virtuals_token_address: str = Field(
        default=VIRTUALS_TOKEN_ADDRESS,
        description="Base asset token paid for prototype and sentient purchases",
    )
    bonding_router_address: str = Field(
        default=BONDING_ROUTER_ADDRESS,
        description="Bonding curve router used for quotes and as the approval spender",
    )
    bonding_curve_address: str = Field(
        default=BONDING_CURVE_ADDRESS,
        description="Bonding curve contract that executes prototype buys and sells",
    )
    uniswap_v2_router_address: str = Field(
        default=UNISWAP_V2_ROUTER_ADDRESS,
        description="Uniswap V2 compatible router for sentient token swaps",
    )

    # Trading tunables
    gas_buffer_percent: int = Field(default=15, description="Safety margin applied to gas and fee estimates")
    default_slippage_percent: Decimal = Field(default=Decimal("5"), description="Slippage used when none is supplied")
    swap_deadline_seconds: int = Field(default=1200, description="Router swap deadline from call time")
    prototype_tax_rate: Decimal = Field(default=Decimal("0.01"), description="Bonding curve buy tax used for quotes")
    receipt_timeout_seconds: float = Field(default=120.0, description="Max wait for an EVM receipt")
    receipt_poll_interval_seconds: float = Field(default=2.0, description="Receipt polling interval")
    request_timeout_seconds: int = Field(default=30, description="HTTP request timeout")

    # Solana
    solana_private_key: str = Field(
        default="",
        description="Solana keypair secret (base58, hex or JSON byte array)",
    )
    solana_rpc_url: str = Field(default=DEFAULT_SOLANA_RPC_URL, description="Solana JSON-RPC endpoint")
    solana_rpc_api_key: str = Field(default="", description="Optional API key appended to the Solana RPC URL")
    jupiter_api_url: str = Field(default=DEFAULT_JUPITER_API_URL, description="Jupiter swap API base URL")
    jupiter_api_key: str = Field(default="", description="Jupiter API key sent as x-api-key")
    solana_confirm_timeout_seconds: float = Field(default=90.0, description="Max wait for finalized confirmation")
    solana_max_retries: int = Field(default=2, description="sendTransaction maxRetries")
    solana_skip_preflight: bool = Field(default=True, description="Skip preflight on swap submission")

    @property
    def evm_rpc_url(self) -> str:
        """RPC URL with the provider API key applied for hosted Alchemy endpoints."""
        url = self.rpc_provider_url.rstrip("/")
        if self.rpc_api_key and "alchemy.com" in url and not url.endswith(self.rpc_api_key):
            return f"{url}/{self.rpc_api_key}"
        return url

    @property
    def solana_rpc_endpoint(self) -> str:
        if not self.solana_rpc_api_key:
            return self.solana_rpc_url
        separator = "&" if "?" in self.solana_rpc_url else "?"
        return f"{self.solana_rpc_url}{separator}apiKey={self.solana_rpc_api_key}"

