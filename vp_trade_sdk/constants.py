"""
Protocol constants for the Base deployment and the public API endpoints.
"""

from enum import Enum


class TradeSide(str, Enum):
    """Direction of a trade relative to the target token."""
    BUY = "BUY"
    SELL = "SELL"


class TokenType(str, Enum):
    """Lifecycle stage of an agent token, which decides the trading venue."""
    PROTOTYPE = "PROTOTYPE"    # Bonding curve
    SENTIENT = "SENTIENT"      # Router swap


class AgentChainId(str, Enum):
    """Chain selector for listing queries."""
    ALL = "ALL"
    BASE = "BASE"
    SOLANA = "SOLANA"


class KlineChainId(int, Enum):
    """Chain identifiers accepted by the kline and trade history API."""
    BASE = 8453
    SOLANA = 1399811149


FILTER_AGENT_STATUS = {
    TokenType.PROTOTYPE: 1,
    TokenType.SENTIENT: 2,
}
FILTER_STATUS_SEARCH = 3

AGENT_CHAIN_MAP = {
    AgentChainId.BASE: "BASE",
    AgentChainId.SOLANA: "SOLANA",
}

# Base mainnet contracts
VIRTUALS_TOKEN_ADDRESS = "0x0b3e328455c4059EEb9e3f84b5543F74E24e7E1b"
BONDING_ROUTER_ADDRESS = "0x8292B43aB73EfAC11FAF357419C38ACF448202C5"
BONDING_CURVE_ADDRESS = "0xF66DeA7b3e897cD44A5a231c61B6B4423d613259"
UNISWAP_V2_ROUTER_ADDRESS = "0x4752ba5DBc23f44D87826276BF6Fd6b1C372aD24"
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

EVM_TOKEN_DECIMALS = 18
PRIORITY_FEE_FALLBACK_WEI = 1_000_000_000

# Endpoints
DEFAULT_VIRTUALS_API_URL = "https://api.virtuals.io"
DEFAULT_VIRTUALS_API_URL_V2 = "https://vp-api.virtuals.io"
DEFAULT_JUPITER_API_URL = "https://api.jup.ag/swap/v1"
DEFAULT_SOLANA_RPC_URL = "https://api.mainnet-beta.solana.com"
SOLSCAN_TX_URL = "https://solscan.io/tx/{signature}/"

# Solana programs
TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
ASSOCIATED_TOKEN_PROGRAM_ID = "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL"
SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"
LAMPORTS_PER_SOL = 1_000_000_000
