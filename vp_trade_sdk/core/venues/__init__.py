"""
Trading venues.

- BondingCurveVenue: prototype tokens, priced and settled on the bonding curve
- RouterSwapVenue: sentient tokens, swapped through a Uniswap V2 router
"""

from .base import AllowanceCapable, GasEstimable, TradingVenue
from .bonding_curve import BondingCurveVenue
from .router_swap import RouterSwapVenue, min_amount_out

__all__ = [
    "AllowanceCapable",
    "GasEstimable",
    "TradingVenue",
    "BondingCurveVenue",
    "RouterSwapVenue",
    "min_amount_out",
]
