from .jupiter import JupiterQuote, JupiterSwapProvider, JupiterSwapTransaction
from .virtuals import VirtualsApiProvider

__all__ = [
    "JupiterQuote",
    "JupiterSwapProvider",
    "JupiterSwapTransaction",
    "VirtualsApiProvider",
]
