from .listing import (
    GetKlinesParams,
    GetLatestTradesParams,
    KLine,
    Socials,
    Token,
    TokenImage,
    TokenList,
    Trade,
    VerifiedLinks,
)

__all__ = [
    "GetKlinesParams",
    "GetLatestTradesParams",
    "KLine",
    "Socials",
    "Token",
    "TokenImage",
    "TokenList",
    "Trade",
    "VerifiedLinks",
]
